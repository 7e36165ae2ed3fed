"""
pdf_layout.py - Lay out a content tree with reportlab platypus.

A single entry point, render_pdf, turns the content tree into a PDF on a
page of the given geometry. When an observer is passed, every top-level
node (and every child of a top-level stack) reports where the engine placed
it as a LayoutEvent. Nodes nested inside columns, tables and lists are laid
out in the engine's cell coordinates and are not reported.

Observers only receive positions; they have no way to influence pagination.
"""
import logging
from dataclasses import dataclass, field, replace
from io import BytesIO
from typing import Callable, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    BaseDocTemplate,
    Flowable,
    Frame,
    HRFlowable,
    Image,
    ListFlowable,
    ListItem,
    PageTemplate,
    Paragraph,
    Preformatted,
    Spacer,
    Table,
    TableStyle,
)

import config
from font_loader import FontConfig, register_fonts
from image_extent import rendered_size
from models import FitBox, ImageDimensions, LayoutEvent, Margins, NodeKind, PageGeometry

logger = logging.getLogger(__name__)

LayoutObserver = Callable[[LayoutEvent], None]

_ALIGNMENTS = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT}
_HEADING_STYLES = frozenset(f"h{level}" for level in range(1, 7))


class NodeFlowable(Flowable):
    """Engine-side wrapper around the flowable built for one content node.

    Applies the node's margins and, if observed, reports the resolved
    position after the node has been drawn.
    """

    def __init__(self, inner: Flowable, node, observer: Optional[LayoutObserver] = None,
                 page_height: float = 0.0):
        Flowable.__init__(self)
        self.inner = inner
        self.node = node
        self.observer = observer
        self.page_height = page_height
        self.margin = node.margin
        self.spaceBefore = node.margin[1]
        self.spaceAfter = node.margin[3]

    def _hmargin(self) -> float:
        return self.margin[0] + self.margin[2]

    def wrap(self, availWidth, availHeight):
        canv = getattr(self, "canv", None)
        w, h = self.inner.wrapOn(canv, max(availWidth - self._hmargin(), 0), availHeight)
        self.width = w + self._hmargin()
        self.height = h
        return self.width, self.height

    def split(self, availWidth, availHeight):
        canv = getattr(self, "canv", None)
        parts = self.inner.splitOn(canv, max(availWidth - self._hmargin(), 0), availHeight)
        return [NodeFlowable(part, self.node, self.observer, self.page_height) for part in parts]

    def getSpaceBefore(self):
        return self.spaceBefore

    def getSpaceAfter(self):
        return self.spaceAfter

    def drawOn(self, canvas, x, y, _sW=0):
        self.inner.drawOn(canvas, x + self.margin[0], y, _sW=_sW)
        if self.observer is None:
            return
        image_id = self.node.image if self.node.kind == NodeKind.IMAGE else None
        self.observer(LayoutEvent(
            page_number=canvas.getPageNumber(),
            top=self.page_height - (y + self.height),
            height=self.height,
            image_id=image_id,
        ))

    def draw(self):
        # drawOn delegates to the wrapped flowable
        pass


@dataclass
class _Context:
    fonts: FontConfig
    images: dict
    fit_box: FitBox
    width: float
    page_height: float
    styles: dict = field(default_factory=dict)


def make_styles(fonts: FontConfig, text_color: str = config.COLORS["text"]) -> dict:
    """Paragraph styles keyed by the style names content nodes use."""
    body = ParagraphStyle(
        "body",
        fontName=fonts.default_font,
        fontSize=config.BODY_FONT_SIZE,
        leading=config.BODY_FONT_SIZE * config.LINE_HEIGHT,
        textColor=colors.HexColor(text_color),
    )
    styles = {"body": body}
    for level, size in enumerate(config.HEADING_SIZES, 1):
        styles[f"h{level}"] = ParagraphStyle(
            f"h{level}",
            parent=body,
            fontSize=size,
            leading=size * config.LINE_HEIGHT,
            textColor=colors.HexColor(config.COLORS["heading"]),
        )
    styles["code_label"] = ParagraphStyle(
        "code_label",
        parent=body,
        fontSize=config.CODE_LABEL_FONT_SIZE,
        leading=config.CODE_LABEL_FONT_SIZE * config.LINE_HEIGHT,
        textColor=colors.HexColor(config.COLORS["code_label"]),
    )
    styles["code"] = ParagraphStyle(
        "code",
        parent=body,
        fontName=fonts.code_font,
        fontSize=config.CODE_FONT_SIZE,
        leading=config.CODE_FONT_SIZE * config.CODE_LINE_HEIGHT,
        textColor=colors.HexColor(config.COLORS["code_text"]),
    )
    for name, alignment in _ALIGNMENTS.items():
        styles[f"cell_{name}"] = ParagraphStyle(f"cell_{name}", parent=body, alignment=alignment)
    return styles


# ---------------------------------------------------------------------------
# Inline markup
# ---------------------------------------------------------------------------

def _span_markup(span, fonts: FontConfig) -> str:
    text = escape(span.text)
    if span.code:
        text = text.replace(" ", "\u00a0")
    text = text.replace("\n", "<br/>")
    if span.code:
        text = (f'<font face="{fonts.code_font}" size="{config.CODE_FONT_SIZE}" '
                f'backColor="{config.COLORS["code_background"]}">{text}</font>')
    if span.bold:
        text = f"<b>{text}</b>"
    if span.italic:
        text = f"<i>{text}</i>"
    if span.strike:
        text = f"<strike>{text}</strike>"
    if span.color:
        text = f'<font color="{span.color}">{text}</font>'
    if span.link:
        href = escape(span.link, {'"': "&quot;"})
        text = f'<a href="{href}" color="{config.COLORS["link"]}"><u>{text}</u></a>'
    return text


def spans_markup(spans, fonts: FontConfig) -> str:
    return "".join(_span_markup(span, fonts) for span in spans)


# ---------------------------------------------------------------------------
# Node builders
# ---------------------------------------------------------------------------

def _inner_width(node, ctx: _Context) -> float:
    return max(ctx.width - node.margin[0] - node.margin[2], 0)


def _text(node, ctx: _Context):
    style = ctx.styles.get(node.style, ctx.styles["body"])
    markup = spans_markup(node.spans, ctx.fonts)
    if node.style in _HEADING_STYLES:
        markup = f"<b>{markup}</b>"
    return Paragraph(markup, style)


def _image(node, ctx: _Context):
    loaded = ctx.images.get(node.image)
    if loaded is None:
        logger.warning("No image data for %s, leaving it out", node.image)
        return None
    dims = loaded.dimensions
    if dims is None:
        # Header gave nothing; ask the decoder for the size instead
        try:
            w, h = ImageReader(BytesIO(loaded.data)).getSize()
        except (OSError, ValueError) as e:
            logger.warning("Cannot decode image %s, leaving it out: %s", node.image, e)
            return None
        dims = ImageDimensions(w, h)
    width, height = rendered_size(dims, ctx.fit_box)
    if width > ctx.width > 0:
        # list items and quotes can be narrower than the fit box
        height *= ctx.width / width
        width = ctx.width
    return Image(BytesIO(loaded.data), width=width, height=height, hAlign="LEFT")


def _code(node, ctx: _Context):
    width = _inner_width(node, ctx)
    pad = config.CODE_BLOCK_PADDING
    # Courier advance is 0.6em; long lines wrap at the box edge
    max_chars = max(int((width - 2 * pad) / (0.6 * config.CODE_FONT_SIZE)), 10)
    pre = Preformatted(node.text, ctx.styles["code"], maxLineLength=max_chars, newLineChars="")
    border = colors.HexColor(config.COLORS["code_border"])
    return Table(
        [[pre]],
        colWidths=[width],
        hAlign="LEFT",
        style=TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor(config.COLORS["code_background"])),
            ("BOX", (0, 0), (-1, -1), 1, border),
            ("LEFTPADDING", (0, 0), (-1, -1), pad),
            ("RIGHTPADDING", (0, 0), (-1, -1), pad),
            ("TOPPADDING", (0, 0), (-1, -1), pad),
            ("BOTTOMPADDING", (0, 0), (-1, -1), pad),
        ]),
    )


def _table(node, ctx: _Context):
    ncols = max((len(row) for row in node.rows), default=0)
    if ncols == 0:
        return None
    pad = config.TABLE_CELL_PADDING
    col_width = _inner_width(node, ctx) / ncols

    data = []
    for r, row in enumerate(node.rows):
        cells = []
        for c in range(ncols):
            spans = row[c] if c < len(row) else []
            align = node.alignments[c] if c < len(node.alignments) else None
            style = ctx.styles[f"cell_{align or 'left'}"]
            markup = spans_markup(spans, ctx.fonts)
            if r < node.header_rows:
                markup = f"<b>{markup}</b>"
            cells.append(Paragraph(markup, style))
        data.append(cells)

    border = colors.HexColor(config.COLORS["table_border"])
    commands = [
        ("GRID", (0, 0), (-1, -1), 1, border),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), pad),
        ("RIGHTPADDING", (0, 0), (-1, -1), pad),
        ("TOPPADDING", (0, 0), (-1, -1), pad),
        ("BOTTOMPADDING", (0, 0), (-1, -1), pad),
    ]
    if node.header_rows:
        commands.append(("BACKGROUND", (0, 0), (-1, node.header_rows - 1),
                         colors.HexColor(config.COLORS["table_header_bg"])))
    return Table(data, colWidths=[col_width] * ncols, repeatRows=node.header_rows,
                 hAlign="LEFT", style=TableStyle(commands))


def _list(node, ctx: _Context):
    indent = config.MARGINS["list_item"][0]
    item_ctx = replace(ctx, width=max(_inner_width(node, ctx) - indent, 0))
    items = []
    for child in node.children:
        flowables = build_flowables([child], item_ctx)
        if flowables:
            items.append(ListItem(flowables))
    if not items:
        return None

    if node.ordered:
        kwargs = {"bulletType": "1", "start": node.start}
    else:
        kwargs = {"bulletType": "bullet", "start": "\u2022"}
    return ListFlowable(
        items,
        leftIndent=indent,
        bulletFontName=ctx.fonts.default_font,
        bulletFontSize=config.BODY_FONT_SIZE,
        bulletColor=colors.HexColor(config.COLORS["text"]),
        **kwargs,
    )


def _columns(node, ctx: _Context):
    width = _inner_width(node, ctx)
    if not node.children:
        return None

    if node.style == "blockquote":
        bar = config.BLOCKQUOTE_BAR_WIDTH
        gap = config.BLOCKQUOTE_GAP
        quote_ctx = replace(
            ctx,
            width=max(width - bar - gap, 0),
            styles=make_styles(ctx.fonts, config.COLORS["blockquote_text"]),
        )
        body = build_flowables(node.children, quote_ctx) or ""
        return Table(
            [["", body]],
            colWidths=[bar, max(width - bar, 0)],
            hAlign="LEFT",
            style=TableStyle([
                ("BACKGROUND", (0, 0), (0, -1), colors.HexColor(config.COLORS["blockquote_border"])),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                ("TOPPADDING", (0, 0), (-1, -1), 0),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
                ("LEFTPADDING", (1, 0), (1, -1), gap),
            ]),
        )

    col_width = width / len(node.children)
    cell_ctx = replace(ctx, width=col_width)
    cells = [build_flowables([child], cell_ctx) or "" for child in node.children]
    return Table([cells], colWidths=[col_width] * len(cells), hAlign="LEFT",
                 style=TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))


def _rule(node, ctx: _Context):
    return HRFlowable(width="100%", thickness=1, color=colors.HexColor(config.COLORS["rule"]),
                      spaceBefore=0, spaceAfter=0, hAlign="LEFT")


_BUILDERS = {
    NodeKind.TEXT: _text,
    NodeKind.IMAGE: _image,
    NodeKind.CODE: _code,
    NodeKind.TABLE: _table,
    NodeKind.LIST: _list,
    NodeKind.COLUMNS: _columns,
    NodeKind.RULE: _rule,
}


def build_flowables(nodes, ctx: _Context, observer: Optional[LayoutObserver] = None) -> list:
    """Flowables for a node sequence; stacks are flattened into their children."""
    out = []
    for node in nodes:
        if node is None:
            continue
        if node.kind == NodeKind.STACK:
            if node.margin[1]:
                out.append(Spacer(0, node.margin[1]))
            out.extend(build_flowables(node.children, ctx, observer))
            if node.margin[3]:
                out.append(Spacer(0, node.margin[3]))
            continue
        inner = _BUILDERS[node.kind](node, ctx)
        if inner is None:
            continue
        out.append(NodeFlowable(inner, node, observer, ctx.page_height))
    return out


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def render_pdf(nodes, geometry: PageGeometry, margins: Margins, images: dict,
               fonts: FontConfig, fit_box: FitBox,
               observer: Optional[LayoutObserver] = None, title: str = "") -> bytes:
    """Lay out ``nodes`` on pages of ``geometry`` and return the PDF bytes."""
    register_fonts(fonts)

    buf = BytesIO()
    doc = BaseDocTemplate(
        buf,
        pagesize=(geometry.width, geometry.height),
        leftMargin=margins.left,
        rightMargin=margins.right,
        topMargin=margins.top,
        bottomMargin=margins.bottom,
        title=title,
        creator=f"md2pdf {config.VERSION}",
    )
    frame = Frame(doc.leftMargin, doc.bottomMargin, doc.width, doc.height, id="content",
                  leftPadding=0, rightPadding=0, topPadding=0, bottomPadding=0)
    doc.addPageTemplates([PageTemplate(id="page", frames=[frame])])

    ctx = _Context(
        fonts=fonts,
        images=images,
        fit_box=fit_box,
        width=doc.width,
        page_height=geometry.height,
        styles=make_styles(fonts),
    )
    story = build_flowables(nodes, ctx, observer)
    if not story:
        story = [Spacer(0, 0)]

    logger.debug("Laying out %d flowables on %.0fx%.0f page", len(story),
                 geometry.width, geometry.height)
    doc.build(story)
    return buf.getvalue()
