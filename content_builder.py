"""
content_builder.py - Turn the markdown syntax tree into the content tree.

Images are not loaded here; each one is given an id (img_0, img_1, ... in
document order) and recorded in the BuildContext for the image loader.
"""
import logging
import re
from dataclasses import dataclass, field

import config
from models import ContentNode, ImageInfo, InlineSpan, NodeKind

logger = logging.getLogger(__name__)

_TASK_RE = re.compile(r"^\[([ xX])\]\s+")
_ALIGN_RE = re.compile(r"text-align\s*:\s*(left|center|right)")


@dataclass
class BuildContext:
    base_path: str = "."
    images: list = field(default_factory=list)

    def add_image(self, href: str, alt: str) -> str:
        image_id = f"img_{len(self.images)}"
        self.images.append(ImageInfo(id=image_id, href=href, alt=alt))
        return image_id


def build_content(tree, context: BuildContext) -> list:
    """Content nodes for every block of the syntax tree root."""
    return _blocks(tree.children, context)


def _blocks(nodes, context: BuildContext) -> list:
    out = []
    for node in nodes:
        built = _block(node, context)
        if built is not None:
            out.append(built)
    return out


def _block(node, context: BuildContext):
    t = node.type
    if t == "heading":
        level = min(max(int(node.tag[1:]), 1), 6)
        return ContentNode(NodeKind.TEXT, spans=_inline_spans(_inline_child(node)),
                           style=f"h{level}", margin=config.MARGINS["heading"])
    if t == "paragraph":
        return _paragraph(node, context)
    if t in ("bullet_list", "ordered_list"):
        return _list(node, context)
    if t in ("fence", "code_block"):
        return _code(node)
    if t == "table":
        return _table(node)
    if t == "blockquote":
        return ContentNode(
            NodeKind.COLUMNS,
            children=[ContentNode(NodeKind.STACK, children=_blocks(node.children, context))],
            style="blockquote",
            margin=config.MARGINS["blockquote"],
        )
    if t == "hr":
        return ContentNode(NodeKind.RULE, margin=config.MARGINS["rule"])
    if t == "html_block":
        return ContentNode(NodeKind.TEXT, spans=[InlineSpan(node.content.rstrip("\n"))],
                           margin=config.MARGINS["paragraph"])

    if node.children:
        logger.debug("Unhandled block '%s', rendering its children", t)
        return ContentNode(NodeKind.STACK, children=_blocks(node.children, context))
    return None


def _paragraph(node, context: BuildContext):
    inline = _inline_child(node)
    children = inline.children if inline is not None else []
    if len(children) == 1 and children[0].type == "image":
        return _image(children[0], context)
    return ContentNode(NodeKind.TEXT, spans=_inline_spans(inline),
                       margin=config.MARGINS["paragraph"])


def _image(node, context: BuildContext) -> ContentNode:
    href = str(node.attrs.get("src", ""))
    image_id = context.add_image(href, node.content or "")
    return ContentNode(NodeKind.IMAGE, image=image_id, margin=config.MARGINS["image"])


def _list(node, context: BuildContext) -> ContentNode:
    ordered = node.type == "ordered_list"
    start = int(node.attrs.get("start", 1)) if ordered else 1
    item_margin = config.MARGINS["list_item"]

    items = []
    for item in node.children:
        parts = []
        for child in item.children:
            if child.type == "paragraph":
                parts.append(ContentNode(NodeKind.TEXT, spans=_inline_spans(_inline_child(child)),
                                         margin=(0, item_margin[1], 0, item_margin[3])))
            elif child.type in ("bullet_list", "ordered_list"):
                nested = _list(child, context)
                nested.margin = (0, 0, 0, 0)
                parts.append(nested)
            else:
                built = _block(child, context)
                if built is not None:
                    parts.append(built)
        _mark_task(parts)
        if not parts:
            parts = [ContentNode(NodeKind.TEXT, spans=[InlineSpan("")])]
        items.append(parts[0] if len(parts) == 1 else ContentNode(NodeKind.STACK, children=parts))

    return ContentNode(NodeKind.LIST, children=items, ordered=ordered, start=start,
                       margin=config.MARGINS["list"])


def _mark_task(parts: list):
    """Normalise a leading task checkbox to "[x] " / "[ ] "."""
    if not parts or parts[0].kind != NodeKind.TEXT or not parts[0].spans:
        return
    first = parts[0].spans[0]
    if first.code:
        return
    match = _TASK_RE.match(first.text)
    if not match:
        return
    checked = match.group(1) in "xX"
    first.text = ("[x] " if checked else "[ ] ") + first.text[match.end():]


def _code(node) -> ContentNode:
    language = (node.info or "").strip().split(" ")[0] if node.type == "fence" else ""
    code = ContentNode(NodeKind.CODE, text=node.content.rstrip("\n"), language=language)
    children = []
    if language:
        children.append(ContentNode(NodeKind.TEXT, spans=[InlineSpan(language, bold=True)],
                                    style="code_label", margin=config.MARGINS["code_label"]))
    children.append(code)
    return ContentNode(NodeKind.STACK, children=children, margin=config.MARGINS["code_block"])


def _table(node) -> ContentNode:
    rows = []
    alignments = []
    header_rows = 0
    for section in node.children:
        for tr in section.children:
            cells = []
            for c, cell in enumerate(tr.children):
                cells.append(_inline_spans(_inline_child(cell)))
                if c >= len(alignments):
                    alignments.append(_cell_alignment(cell))
            rows.append(cells)
            if section.type == "thead":
                header_rows += 1
    return ContentNode(NodeKind.TABLE, rows=rows, header_rows=header_rows,
                       alignments=alignments, margin=config.MARGINS["table"])


def _cell_alignment(cell):
    match = _ALIGN_RE.search(str(cell.attrs.get("style", "")))
    return match.group(1) if match else None


# ---------------------------------------------------------------------------
# Inline content
# ---------------------------------------------------------------------------

def _inline_child(node):
    for child in node.children:
        if child.type == "inline":
            return child
    return None


def _inline_spans(inline, bold: bool = False, italic: bool = False,
                  strike: bool = False, link=None) -> list:
    if inline is None:
        return []
    spans = []

    def add(text, **extra):
        # markdown-it leaves empty text tokens around emphasis delimiters
        if not text:
            return
        spans.append(InlineSpan(text, bold=bold, italic=italic, strike=strike, link=link, **extra))

    for child in inline.children:
        t = child.type
        if t in ("text", "html_inline"):
            add(child.content)
        elif t == "softbreak":
            add(" ")
        elif t == "hardbreak":
            add("\n")
        elif t == "code_inline":
            add(child.content, code=True)
        elif t == "strong":
            spans.extend(_inline_spans(child, True, italic, strike, link))
        elif t == "em":
            spans.extend(_inline_spans(child, bold, True, strike, link))
        elif t == "s":
            spans.extend(_inline_spans(child, bold, italic, True, link))
        elif t == "link":
            spans.extend(_inline_spans(child, bold, italic, strike, str(child.attrs.get("href", ""))))
        elif t == "image":
            # images inside running text are shown by their alt text
            add(child.content or str(child.attrs.get("src", "")))
        elif child.children:
            spans.extend(_inline_spans(child, bold, italic, strike, link))
        elif child.content:
            add(child.content)
    return spans
