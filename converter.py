"""
converter.py - Convert one markdown file into a single-page PDF.

Reads the markdown, builds the content tree, loads fonts and images,
swaps unloadable images for placeholder text and hands everything to the
page generator.
"""
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

import config
from content_builder import BuildContext, build_content
from font_loader import FontConfig, find_font
from image_loader import load_images
from md_parser import parse_markdown
from models import ContentNode, InlineSpan, Margins, NodeKind
from pdf_generator import GeneratorOptions, generate_pdf

logger = logging.getLogger(__name__)


class ConversionError(RuntimeError):
    pass


@dataclass
class ConversionResult:
    input_path: str
    output_path: str
    paper_size: str
    margin_preset: str
    page_width: float
    page_height: float
    image_count: int = 0
    loaded_image_count: int = 0
    font_name: str = config.DEFAULT_FONT


def is_paper_size(name: str) -> bool:
    return str(name).upper() in config.PAPER_SIZES_MM


def paper_width(name: str) -> int:
    """Page width in points; unknown names fall back to the default paper."""
    key = str(name).upper()
    if key not in config.PAPER_SIZES_MM:
        logger.warning("Unknown paper size '%s', using %s", name, config.DEFAULT_PAPER_SIZE)
        key = config.DEFAULT_PAPER_SIZE
    return config.mm(config.PAPER_SIZES_MM[key])


def is_margin_preset(name: str) -> bool:
    return str(name).lower() in config.MARGIN_PRESETS


def page_margins(preset: str = config.DEFAULT_MARGIN_PRESET) -> Margins:
    values = config.MARGIN_PRESETS.get(str(preset).lower())
    if values is None:
        raise ValueError(f"Invalid margin preset: {preset}. "
                         f"Valid presets: {', '.join(config.MARGIN_PRESETS)}")
    return Margins.from_tuple(values)


def replace_failed_images(nodes, loaded: dict, infos: list) -> list:
    """Copy of ``nodes`` where images without data become placeholder text."""
    by_id = {info.id: info for info in infos}
    out = []
    for node in nodes:
        if node.kind == NodeKind.IMAGE and node.image not in loaded:
            info = by_id.get(node.image)
            label = (info.alt or info.href) if info else ""
            out.append(ContentNode(
                NodeKind.TEXT,
                spans=[InlineSpan(f"[Image not found: {label or node.image}]",
                                  italic=True, color=config.COLORS["placeholder"])],
                margin=config.MARGINS["image"],
            ))
        elif node.children:
            out.append(replace(node, children=replace_failed_images(node.children, loaded, infos)))
        else:
            out.append(node)
    return out


def convert_markdown(markdown: str, base_path: str = ".", paper_size: str = config.DEFAULT_PAPER_SIZE,
                     margin_preset: str = config.DEFAULT_MARGIN_PRESET,
                     fonts: FontConfig = None, title: str = "", client=None):
    """Convert markdown text; returns (GenerationResult, image infos, loaded images)."""
    fonts = fonts if fonts is not None else find_font()

    tree = parse_markdown(markdown)
    context = BuildContext(base_path=base_path)
    nodes = build_content(tree, context)

    images = load_images(context.images, base_path, client=client)
    if context.images:
        logger.info("Loaded %d/%d images", len(images), len(context.images))
    nodes = replace_failed_images(nodes, images, context.images)

    options = GeneratorOptions(
        page_width=paper_width(paper_size),
        margins=page_margins(margin_preset),
        fonts=fonts,
        images=images,
        title=title,
    )
    return generate_pdf(nodes, options), context.images, images


def convert(input_path: str, output_path: str, paper_size: str = config.DEFAULT_PAPER_SIZE,
            margin_preset: str = config.DEFAULT_MARGIN_PRESET,
            fonts: FontConfig = None) -> ConversionResult:
    """Convert ``input_path`` (markdown) to ``output_path`` (PDF)."""
    try:
        markdown = Path(input_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConversionError(f"Cannot read {input_path}: {e}") from e

    fonts = fonts if fonts is not None else find_font()
    generated, infos, images = convert_markdown(
        markdown,
        base_path=os.path.dirname(os.path.abspath(input_path)),
        paper_size=paper_size,
        margin_preset=margin_preset,
        fonts=fonts,
        title=Path(input_path).stem,
    )

    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    Path(output_path).write_bytes(generated.pdf_bytes)
    logger.info("PDF written to %s", output_path)

    return ConversionResult(
        input_path=str(input_path),
        output_path=str(output_path),
        paper_size=paper_size.upper() if is_paper_size(paper_size) else config.DEFAULT_PAPER_SIZE,
        margin_preset=margin_preset,
        page_width=generated.page_width,
        page_height=generated.target_height,
        image_count=len(infos),
        loaded_image_count=len(images),
        font_name=fonts.default_font,
    )
