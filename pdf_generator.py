"""
pdf_generator.py - Produce a single PDF page sized to its content.

Stages, run in order:
  1. measurement pass on the oversized canvas
  2. image footprints + extent correction -> target page height
  3. full render on the same oversized canvas
  4. resize of the rendered page to the target height

Stage 3 does not use the numbers from stages 1-2. A failure in any stage
propagates to the caller.
"""
import logging
from dataclasses import dataclass, field

import config
from extent_corrector import correct_extent, target_page_height
from font_loader import FontConfig
from image_extent import fit_box_for, image_footprints
from models import ExtentCorrection, Margins, MeasurementResult, PageGeometry
from pdf_layout import render_pdf
from pdf_measure import measure_content
from pdf_resize import resize_to_content

logger = logging.getLogger(__name__)


@dataclass
class GeneratorOptions:
    page_width: float
    margins: Margins
    fonts: FontConfig = field(default_factory=FontConfig)
    images: dict = field(default_factory=dict)
    canvas_height: float = config.MAX_PAGE_HEIGHT
    title: str = ""


@dataclass
class GenerationResult:
    pdf_bytes: bytes
    measurement: MeasurementResult
    correction: ExtentCorrection
    target_height: float
    page_width: float


def generate_pdf(nodes, options: GeneratorOptions) -> GenerationResult:
    """Render ``nodes`` to a single page exactly as tall as the content."""
    margins = options.margins
    fit_box = fit_box_for(options.page_width, margins)

    # Stage 1: measure
    measurement = measure_content(
        nodes,
        options.page_width,
        margins,
        options.images,
        options.fonts,
        fit_box,
        canvas_height=options.canvas_height,
    )

    # Stage 2: correct
    records = [loaded.record for loaded in options.images.values()]
    dimensions = {rec.id: rec.dimensions for rec in records if rec is not None}
    footprints = image_footprints(nodes, dimensions, fit_box)
    correction = correct_extent(measurement, footprints)
    target_height = target_page_height(margins, correction.corrected)
    logger.info("Content height: %dpt, page height: %dpt",
                round(correction.corrected), round(target_height))

    # Stage 3: render
    rendered = render_pdf(
        nodes,
        PageGeometry(options.page_width, options.canvas_height),
        margins,
        options.images,
        options.fonts,
        fit_box,
        title=options.title,
    )

    # Stage 4: resize
    pdf_bytes = resize_to_content(rendered, target_height, options.canvas_height)

    return GenerationResult(
        pdf_bytes=pdf_bytes,
        measurement=measurement,
        correction=correction,
        target_height=target_height,
        page_width=options.page_width,
    )
