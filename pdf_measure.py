"""
pdf_measure.py - Measure how far down the page a content tree actually reaches.

The layout engine is run once on the oversized canvas with an observer
attached. The observer folds every node's resolved position into a single
logical coordinate space (pages stacked one after another) and keeps the
furthest bottom edge seen, plus the top offset of each image. The PDF bytes
of this pass are thrown away.
"""
import logging

import config
from font_loader import FontConfig
from models import FitBox, LayoutEvent, Margins, MeasurementResult, PageGeometry
from pdf_layout import render_pdf

logger = logging.getLogger(__name__)


class ExtentCollector:
    """Layout observer that aggregates node positions into a MeasurementResult."""

    def __init__(self, canvas_height: float, margins: Margins):
        self.usable_height = canvas_height - margins.top - margins.bottom
        self.max_extent = 0.0
        self.page_count = 0
        self.image_top_positions = {}

    def __call__(self, event: LayoutEvent) -> None:
        if event.page_number > self.page_count:
            self.page_count = event.page_number

        if event.image_id:
            # last observation wins
            self.image_top_positions[event.image_id] = event.top

        if event.top is None or event.height is None:
            return
        page_offset = (event.page_number - 1) * self.usable_height
        bottom = page_offset + event.top + event.height
        if bottom > self.max_extent:
            self.max_extent = bottom

    def result(self) -> MeasurementResult:
        return MeasurementResult(
            max_extent=self.max_extent,
            image_top_positions=dict(self.image_top_positions),
            page_count=self.page_count,
        )


def measure_content(nodes, page_width: float, margins: Margins, images: dict,
                    fonts: FontConfig, fit_box: FitBox,
                    canvas_height: float = config.MAX_PAGE_HEIGHT) -> MeasurementResult:
    """Dry-run layout of ``nodes`` and report the furthest extent reached.

    Errors raised by the layout engine propagate unchanged.
    """
    if not nodes:
        return MeasurementResult()

    collector = ExtentCollector(canvas_height, margins)
    render_pdf(
        nodes,
        PageGeometry(page_width, canvas_height),
        margins,
        images,
        fonts,
        fit_box,
        observer=collector,
    )
    result = collector.result()

    logger.debug("Measured extent %.1fpt over %d page(s), %d image position(s)",
                 result.max_extent, result.page_count, len(result.image_top_positions))
    if result.page_count > 1:
        logger.warning("Content spilled onto %d pages of the %.0fpt canvas",
                       result.page_count, canvas_height)
    return result
