"""
extent_corrector.py - Reconcile the measured extent with the images' own footprints.

Image heights seen through the layout observer are not trusted, so every
image's footprint is recomputed from its pixel size and checked against the
position where the engine started placing it.
"""
import logging

import config
from models import ExtentCorrection, Margins, MeasurementResult

logger = logging.getLogger(__name__)


def correct_extent(measurement: MeasurementResult, footprints: dict) -> ExtentCorrection:
    """Corrected content height for a measured document.

    ``footprints`` maps image id to rendered height plus image margins.
    """
    measured = measurement.max_extent
    total_footprint = sum(footprints.values())
    positions = measurement.image_top_positions

    if positions and total_footprint > 0:
        # tops exclude the image top margin, footprints include it
        expected_bottoms = [
            top + footprints[image_id]
            for image_id, top in positions.items()
            if image_id in footprints
        ]
        max_expected = max(expected_bottoms, default=0.0)
        correction = max(max_expected - measured, 0.0)
        strategy = "positions"
    elif total_footprint > 0:
        correction = total_footprint * config.FALLBACK_FOOTPRINT_RATIO
        strategy = "fallback"
        logger.warning("No image positions captured; estimating %.1fpt from %d image(s)",
                       correction, len(footprints))
    else:
        correction = 0.0
        strategy = "none"

    logger.debug("Extent %.1fpt + correction %.1fpt (%s)", measured, correction, strategy)
    return ExtentCorrection(
        measured=measured,
        correction=correction,
        corrected=measured + correction,
        strategy=strategy,
    )


def target_page_height(margins: Margins, corrected_extent: float,
                       padding: float = config.BOTTOM_PADDING) -> float:
    """Final page height for a corrected content extent.

    The measured extent already includes the top margin offset, so the
    extra padding balances the visible bottom margin.
    """
    return margins.top + corrected_extent + margins.bottom + padding
