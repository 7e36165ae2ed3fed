"""
image_extent.py - Rendered size of images fitted into the fixed fit box.

The layout stage draws every image at ``rendered_size`` and the extent
corrector estimates heights with ``image_footprints``; both read the same
FitBox so the two computations agree.
"""
import logging
import math

import config
from models import FitBox, ImageDimensions, Margins, NodeKind, iter_nodes

logger = logging.getLogger(__name__)


def fit_box_for(page_width: float, margins: Margins) -> FitBox:
    """The image fit box for a page, narrowed to the usable frame width."""
    usable = page_width - margins.left - margins.right
    return FitBox(min(float(config.IMAGE_FIT_WIDTH), max(usable, 0.0)),
                  float(config.IMAGE_FIT_HEIGHT))


def _check(dims: ImageDimensions):
    for value in (dims.width, dims.height):
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"Invalid image dimensions {dims.width}x{dims.height}")
    if dims.height == 0:
        raise ValueError(f"Image height must be positive (got {dims.width}x{dims.height})")


def rendered_size(dims: ImageDimensions, box: FitBox) -> tuple:
    """Width and height the image is drawn at inside ``box``.

    Wider-than-box images are scaled to the box width; everything else is
    limited by the box height and never enlarged.
    """
    _check(dims)
    aspect = dims.width / dims.height
    box_aspect = box.width / box.height

    if aspect > box_aspect:
        return box.width, box.width / aspect
    height = float(min(dims.height, box.height))
    return height * aspect, height


def rendered_height(dims: ImageDimensions, box: FitBox) -> float:
    return rendered_size(dims, box)[1]


def image_footprint(dims: ImageDimensions, box: FitBox, margin=None) -> float:
    """Rendered height plus the image's top and bottom margin."""
    margin = margin if margin is not None else config.MARGINS["image"]
    return rendered_height(dims, box) + margin[1] + margin[3]


def image_footprints(nodes, dimensions: dict, box: FitBox, margin=None) -> dict:
    """Footprint of every image referenced anywhere in the content tree.

    Images without usable dimensions are left out.
    """
    footprints = {}
    for node in iter_nodes(nodes):
        if node.kind != NodeKind.IMAGE or not node.image:
            continue
        dims = dimensions.get(node.image)
        if dims is None:
            continue
        try:
            footprints[node.image] = image_footprint(dims, box, margin)
        except ValueError as e:
            logger.warning("Skipping image %s: %s", node.image, e)
    return footprints
