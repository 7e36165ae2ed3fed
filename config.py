"""
config.py - Configuration constants for the markdown-to-single-page PDF pipeline.
"""

VERSION = "1.0.0"

# Points per millimetre
MM_TO_PT = 2.83465


def mm(value: float) -> int:
    """Millimetres to whole points, rounding halves up."""
    return int(value * MM_TO_PT + 0.5)


# Paper widths (height is decided per document)
PAPER_SIZES_MM = {
    "A1": 594,
    "A2": 420,
    "A3": 297,
    "A4": 210,
    "A5": 148,
    "B1": 707,
    "B2": 500,
    "B3": 353,
    "B4": 250,
    "B5": 176,
}
DEFAULT_PAPER_SIZE = "A4"

# Oversized canvas (10 m tall) used for both the measurement pass and the final render
MAX_PAGE_HEIGHT = mm(10000)

# Page margins in points (left, top, right, bottom)
MARGIN_PRESETS = {
    "default": (40, 40, 40, 40),
    "dense": (20, 20, 20, 20),
}
DEFAULT_MARGIN_PRESET = "default"

# Extra space under the content after the top-anchored resize
BOTTOM_PADDING = 25

# Box images are fitted into (aspect preserved, never upscaled on the height axis)
IMAGE_FIT_WIDTH = 500
IMAGE_FIT_HEIGHT = 400

# Correction used when the measurement pass recorded no image positions.
# Empirical, see DESIGN.md.
FALLBACK_FOOTPRINT_RATIO = 0.22

# Typography
HEADING_SIZES = (32, 28, 24, 20, 18, 16)
BODY_FONT_SIZE = 12
CODE_FONT_SIZE = 10
CODE_LABEL_FONT_SIZE = 8
LINE_HEIGHT = 1.4
CODE_LINE_HEIGHT = 1.3

# Block margins (left, top, right, bottom)
MARGINS = {
    "paragraph": (0, 5, 0, 5),
    "heading": (0, 20, 0, 10),
    "code_block": (0, 10, 0, 10),
    "code_label": (0, 0, 0, 4),
    "list": (0, 5, 0, 5),
    "list_item": (20, 2, 0, 2),
    "blockquote": (20, 5, 20, 5),
    "table": (0, 10, 0, 10),
    "image": (0, 10, 0, 10),
    "rule": (0, 15, 0, 15),
}

COLORS = {
    "text": "#333333",
    "heading": "#000000",
    "link": "#0066cc",
    "code_text": "#333333",
    "code_label": "#586069",
    "code_background": "#f6f8fa",
    "code_border": "#e1e4e8",
    "blockquote_border": "#dfe2e5",
    "blockquote_text": "#6a737d",
    "table_border": "#dfe2e5",
    "table_header_bg": "#f6f8fa",
    "rule": "#e1e4e8",
    "placeholder": "#999999",
}

CODE_BLOCK_PADDING = 10
TABLE_CELL_PADDING = 8
BLOCKQUOTE_BAR_WIDTH = 4
BLOCKQUOTE_GAP = 10

# Fallback fonts (reportlab standard Type 1 faces)
DEFAULT_FONT = "Helvetica"
DEFAULT_CODE_FONT = "Courier"

# Image loading
SUPPORTED_IMAGE_EXTENSIONS = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}
REMOTE_IMAGE_TIMEOUT = 15.0
REMOTE_IMAGE_USER_AGENT = f"md2pdf/{VERSION}"
IMAGE_LOAD_WORKERS = 8

# Output inspection tolerance in points
PAGE_HEIGHT_TOLERANCE = 0.5
