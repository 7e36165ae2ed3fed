"""
pdf_resize.py - Cut the oversized rendered page down to the content height.

Uses pikepdf on the finished PDF:
- MediaBox (and any other page boxes) of page 1 set to the target height
- page content shifted down so the top-anchored layout stays in view
- link annotation rectangles shifted with the content
- every page after the first removed

The renderer places content from the top of the canvas while PDF user
space grows upward from the bottom edge, hence the shift.
"""
import logging
from io import BytesIO

import pikepdf

logger = logging.getLogger(__name__)

_PAGE_BOXES = ("/MediaBox", "/CropBox", "/BleedBox", "/TrimBox", "/ArtBox")


def final_offset(target_height: float, oversized_height: float) -> float:
    """Vertical shift that keeps top-anchored content at the top of the shorter page."""
    return target_height - oversized_height


def resize_to_content(pdf_bytes: bytes, target_height: float, oversized_height: float) -> bytes:
    """Resize the first page of ``pdf_bytes`` to ``target_height`` points."""
    try:
        pdf = pikepdf.Pdf.open(BytesIO(pdf_bytes))
    except pikepdf.PasswordError:
        logger.error("Rendered PDF is encrypted, cannot resize")
        raise
    except Exception as e:
        logger.error("Could not open rendered PDF for resizing: %s", e)
        raise

    with pdf:
        if len(pdf.pages) == 0:
            logger.warning("Rendered PDF has no pages, skipping resize")
            return pdf_bytes

        page = pdf.pages[0]
        dy = final_offset(target_height, oversized_height)

        _set_page_height(page, target_height)
        _translate_content(pdf, page, dy)
        _shift_annotations(page, dy)
        _drop_extra_pages(pdf)

        out = BytesIO()
        pdf.save(out)
        return out.getvalue()


# ---------------------------------------------------------------------------
# Page-level edits
# ---------------------------------------------------------------------------

def _set_page_height(page, height: float):
    x0, y0, x1, _ = [float(v) for v in page.mediabox]
    for name in _PAGE_BOXES:
        if name == "/MediaBox" or name in page.obj:
            page.obj[pikepdf.Name(name)] = pikepdf.Array([x0, y0, x1, y0 + height])
    logger.debug("Page box set to %.1f x %.1f", x1 - x0, height)


def _translate_content(pdf: pikepdf.Pdf, page, dy: float):
    """Wrap the page content in a q/cm/Q block that shifts it by ``dy``."""
    prefix = pikepdf.Stream(pdf, f"q 1 0 0 1 0 {dy:.4f} cm\n".encode("ascii"))
    suffix = pikepdf.Stream(pdf, b"\nQ\n")
    page.contents_add(prefix, prepend=True)
    page.contents_add(suffix)


def _shift_annotations(page, dy: float):
    annots = page.obj.get("/Annots")
    if not annots:
        return
    for annot in annots:
        rect = annot.get("/Rect")
        if rect is None:
            continue
        x0, y0, x1, y1 = [float(v) for v in rect]
        annot[pikepdf.Name.Rect] = pikepdf.Array([x0, y0 + dy, x1, y1 + dy])


def _drop_extra_pages(pdf: pikepdf.Pdf):
    extra = len(pdf.pages) - 1
    if extra > 0:
        logger.warning("Removing %d extra page(s) from rendered PDF", extra)
    while len(pdf.pages) > 1:
        del pdf.pages[-1]
