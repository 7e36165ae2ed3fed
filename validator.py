"""
validator.py - Check a generated PDF really is one page sized to its content.

pikepdf reads the page count and MediaBox; pdfminer.six lays out the page
and reports where text, figures and rules ended up. Everything must sit
inside the page after the resize.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

import pikepdf
from pdfminer.high_level import extract_pages
from pdfminer.layout import LAParams, LTTextContainer

import config

logger = logging.getLogger(__name__)


@dataclass
class InspectionIssue:
    """A single problem found in the output."""
    code: str
    description: str


@dataclass
class InspectionResult:
    """Inspection result for one PDF."""
    pdf_path: str
    page_count: int = 0
    width: float = 0.0
    height: float = 0.0
    expected_height: Optional[float] = None
    text_boxes: int = 0
    content_top: Optional[float] = None
    content_bottom: Optional[float] = None
    issues: list = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return not self.issues and self.error_message is None


def inspect_pdf(pdf_path: str, expected_height: Optional[float] = None,
                tolerance: float = config.PAGE_HEIGHT_TOLERANCE) -> InspectionResult:
    """Inspect the page geometry and content placement of ``pdf_path``."""
    result = InspectionResult(pdf_path=pdf_path, expected_height=expected_height)

    try:
        with pikepdf.Pdf.open(pdf_path) as pdf:
            result.page_count = len(pdf.pages)
            if result.page_count:
                x0, y0, x1, y1 = [float(v) for v in pdf.pages[0].mediabox]
                result.width = x1 - x0
                result.height = y1 - y0
    except pikepdf.PasswordError:
        result.error_message = "PDF is encrypted/password-protected."
        return result
    except Exception as e:
        logger.warning("Could not open %s for inspection: %s", pdf_path, e)
        result.error_message = f"Could not open PDF: {e}"
        return result

    if result.page_count != 1:
        result.issues.append(InspectionIssue(
            "page-count", f"Expected a single page, found {result.page_count}."))
    if result.page_count == 0:
        return result

    if expected_height is not None and abs(result.height - expected_height) > tolerance:
        result.issues.append(InspectionIssue(
            "page-height",
            f"Page height {result.height:.1f}pt differs from target {expected_height:.1f}pt."))

    _inspect_content(pdf_path, result, tolerance)
    return result


def _inspect_content(pdf_path: str, result: InspectionResult, tolerance: float):
    try:
        page = next(iter(extract_pages(pdf_path, page_numbers=[0], laparams=LAParams())), None)
    except Exception as e:
        logger.warning("pdfminer could not lay out %s: %s", pdf_path, e)
        result.error_message = f"Could not analyse page content: {e}"
        return
    if page is None:
        return

    tops, bottoms = [], []
    for element in page:
        if isinstance(element, LTTextContainer):
            if not element.get_text().strip():
                continue
            result.text_boxes += 1
        tops.append(element.y1)
        bottoms.append(element.y0)

    if not tops:
        return
    result.content_top = max(tops)
    result.content_bottom = min(bottoms)

    if result.content_top > result.height + tolerance:
        result.issues.append(InspectionIssue(
            "content-above-page",
            f"Content reaches {result.content_top:.1f}pt, above the {result.height:.1f}pt page."))
    if result.content_bottom < -tolerance:
        result.issues.append(InspectionIssue(
            "content-below-page",
            f"Content extends {-result.content_bottom:.1f}pt below the page."))


def format_inspection_report(result: InspectionResult) -> str:
    """Format an InspectionResult as a human-readable report."""
    lines = [
        f"PDF: {result.pdf_path}",
        f"Valid: {'YES' if result.is_valid else 'NO'}",
        f"Pages: {result.page_count}",
        f"Page size: {result.width:.1f} x {result.height:.1f}pt",
        f"Text boxes: {result.text_boxes}",
    ]
    if result.content_top is not None:
        lines.append(f"Content span: {result.content_bottom:.1f}pt .. {result.content_top:.1f}pt")

    if result.error_message:
        lines.append(f"Error: {result.error_message}")

    if result.issues:
        lines.append("\nIssues:")
        for issue in result.issues:
            lines.append(f"  - [{issue.code}] {issue.description}")

    return "\n".join(lines)
