"""Tests for cutting the oversized page down to the target height."""
from io import BytesIO

import pikepdf
import pytest
from reportlab.pdfgen import canvas

from pdf_resize import final_offset, resize_to_content

WIDTH = 200
OVERSIZED = 1000


def make_pdf(pages: int = 1, link: bool = False) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=(WIDTH, OVERSIZED))
    for n in range(pages):
        c.drawString(10, OVERSIZED - 30, f"Page {n + 1}")
        if link and n == 0:
            c.linkURL("https://example.com", (10, 900, 100, 920), relative=0)
        c.showPage()
    c.save()
    return buf.getvalue()


def open_pdf(data: bytes) -> pikepdf.Pdf:
    return pikepdf.Pdf.open(BytesIO(data))


def test_final_offset():
    assert final_offset(600, 28346) == -27746
    assert final_offset(500, 500) == 0


def test_mediabox_set_to_target_height():
    out = resize_to_content(make_pdf(), 300, OVERSIZED)
    with open_pdf(out) as pdf:
        assert len(pdf.pages) == 1
        assert [float(v) for v in pdf.pages[0].mediabox] == [0, 0, WIDTH, 300]


def test_content_translated_exactly_once():
    out = resize_to_content(make_pdf(), 300, OVERSIZED)
    with open_pdf(out) as pdf:
        instructions = pikepdf.parse_content_stream(pdf.pages[0])
        operators = [str(inst.operator) for inst in instructions]

        assert operators[0] == "q"
        assert operators[1] == "cm"
        assert [float(v) for v in instructions[1].operands] == [1, 0, 0, 1, 0, -700]
        assert operators[-1] == "Q"
        shifts = [inst for inst in instructions
                  if str(inst.operator) == "cm"
                  and [float(v) for v in inst.operands] == [1, 0, 0, 1, 0, -700]]
        assert len(shifts) == 1


def test_same_height_translates_by_zero():
    out = resize_to_content(make_pdf(), OVERSIZED, OVERSIZED)
    with open_pdf(out) as pdf:
        instructions = pikepdf.parse_content_stream(pdf.pages[0])
        assert [float(v) for v in instructions[1].operands] == [1, 0, 0, 1, 0, 0]
        assert float(pdf.pages[0].mediabox[3]) == OVERSIZED


def test_extra_pages_removed():
    out = resize_to_content(make_pdf(pages=3), 300, OVERSIZED)
    with open_pdf(out) as pdf:
        assert len(pdf.pages) == 1


def test_other_page_boxes_follow_mediabox():
    with open_pdf(make_pdf()) as pdf:
        pdf.pages[0].obj[pikepdf.Name.CropBox] = pikepdf.Array([0, 0, WIDTH, OVERSIZED])
        buf = BytesIO()
        pdf.save(buf)

    out = resize_to_content(buf.getvalue(), 300, OVERSIZED)
    with open_pdf(out) as pdf:
        page = pdf.pages[0]
        assert [float(v) for v in page.obj.CropBox] == [0, 0, WIDTH, 300]
        assert "/TrimBox" not in page.obj


def test_link_annotations_move_with_content():
    out = resize_to_content(make_pdf(link=True), 300, OVERSIZED)
    with open_pdf(out) as pdf:
        annots = pdf.pages[0].obj.Annots
        assert len(annots) == 1
        assert [float(v) for v in annots[0].Rect] == pytest.approx([10, 200, 100, 220])


def test_zero_pages_returned_unchanged():
    empty = pikepdf.new()
    buf = BytesIO()
    empty.save(buf)
    data = buf.getvalue()
    assert resize_to_content(data, 300, OVERSIZED) == data


def test_garbage_input_raises():
    with pytest.raises(pikepdf.PdfError):
        resize_to_content(b"not a pdf", 300, OVERSIZED)
