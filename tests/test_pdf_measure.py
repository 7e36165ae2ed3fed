"""Tests for the measurement pass."""
import pytest

from image_extent import fit_box_for
from image_header import read_image_dimensions
from models import (
    ContentNode,
    InlineSpan,
    LayoutEvent,
    LoadedImage,
    Margins,
    NodeKind,
)
from pdf_measure import ExtentCollector, measure_content

PAGE_WIDTH = 595


def paragraph(text: str) -> ContentNode:
    return ContentNode(NodeKind.TEXT, spans=[InlineSpan(text)], margin=(0, 5, 0, 5))


class TestExtentCollector:

    def test_tracks_furthest_bottom(self):
        collector = ExtentCollector(1000, Margins(40, 40, 40, 40))
        collector(LayoutEvent(1, 40, 20))
        collector(LayoutEvent(1, 70, 50))
        collector(LayoutEvent(1, 60, 5))
        result = collector.result()
        assert result.max_extent == 120
        assert result.page_count == 1
        assert result.image_top_positions == {}

    def test_later_pages_are_stacked(self):
        collector = ExtentCollector(1000, Margins(40, 40, 40, 40))
        collector(LayoutEvent(1, 40, 900))
        collector(LayoutEvent(2, 40, 100))
        result = collector.result()
        assert result.page_count == 2
        assert result.max_extent == 920 + 40 + 100

    def test_image_top_last_observation_wins(self):
        collector = ExtentCollector(1000, Margins(40, 40, 40, 40))
        collector(LayoutEvent(1, 100, 50, image_id="img_0"))
        collector(LayoutEvent(1, 300, 50, image_id="img_0"))
        assert collector.result().image_top_positions == {"img_0": 300}


def test_empty_tree_measures_zero(std_fonts, margins):
    result = measure_content([], PAGE_WIDTH, margins, {}, std_fonts,
                             fit_box_for(PAGE_WIDTH, margins))
    assert result.max_extent == 0
    assert result.page_count == 0
    assert result.image_top_positions == {}


def test_more_content_measures_taller(std_fonts, margins):
    box = fit_box_for(PAGE_WIDTH, margins)
    short = measure_content([paragraph("One line.")], PAGE_WIDTH, margins, {}, std_fonts, box)
    long = measure_content([paragraph("One line.")] * 20, PAGE_WIDTH, margins, {}, std_fonts, box)
    assert short.max_extent > margins.top
    assert long.max_extent > short.max_extent
    assert long.page_count == 1


def test_image_position_is_recorded(std_fonts, margins, png_factory):
    data = png_factory(1000, 500)
    images = {"img_0": LoadedImage("img_0", data, "image/png",
                                   read_image_dimensions(data, "image/png"))}
    nodes = [
        paragraph("Above the picture."),
        ContentNode(NodeKind.IMAGE, image="img_0", margin=(0, 10, 0, 10)),
    ]
    box = fit_box_for(PAGE_WIDTH, margins)
    result = measure_content(nodes, PAGE_WIDTH, margins, images, std_fonts, box)

    assert "img_0" in result.image_top_positions
    top = result.image_top_positions["img_0"]
    assert top > margins.top
    # the image is drawn 250pt tall and is the last node
    assert result.max_extent == pytest.approx(top + 250, abs=0.01)


def test_children_of_stacks_are_observed(std_fonts, margins):
    box = fit_box_for(PAGE_WIDTH, margins)
    flat = measure_content([paragraph("a"), paragraph("b")], PAGE_WIDTH, margins, {},
                           std_fonts, box)
    stacked = measure_content(
        [ContentNode(NodeKind.STACK, children=[paragraph("a"), paragraph("b")])],
        PAGE_WIDTH, margins, {}, std_fonts, box)
    assert stacked.max_extent == pytest.approx(flat.max_extent)
