"""Tests for extent correction and the target page height."""
import pytest

from extent_corrector import correct_extent, target_page_height
from models import Margins, MeasurementResult


class TestCorrectExtent:

    def test_no_images_keeps_measured_extent(self):
        measurement = MeasurementResult(max_extent=812.4)
        correction = correct_extent(measurement, {})
        assert correction.corrected == 812.4
        assert correction.correction == 0
        assert correction.strategy == "none"

    def test_target_height_without_images(self):
        measurement = MeasurementResult(max_extent=812.4)
        correction = correct_extent(measurement, {})
        assert target_page_height(Margins(40, 40, 40, 40), correction.corrected) == \
            pytest.approx(40 + 812.4 + 40 + 25)

    def test_image_reaching_past_measured_extent(self):
        measurement = MeasurementResult(max_extent=500, image_top_positions={"img_0": 400})
        correction = correct_extent(measurement, {"img_0": 270})
        assert correction.strategy == "positions"
        assert correction.correction == 170
        assert correction.corrected == 670

    def test_image_inside_measured_extent_needs_no_correction(self):
        measurement = MeasurementResult(max_extent=1000, image_top_positions={"img_0": 100})
        correction = correct_extent(measurement, {"img_0": 270})
        assert correction.correction == 0
        assert correction.corrected == 1000

    def test_furthest_image_decides(self):
        measurement = MeasurementResult(
            max_extent=900,
            image_top_positions={"img_0": 100, "img_1": 800, "img_2": 300},
        )
        footprints = {"img_0": 420, "img_1": 270, "img_2": 420}
        correction = correct_extent(measurement, footprints)
        assert correction.corrected == 1070

    @pytest.mark.parametrize("max_extent,top,footprint", [
        (0, 0, 10),
        (100, 0, 10),
        (100, 95, 10),
        (5000, 4990, 420),
        (10, 500, 1),
    ])
    def test_correction_is_never_negative(self, max_extent, top, footprint):
        measurement = MeasurementResult(max_extent=max_extent, image_top_positions={"img_0": top})
        correction = correct_extent(measurement, {"img_0": footprint})
        assert correction.correction >= 0
        assert correction.corrected >= max_extent

    def test_position_without_footprint_is_ignored(self):
        measurement = MeasurementResult(max_extent=300, image_top_positions={"img_9": 290})
        correction = correct_extent(measurement, {"img_0": 270})
        assert correction.strategy == "positions"
        assert correction.corrected == 300

    def test_fallback_without_positions(self):
        measurement = MeasurementResult(max_extent=300)
        correction = correct_extent(measurement, {"img_0": 270, "img_1": 230})
        assert correction.strategy == "fallback"
        assert correction.correction == pytest.approx(0.22 * 500)
        assert correction.corrected == pytest.approx(300 + 110)

    def test_fallback_grows_with_footprints(self):
        measurement = MeasurementResult(max_extent=300)
        small = correct_extent(measurement, {"img_0": 100})
        large = correct_extent(measurement, {"img_0": 100, "img_1": 100})
        assert 0 < small.correction < large.correction


def test_target_height_custom_padding():
    assert target_page_height(Margins(20, 20, 20, 20), 100, padding=0) == 140


def test_trailing_image_adds_its_margins():
    # measured bottom is the drawn image bottom; the footprint adds both 10pt margins
    measurement = MeasurementResult(max_extent=350 + 250, image_top_positions={"img_0": 350})
    correction = correct_extent(measurement, {"img_0": 270})
    assert correction.correction == 20
