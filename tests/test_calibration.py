"""
Tests for the preview/batch color calibration check.

These tests verify:
- Delta E properties (identity, symmetry, ordering)
- The reference image layout
- The preview emulator on known values
- Preview vs batch agreement per preset and intensity, against the
  table of known divergent samples
"""

import logging

import numpy as np
import pytest

from generators.filters import (
    DELTA_E_THRESHOLD,
    FILTER_PRESETS,
    NO_PREVIEW_FILTER,
    get_filter_by_id,
    project_to_preview,
    render_preview,
    run_calibration,
)
from generators.filters.calibration import (
    CALIBRATION_INTENSITIES,
    REFERENCE_BANDS,
    calibration_image,
    delta_e,
    rgb_to_lab,
    sample_color,
)

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
GRAY = (128, 128, 128)

# (preset, intensity, band) -> delta E for every sample over DELTA_E_THRESHOLD.
# Grayscale zeroes batch saturation, the batch path has no sepia primitive,
# and its contrast slope is steeper than CSS contrast().
KNOWN_DIVERGENCES = {
    ("noir", 25, "red"): 72.4,
    ("noir", 50, "red"): 36.6,
    ("noir", 75, "red"): 10.3,
    ("noir", 100, "red"): 4.7,
    ("sepia", 25, "red"): 6.7,
    ("sepia", 25, "gray"): 4.2,
    ("sepia", 50, "red"): 15.7,
    ("sepia", 50, "gray"): 8.0,
    ("sepia", 75, "red"): 24.6,
    ("sepia", 75, "gray"): 11.3,
    ("sepia", 100, "red"): 33.0,
    ("sepia", 100, "gray"): 14.0,
    ("vintage", 50, "red"): 2.7,
    ("vintage", 50, "white"): 2.5,
    ("vintage", 50, "gray"): 4.2,
    ("vintage", 75, "red"): 4.7,
    ("vintage", 75, "white"): 3.7,
    ("vintage", 75, "gray"): 5.0,
    ("vintage", 75, "black"): 3.1,
    ("vintage", 100, "red"): 5.7,
    ("vintage", 100, "white"): 4.6,
    ("vintage", 100, "gray"): 6.0,
    ("vintage", 100, "black"): 5.6,
    ("warm", 50, "gray"): 2.7,
    ("warm", 75, "gray"): 4.0,
    ("warm", 100, "gray"): 5.4,
    ("muted", 75, "red"): 2.9,
    ("muted", 100, "red"): 3.3,
    ("muted", 100, "white"): 2.4,
}


def calibration_cases():
    for preset in FILTER_PRESETS:
        for intensity in CALIBRATION_INTENSITIES:
            yield pytest.param(preset, intensity, id=f"{preset.id.value}-{intensity}")


def expected_divergences(preset_id: str, intensity: int) -> dict[str, float]:
    return {
        band: value
        for (known_preset, known_intensity, band), value in KNOWN_DIVERGENCES.items()
        if known_preset == preset_id and known_intensity == intensity
    }


class TestDeltaE:
    """Test suite for the CIE76 color difference."""

    @pytest.mark.parametrize("color", [WHITE, BLACK, GRAY, (255, 0, 0), (12, 200, 99)])
    def test_identity(self, color):
        assert delta_e(color, color) == 0

    def test_symmetry(self):
        a, b = (255, 0, 0), (20, 130, 240)
        assert delta_e(a, b) == pytest.approx(delta_e(b, a))

    def test_ordering(self):
        assert delta_e(WHITE, BLACK) > delta_e(WHITE, GRAY)

    def test_lab_of_white_and_black(self):
        l_white, a_white, b_white = rgb_to_lab(WHITE)
        assert l_white == pytest.approx(100, abs=0.01)
        assert a_white == pytest.approx(0, abs=0.01)
        assert b_white == pytest.approx(0, abs=0.01)
        assert rgb_to_lab(BLACK)[0] == pytest.approx(0, abs=0.01)

    def test_one_step_is_invisible(self):
        assert delta_e((128, 128, 128), (129, 128, 128)) < DELTA_E_THRESHOLD


class TestReferenceImage:
    """Test suite for the synthetic reference image."""

    def test_bands_sample_their_colors(self):
        image = calibration_image()
        assert image.shape == (100, 100, 4)
        assert np.all(image[:, :, 3] == 255)
        for band in REFERENCE_BANDS:
            assert sample_color(image, *band.sample) == band.color

    def test_band_order(self):
        assert [band.name for band in REFERENCE_BANDS] == ["red", "white", "gray", "black"]


class TestPreviewEmulator:
    """Test suite for the CSS filter emulation."""

    def test_noop_returns_input(self):
        image = calibration_image()
        assert render_preview(image, NO_PREVIEW_FILTER) is image

    def test_full_grayscale_is_neutral(self):
        descriptor = project_to_preview(get_filter_by_id("noir").parameters, 100)
        rendered = render_preview(calibration_image(), descriptor)
        r, g, b = sample_color(rendered, 50, 12)
        assert r == g == b

    def test_brightness_clamps(self):
        descriptor = project_to_preview(get_filter_by_id("noir").parameters, 100)
        rendered = render_preview(calibration_image(), descriptor)
        assert sample_color(rendered, 50, 37) == WHITE


class TestCalibration:
    """Test suite for preview vs batch agreement."""

    @pytest.mark.parametrize("preset,intensity", list(calibration_cases()))
    def test_preset_against_threshold(self, preset, intensity):
        """Test that exactly the known bands exceed the threshold, by their known distance."""
        report = run_calibration(presets=[preset], intensities=[intensity])
        assert len(report.samples) == len(REFERENCE_BANDS)

        expected = expected_divergences(preset.id.value, intensity)
        failing = {s.band: s.delta_e for s in report.failures}

        assert set(failing) == set(expected), report.to_dict()
        for band, value in failing.items():
            assert value == pytest.approx(expected[band], abs=0.05), band
        assert report.passed is (not expected)

    def test_full_run_failure_set(self):
        report = run_calibration()

        assert len(report.samples) == len(FILTER_PRESETS) * len(CALIBRATION_INTENSITIES) * len(REFERENCE_BANDS)
        assert {(s.preset_id, s.intensity, s.band) for s in report.failures} == set(KNOWN_DIVERGENCES)
        assert len(report.failures) == 29
        assert report.max_delta_e == pytest.approx(72.39, abs=0.01)

    def test_worst_sample(self):
        """Test that partial grayscale keeps red in the preview but fully desaturates the batch output."""
        report = run_calibration(presets=[get_filter_by_id("noir")], intensities=[25])
        red = next(s for s in report.samples if s.band == "red")

        assert red.preview_rgb == (171, 20, 20)
        assert red.batch_rgb == (50, 50, 50)

    @pytest.mark.parametrize("preset_id", ["cool", "vivid"])
    def test_presets_meeting_contract(self, preset_id):
        report = run_calibration(presets=[get_filter_by_id(preset_id)])
        assert report.passed
        assert report.max_delta_e < DELTA_E_THRESHOLD

    def test_zero_intensity_is_exact(self):
        report = run_calibration(intensities=[0])
        assert report.passed
        assert report.max_delta_e == 0

    def test_report_flags_sepia_drift(self):
        """Test that the report names the sample that drifts."""
        report = run_calibration(presets=[get_filter_by_id("sepia")], intensities=[100])
        failing_bands = {s.band for s in report.failures}
        assert failing_bands == {"red", "gray"}
        assert not report.passed

        summary = report.to_dict()
        assert summary["passed"] is False
        assert summary["threshold"] == DELTA_E_THRESHOLD
        assert {f["preset"] for f in summary["failures"]} == {"sepia"}

    def test_full_run_logs_summary(self, caplog):
        with caplog.at_level(logging.INFO, logger="generators.filters.calibration"):
            run_calibration()

        messages = [r.getMessage() for r in caplog.records if "[CALIBRATION]" in r.getMessage()]
        assert messages
        assert "29/140" in messages[-1]
