"""
Color Space Conversion Tests

Tests for Lab ↔ XYZ ↔ sRGB conversions.
"""

import itertools

import pytest

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor, XYZColor, require_valid_lab
from inkmix.utils.color_space import lab_to_hex, lab_to_rgb, lab_to_xyz, rgb_to_lab, xyz_to_lab

SAMPLE_COLORS = [
    LabColor(L, a, b)
    for L, a, b in itertools.product([0.0, 5.0, 25.0, 50.0, 75.0, 100.0], [-128.0, -40.0, 0.0, 60.0, 127.0], [-128.0, -10.0, 0.0, 90.0, 127.0])
]


class TestLabXyzRoundTrip:
    """xyz_to_lab(lab_to_xyz(c)) reconstructs c"""

    @pytest.mark.parametrize("illuminant", ["D50", "D65"])
    def test_round_trip(self, illuminant):
        for color in SAMPLE_COLORS:
            back = xyz_to_lab(lab_to_xyz(color, illuminant), illuminant)
            assert abs(back.L - color.L) < 1e-3
            assert abs(back.a - color.a) < 1e-3
            assert abs(back.b - color.b) < 1e-3

    def test_reference_white_maps_to_white(self):
        """L=100, a=b=0 is the reference white (Y = 1)"""
        xyz = lab_to_xyz(LabColor(100.0, 0.0, 0.0), "D65")
        assert abs(xyz.X - 0.95047) < 1e-6
        assert abs(xyz.Y - 1.0) < 1e-6
        assert abs(xyz.Z - 1.08883) < 1e-6

    def test_mismatched_white_does_not_round_trip(self):
        """Forward and inverse must use the same reference white"""
        color = LabColor(60.0, 20.0, -30.0)
        back = xyz_to_lab(lab_to_xyz(color, "D50"), "D65")
        assert abs(back.b - color.b) > 1.0

    def test_unknown_illuminant(self):
        with pytest.raises(InputError):
            lab_to_xyz(LabColor(50.0, 0.0, 0.0), "A")

    def test_dark_colors_use_linear_segment(self):
        """Below the (6/29)^3 breakpoint the linear segment is used"""
        xyz = XYZColor(0.001, 0.001, 0.001)
        lab = xyz_to_lab(xyz)
        assert 0.0 < lab.L < 2.0


class TestRgbConversion:
    """sRGB conversions (D65)"""

    def test_white(self):
        assert lab_to_rgb(LabColor(100.0, 0.0, 0.0)) == (255, 255, 255)

    def test_black(self):
        assert lab_to_rgb(LabColor(0.0, 0.0, 0.0)) == (0, 0, 0)

    def test_rgb_round_trip(self):
        for rgb in [(255, 0, 0), (0, 128, 255), (12, 200, 34), (128, 128, 128)]:
            back = lab_to_rgb(rgb_to_lab(rgb))
            assert all(abs(x - y) <= 1 for x, y in zip(back, rgb))

    def test_gray_is_neutral(self):
        lab = rgb_to_lab((128, 128, 128))
        assert abs(lab.a) < 0.5
        assert abs(lab.b) < 0.5

    def test_out_of_gamut_is_clipped(self):
        rgb = lab_to_rgb(LabColor(50.0, 127.0, -128.0))
        assert all(0 <= c <= 255 for c in rgb)

    def test_hex(self):
        assert lab_to_hex(LabColor(100.0, 0.0, 0.0)) == "#FFFFFF"

    def test_invalid_rgb(self):
        with pytest.raises(InputError):
            rgb_to_lab((256, 0, 0))
        with pytest.raises(InputError):
            rgb_to_lab((1, 2))


class TestLabValidation:
    def test_valid(self):
        assert require_valid_lab((50, 10, -10)) == LabColor(50.0, 10.0, -10.0)

    def test_dict_input(self):
        assert require_valid_lab({"L": 50, "a": 1, "b": 2}) == LabColor(50.0, 1.0, 2.0)

    @pytest.mark.parametrize("values", [(101, 0, 0), (-1, 0, 0), (50, 130, 0), (50, 0, -129), (float("nan"), 0, 0)])
    def test_out_of_range(self, values):
        with pytest.raises(InputError):
            require_valid_lab(values)

    def test_wrong_length(self):
        with pytest.raises(InputError):
            require_valid_lab((50, 0))

    def test_clamped(self):
        assert LabColor(120.0, -200.0, 200.0).clamped() == LabColor(100.0, -128.0, 127.0)
