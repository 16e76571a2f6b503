"""
Unit tests for Delta E formulas
"""

import itertools

import numpy as np
import pytest

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor
from inkmix.utils.color_delta import (
    delta_e,
    delta_e_cie1976,
    delta_e_cie1994,
    delta_e_cie2000,
    delta_e_cmc,
)

COLORS = [
    LabColor(L, a, b)
    for L, a, b in itertools.product([0.0, 10.0, 50.0, 95.0], [-80.0, -0.5, 0.0, 40.0], [-60.0, 0.0, 0.0001, 70.0])
]

# Sharma et al. (2005) CIEDE2000 test data (subset)
SHARMA_PAIRS = [
    ((50.0000, 2.6772, -79.7751), (50.0000, 0.0000, -82.7485), 2.0425),
    ((50.0000, 3.1571, -77.2803), (50.0000, 0.0000, -82.7485), 2.8615),
    ((50.0000, 2.8361, -74.0200), (50.0000, 0.0000, -82.7485), 3.4412),
    ((50.0000, -1.3802, -84.2814), (50.0000, 0.0000, -82.7485), 1.0000),
    ((50.0000, 0.0000, 0.0000), (50.0000, -1.0000, 2.0000), 2.3669),
    ((50.0000, 2.4900, -0.0010), (50.0000, -2.4900, 0.0009), 7.1792),
    ((50.0000, 2.5000, 0.0000), (73.0000, 25.0000, -18.0000), 27.1492),
    ((60.2574, -34.0099, 36.2677), (60.4626, -34.1751, 39.4387), 1.2644),
    ((22.7233, 20.0904, -46.6940), (23.0331, 14.9730, -42.5619), 2.0373),
    ((90.8027, -2.0831, 1.4410), (91.1528, -1.6435, 0.0447), 1.4441),
]


# ================================================================
# CIEDE2000
# ================================================================


class TestDeltaE2000:
    @pytest.mark.parametrize("lab1,lab2,expected", SHARMA_PAIRS)
    def test_reference_data(self, lab1, lab2, expected):
        """Matches published reference values"""
        assert abs(delta_e_cie2000(lab1, lab2) - expected) < 1e-4

    def test_accepts_labcolor_and_ndarray(self):
        a = LabColor(50.0, 2.6772, -79.7751)
        b = np.array([50.0, 0.0, -82.7485])
        assert abs(delta_e_cie2000(a, b) - 2.0425) < 1e-4

    def test_weights(self):
        """Doubling kL halves a pure lightness difference"""
        lab1, lab2 = (50.0, 0.0, 0.0), (60.0, 0.0, 0.0)
        assert abs(delta_e_cie2000(lab1, lab2, kL=2.0) - delta_e_cie2000(lab1, lab2) / 2) < 1e-9


# ================================================================
# Properties shared by all metrics
# ================================================================


class TestMetricProperties:
    @pytest.mark.parametrize("func", [delta_e_cie1976, delta_e_cie1994, delta_e_cie2000, delta_e_cmc])
    def test_zero_for_identical_colors(self, func):
        for color in COLORS:
            assert func(color, color) == pytest.approx(0.0, abs=1e-12)

    def test_cie76_symmetric(self):
        for c1, c2 in itertools.product(COLORS[:20], COLORS[20:40]):
            assert delta_e_cie1976(c1, c2) == delta_e_cie1976(c2, c1)

    def test_cie76_euclidean(self):
        assert delta_e_cie1976((50, 2.5, -10), (55, 3.5, -9)) == pytest.approx(np.sqrt(27))

    def test_cie94_reference_first_operand(self):
        """SC/SH use color 1 chroma: swapping operands may change the result"""
        c1, c2 = LabColor(50.0, 60.0, 0.0), LabColor(50.0, 0.0, 0.0)
        assert delta_e_cie1994(c1, c2) != pytest.approx(delta_e_cie1994(c2, c1))

    @pytest.mark.parametrize("func", [delta_e_cie1994, delta_e_cie2000, delta_e_cmc])
    def test_non_negative_and_finite(self, func):
        for c1, c2 in itertools.product(COLORS[::3], COLORS[1::3]):
            value = func(c1, c2)
            assert np.isfinite(value)
            assert value >= 0


# ================================================================
# CMC
# ================================================================


class TestDeltaECmc:
    def test_near_zero_chroma_reference(self):
        """Achromatic reference does not divide by zero"""
        assert np.isfinite(delta_e_cmc((50.0, 0.0, 0.0), (52.0, 1.0, -1.0)))

    def test_dark_reference_uses_constant_sl(self):
        """L < 16 uses SL = 0.511"""
        value = delta_e_cmc((10.0, 0.0, 0.0), (11.0, 0.0, 0.0), l=1.0, c=1.0)
        assert value == pytest.approx(1.0 / 0.511, rel=1e-6)

    def test_lightness_weight(self):
        """l=2 halves the lightness term compared to l=1"""
        lab1, lab2 = (50.0, 0.0, 0.0), (55.0, 0.0, 0.0)
        assert delta_e_cmc(lab1, lab2, l=2.0) == pytest.approx(delta_e_cmc(lab1, lab2, l=1.0) / 2)


class TestDispatcher:
    def test_default_is_cie2000(self):
        lab1, lab2 = SHARMA_PAIRS[0][:2]
        assert delta_e(lab1, lab2) == delta_e_cie2000(lab1, lab2)

    @pytest.mark.parametrize("method", ["cie76", "CIE94", "cie2000", "cmc"])
    def test_methods(self, method):
        assert delta_e((50, 0, 0), (50, 0, 0), method=method) == pytest.approx(0.0)

    def test_unknown_method(self):
        with pytest.raises(InputError):
            delta_e((50, 0, 0), (50, 0, 0), method="cie3000")
