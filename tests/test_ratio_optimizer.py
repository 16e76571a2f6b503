"""
Unit tests for the ratio optimizer
"""

import numpy as np
import pytest

from inkmix.core.mixing_model import MixingModel, mix
from inkmix.core.ratio_optimizer import (
    OptimizerConfig,
    coordinate_probe,
    gradient_descent,
    normalize,
    optimize_ratios,
)
from inkmix.errors import InputError
from inkmix.schemas.color import LabColor
from inkmix.utils.color_delta import delta_e_cie2000

BLACK = LabColor(16.0, 0.0, 0.0)
WHITE = LabColor(95.0, 0.0, 0.0)
CYAN = LabColor(55.0, -37.0, -50.0)

LINEAR = MixingModel.linear()


def mixer(*inks):
    return lambda ratios: mix(list(inks), ratios, LINEAR)


class TestNormalize:
    def test_sum_to_one(self):
        r = normalize(np.array([2.0, 1.0, 1.0]))
        assert r.sum() == pytest.approx(1.0)

    def test_clamps_before_rescaling(self):
        r = normalize(np.array([1.5, -0.5]))
        assert r.tolist() == [1.0, 0.0]

    def test_all_zero_becomes_uniform(self):
        assert normalize(np.zeros(4)).tolist() == [0.25, 0.25, 0.25, 0.25]


class TestOptimizeRatios:
    def test_exact_mixture_converges_immediately(self):
        """Uniform start already matches a 50/50 gray"""
        result = optimize_ratios(2, LabColor(55.5, 0.0, 0.0), mixer(BLACK, WHITE))
        assert result.converged
        assert result.delta_e == pytest.approx(0.0, abs=1e-9)
        assert result.iterations == 1

    def test_gray_ratio(self):
        """16x + 95(1-x) = 40  ->  x = 55/79"""
        result = optimize_ratios(2, LabColor(40.0, 0.0, 0.0), mixer(BLACK, WHITE))
        assert sum(result.ratios) == pytest.approx(1.0, abs=1e-3)
        assert result.delta_e < 1.0
        assert result.ratios[0] == pytest.approx(55.0 / 79.0, abs=0.05)

    def test_ratios_in_unit_interval(self):
        result = optimize_ratios(3, LabColor(70.0, -20.0, -25.0), mixer(CYAN, WHITE, BLACK))
        assert sum(result.ratios) == pytest.approx(1.0, abs=1e-3)
        assert all(0.0 <= r <= 1.0 for r in result.ratios)

    def test_reported_delta_e_matches_ratios(self):
        """The best-seen vector is returned together with its own ΔE"""
        target = LabColor(70.0, -20.0, -25.0)
        fn = mixer(CYAN, WHITE, BLACK)
        result = optimize_ratios(3, target, fn)
        assert result.delta_e == pytest.approx(delta_e_cie2000(target, fn(list(result.ratios))), abs=1e-9)
        assert result.mixed == fn(list(result.ratios))

    def test_never_worse_than_uniform_start(self):
        target = LabColor(30.0, -10.0, -15.0)
        fn = mixer(CYAN, WHITE, BLACK)
        uniform = delta_e_cie2000(target, fn([1 / 3, 1 / 3, 1 / 3]))
        assert optimize_ratios(3, target, fn).delta_e <= uniform

    def test_single_ink(self):
        result = optimize_ratios(1, CYAN, mixer(CYAN))
        assert result.ratios == (1.0,)
        assert result.delta_e == 0.0
        assert result.iterations == 0

    def test_coordinate_method(self):
        config = OptimizerConfig(method="coordinate", max_iterations=300)
        result = optimize_ratios(2, LabColor(40.0, 0.0, 0.0), mixer(BLACK, WHITE), config)
        assert sum(result.ratios) == pytest.approx(1.0, abs=1e-3)
        assert result.delta_e < 1.0

    def test_empty_subset(self):
        with pytest.raises(InputError):
            optimize_ratios(0, CYAN, mixer())

    def test_unknown_method(self):
        with pytest.raises(InputError):
            optimize_ratios(2, CYAN, mixer(CYAN, WHITE), OptimizerConfig(method="annealing"))


class TestOptimizerPrimitives:
    def test_gradient_descent_tracks_best(self):
        """Zero iterations returns the starting point"""
        config = OptimizerConfig(max_iterations=0)
        result = gradient_descent(2, LabColor(40.0, 0.0, 0.0), mixer(BLACK, WHITE), config)
        assert result.ratios == (0.5, 0.5)
        assert result.iterations == 0

    def test_probe_from_initial(self):
        target = LabColor(40.0, 0.0, 0.0)
        start = delta_e_cie2000(target, mix([BLACK, WHITE], [0.9, 0.1], LINEAR))
        result = coordinate_probe(2, target, mixer(BLACK, WHITE), OptimizerConfig(), initial=[0.9, 0.1])
        assert result.delta_e < start

    def test_probe_stops_without_improvement(self):
        """Single-ink subsets cannot improve: renormalization undoes every step"""
        result = coordinate_probe(1, WHITE, mixer(CYAN), OptimizerConfig(tolerance=0.0))
        assert result.iterations == 1
        assert result.ratios == (1.0,)
