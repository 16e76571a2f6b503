"""
Dot Gain Module

Press-specific dot gain curves (input coverage % -> printed coverage %)
and their piecewise-linear inverse used to compensate mixed colors.
"""

import logging
from typing import Dict

import numpy as np

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor

logger = logging.getLogger(__name__)

DOT_GAIN_CURVES: Dict[str, Dict[int, float]] = {
    "offset": {10: 13, 20: 25, 30: 36, 40: 46, 50: 56, 60: 66, 70: 76, 80: 86, 90: 95},
    "flexo": {10: 15, 20: 28, 30: 40, 40: 50, 50: 60, 60: 70, 70: 80, 80: 88, 90: 96},
    "digital": {10: 11, 20: 22, 30: 33, 40: 44, 50: 55, 60: 65, 70: 75, 80: 85, 90: 94},
}


def _curve(print_method: str):
    try:
        curve = DOT_GAIN_CURVES[print_method]
    except KeyError as e:
        raise InputError(f"Unknown print method: {print_method} (use {sorted(DOT_GAIN_CURVES)})") from e
    keys = sorted(curve)
    return np.array(keys, dtype=float), np.array([curve[k] for k in keys], dtype=float)


def apply_dot_gain(coverage: float, print_method: str = "offset") -> float:
    """Printed coverage (%) for a given input coverage (%)."""
    inputs, outputs = _curve(print_method)
    if coverage <= 0:
        return 0.0
    if coverage < inputs[0]:
        return float(coverage * outputs[0] / inputs[0])
    if coverage > inputs[-1]:
        # linear towards 100 -> 100
        span = (coverage - inputs[-1]) / (100.0 - inputs[-1])
        return float(min(outputs[-1] + span * (100.0 - outputs[-1]), 100.0))
    return float(np.interp(coverage, inputs, outputs))


def compensate_dot_gain(target: float, print_method: str = "offset") -> float:
    """
    Input coverage (%) that prints as `target` coverage.

    Piecewise-linear inverse of the press curve.
    Below the first calibration point the first segment ratio is used
    (first_input * target / first_output); above the last point the
    result saturates at 100.
    """
    inputs, outputs = _curve(print_method)
    if target <= 0:
        return 0.0
    if target < outputs[0]:
        return float(inputs[0] * target / outputs[0])
    if target > outputs[-1]:
        return 100.0
    return float(np.interp(target, outputs, inputs))


def compensate_lab(lab: LabColor, coverage: float, print_method: str = "offset") -> LabColor:
    """
    Adjust a mixed color for press dot gain.

    Args:
        lab: mixed color
        coverage: average ink coverage (%)
        print_method: "offset", "flexo" or "digital"

    Returns:
        Lab with L lifted by (100 - L)(1 - ratio) * 0.1 and a*/b* scaled
        by ratio, where ratio = compensated / coverage.
    """
    if coverage <= 0:
        return lab
    ratio = compensate_dot_gain(coverage, print_method) / coverage
    L = lab.L + (100.0 - lab.L) * (1.0 - ratio) * 0.1
    return LabColor(L, lab.a * ratio, lab.b * ratio).clamped()
