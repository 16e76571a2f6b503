"""
Color Delta E Calculation Module

CIE76 / CIE94 / CIEDE2000 / CMC l:c color difference implementations.
Scalar math-based implementation; these run inside the ratio optimizer
loop and are called thousands of times per search.

References:
- Sharma, G., Wu, W., & Dalal, E. N. (2005).
  "The CIEDE2000 color-difference formula: Implementation notes,
   supplementary test data, and mathematical observations."
  Color Research & Application, 30(1), 21-30.
- Clarke, F. J. J., McDonald, R., & Rigg, B. (1984).
  "Modification to the JPC79 colour-difference formula." (CMC l:c)
"""

import math
from typing import Callable, Dict, Sequence, Tuple, Union

import numpy as np

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor

LabLike = Union[LabColor, Tuple[float, float, float], Sequence[float], np.ndarray]

# Near-zero chroma guard for hue-angle dependent terms
CHROMA_EPSILON = 1e-6


def _unpack(lab: LabLike) -> Tuple[float, float, float]:
    if isinstance(lab, LabColor):
        return lab.L, lab.a, lab.b
    return float(lab[0]), float(lab[1]), float(lab[2])


def delta_e_cie2000(
    lab1: LabLike,
    lab2: LabLike,
    kL: float = 1.0,
    kC: float = 1.0,
    kH: float = 1.0,
) -> float:
    """
    CIEDE2000 color difference.

    Args:
        lab1: reference color (L*, a*, b*)
        lab2: sample color (L*, a*, b*)
        kL: lightness weight (default 1.0)
        kC: chroma weight (default 1.0)
        kH: hue weight (default 1.0)

    Returns:
        ΔE2000 (float)

    Examples:
        >>> round(delta_e_cie2000((50.0, 2.6772, -79.7751), (50.0, 0.0, -82.7485)), 4)
        2.0425
    """
    L1, a1, b1 = _unpack(lab1)
    L2, a2, b2 = _unpack(lab2)

    # 1. Chroma and G
    C1 = math.hypot(a1, b1)
    C2 = math.hypot(a2, b2)
    C_bar7 = ((C1 + C2) / 2.0) ** 7
    G = 0.5 * (1 - math.sqrt(C_bar7 / (C_bar7 + 25.0**7)))

    # 2. a', C', h'
    a1_prime = (1 + G) * a1
    a2_prime = (1 + G) * a2
    C1_prime = math.hypot(a1_prime, b1)
    C2_prime = math.hypot(a2_prime, b2)

    h1_prime = math.degrees(math.atan2(b1, a1_prime)) % 360.0 if C1_prime > CHROMA_EPSILON else 0.0
    h2_prime = math.degrees(math.atan2(b2, a2_prime)) % 360.0 if C2_prime > CHROMA_EPSILON else 0.0

    # 3. ΔL', ΔC', ΔH'
    delta_L_prime = L2 - L1
    delta_C_prime = C2_prime - C1_prime

    if C1_prime * C2_prime == 0:
        delta_h_prime = 0.0
    else:
        diff = h2_prime - h1_prime
        if abs(diff) <= 180:
            delta_h_prime = diff
        elif diff > 180:
            delta_h_prime = diff - 360
        else:
            delta_h_prime = diff + 360

    delta_H_prime = 2 * math.sqrt(C1_prime * C2_prime) * math.sin(math.radians(delta_h_prime / 2.0))

    # 4. Means
    L_bar_prime = (L1 + L2) / 2.0
    C_bar_prime = (C1_prime + C2_prime) / 2.0

    if C1_prime * C2_prime == 0:
        H_bar_prime = h1_prime + h2_prime
    else:
        sum_h = h1_prime + h2_prime
        if abs(h1_prime - h2_prime) <= 180:
            H_bar_prime = sum_h / 2.0
        elif sum_h < 360:
            H_bar_prime = (sum_h + 360) / 2.0
        else:
            H_bar_prime = (sum_h - 360) / 2.0

    # 5. Weighting functions
    T = (
        1.0
        - 0.17 * math.cos(math.radians(H_bar_prime - 30))
        + 0.24 * math.cos(math.radians(2 * H_bar_prime))
        + 0.32 * math.cos(math.radians(3 * H_bar_prime + 6))
        - 0.20 * math.cos(math.radians(4 * H_bar_prime - 63))
    )
    SL = 1 + ((0.015 * (L_bar_prime - 50) ** 2) / math.sqrt(20 + (L_bar_prime - 50) ** 2))
    SC = 1 + 0.045 * C_bar_prime
    SH = 1 + 0.015 * C_bar_prime * T

    # 6. Rotation term
    delta_theta = 30 * math.exp(-(((H_bar_prime - 275) / 25) ** 2))
    C_bar_prime7 = C_bar_prime**7
    RC = 2 * math.sqrt(C_bar_prime7 / (C_bar_prime7 + 25.0**7))
    RT = -math.sin(math.radians(2 * delta_theta)) * RC

    dL = delta_L_prime / (kL * SL)
    dC = delta_C_prime / (kC * SC)
    dH = delta_H_prime / (kH * SH)
    return math.sqrt(max(dL**2 + dC**2 + dH**2 + RT * dC * dH, 0.0))


def delta_e_cie1976(lab1: LabLike, lab2: LabLike) -> float:
    """
    CIE76 color difference (ΔE*ab), Euclidean distance in Lab.

    Examples:
        >>> round(delta_e_cie1976((50, 2.5, -10), (55, 3.5, -9)), 3)
        5.196
    """
    L1, a1, b1 = _unpack(lab1)
    L2, a2, b2 = _unpack(lab2)
    return math.sqrt((L2 - L1) ** 2 + (a2 - a1) ** 2 + (b2 - b1) ** 2)


def delta_e_cie1994(
    lab1: LabLike,
    lab2: LabLike,
    kL: float = 1.0,
    kC: float = 1.0,
    kH: float = 1.0,
    K1: float = 0.045,
    K2: float = 0.015,
) -> float:
    """
    CIE94 color difference (ΔE*94).

    SC and SH are computed from the chroma of lab1, so the metric is
    intentionally asymmetric.

    Args:
        lab1: reference color
        lab2: sample color
        kL, kC, kH: parametric weights (default 1.0)
        K1: chroma factor (0.045 graphic arts, 0.048 textiles)
        K2: hue factor (0.015 graphic arts, 0.014 textiles)
    """
    L1, a1, b1 = _unpack(lab1)
    L2, a2, b2 = _unpack(lab2)

    C1 = math.hypot(a1, b1)
    C2 = math.hypot(a2, b2)

    delta_L = L1 - L2
    delta_C = C1 - C2
    delta_H_sq = (a1 - a2) ** 2 + (b1 - b2) ** 2 - delta_C**2
    delta_H = math.sqrt(max(delta_H_sq, 0.0))  # rounding error protection

    SL = 1.0
    SC = 1.0 + K1 * C1
    SH = 1.0 + K2 * C1

    return math.sqrt((delta_L / (kL * SL)) ** 2 + (delta_C / (kC * SC)) ** 2 + (delta_H / (kH * SH)) ** 2)


def delta_e_cmc(lab1: LabLike, lab2: LabLike, l: float = 2.0, c: float = 1.0) -> float:
    """
    CMC l:c color difference.

    Default l:c = 2:1 (acceptability). Use 1:1 for perceptibility.
    lab1 is the reference (SL, SC, SH use its lightness/chroma/hue).
    """
    L1, a1, b1 = _unpack(lab1)
    L2, a2, b2 = _unpack(lab2)

    C1_raw = math.hypot(a1, b1)
    C2 = math.hypot(a2, b2)
    H1 = math.degrees(math.atan2(b1, a1)) % 360.0

    delta_L = L1 - L2
    delta_C = C1_raw - C2
    # clamped chroma only feeds the weighting functions
    C1 = max(C1_raw, CHROMA_EPSILON)
    delta_H = math.sqrt(max((a1 - a2) ** 2 + (b1 - b2) ** 2 - delta_C**2, 0.0))

    if 164.0 <= H1 <= 345.0:
        T = 0.56 + abs(0.2 * math.cos(math.radians(H1 + 168.0)))
    else:
        T = 0.36 + abs(0.4 * math.cos(math.radians(H1 + 35.0)))

    C1_4 = C1**4
    F = math.sqrt(C1_4 / (C1_4 + 1900.0))

    SL = 0.511 if L1 < 16 else 0.040975 * L1 / (1 + 0.01765 * L1)
    SC = 0.0638 * C1 / (1 + 0.0131 * C1) + 0.638
    SH = SC * (F * T + 1 - F)

    return math.sqrt((delta_L / (l * SL)) ** 2 + (delta_C / (c * SC)) ** 2 + (delta_H / SH) ** 2)


DELTA_E_METHODS: Dict[str, Callable[..., float]] = {
    "cie76": delta_e_cie1976,
    "cie1976": delta_e_cie1976,
    "cie94": delta_e_cie1994,
    "cie1994": delta_e_cie1994,
    "cie2000": delta_e_cie2000,
    "ciede2000": delta_e_cie2000,
    "cmc": delta_e_cmc,
}


def delta_e(lab1: LabLike, lab2: LabLike, method: str = "cie2000", **kwargs) -> float:
    """Dispatch to a Delta E formula by name (default CIEDE2000)."""
    try:
        func = DELTA_E_METHODS[method.lower()]
    except KeyError as e:
        raise InputError(f"Unknown Delta E method: {method}") from e
    return func(lab1, lab2, **kwargs)
