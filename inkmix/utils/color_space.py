"""
Color Space Conversion Utilities

CIE L*a*b* <-> XYZ <-> sRGB conversion functions.

The reference white used by lab_to_xyz must match the one passed to
xyz_to_lab, otherwise a round trip does not reconstruct the original color.
"""

from typing import Dict, Sequence, Tuple

import numpy as np

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor, XYZColor

# Reference white points (Y = 100 scale)
REFERENCE_WHITES: Dict[str, Tuple[float, float, float]] = {
    "D50": (96.422, 100.0, 82.521),  # print
    "D65": (95.047, 100.0, 108.883),  # default
}

DELTA = 6.0 / 29.0
DELTA_CUBE = DELTA**3

# sRGB (D65) matrices
XYZ_TO_RGB = np.array(
    [
        [3.2406, -1.5372, -0.4986],
        [-0.9689, 1.8758, 0.0415],
        [0.0557, -0.2040, 1.0570],
    ]
)
RGB_TO_XYZ = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ]
)


def _white(illuminant: str) -> Tuple[float, float, float]:
    try:
        xr, yr, zr = REFERENCE_WHITES[illuminant]
    except KeyError as e:
        raise InputError(f"Unknown illuminant: {illuminant} (use {sorted(REFERENCE_WHITES)})") from e
    return xr / 100.0, yr / 100.0, zr / 100.0


def _f_inv(t: float) -> float:
    return t**3 if t > DELTA else 3 * DELTA**2 * (t - 4.0 / 29.0)


def _f(t: float) -> float:
    return np.cbrt(t) if t > DELTA_CUBE else t / (3 * DELTA**2) + 4.0 / 29.0


def lab_to_xyz(lab: LabColor, illuminant: str = "D65") -> XYZColor:
    """
    Convert CIE L*a*b* to XYZ.

    Args:
        lab: Lab color
        illuminant: reference white ("D50" for print, "D65" default)

    Returns:
        XYZColor scaled so that the reference white has Y = 1.0
    """
    xr, yr, zr = _white(illuminant)
    fy = (lab.L + 16.0) / 116.0
    fx = fy + lab.a / 500.0
    fz = fy - lab.b / 200.0
    return XYZColor(xr * _f_inv(fx), yr * _f_inv(fy), zr * _f_inv(fz))


def xyz_to_lab(xyz: XYZColor, illuminant: str = "D65") -> LabColor:
    """
    Convert XYZ to CIE L*a*b*.

    Args:
        xyz: XYZ color (reference white Y = 1.0)
        illuminant: reference white, must match the forward conversion

    Returns:
        LabColor
    """
    xr, yr, zr = _white(illuminant)
    fx = _f(xyz.X / xr)
    fy = _f(xyz.Y / yr)
    fz = _f(xyz.Z / zr)
    return LabColor(float(116.0 * fy - 16.0), float(500.0 * (fx - fy)), float(200.0 * (fy - fz)))


def _gamma(c: float) -> float:
    return 1.055 * c ** (1 / 2.4) - 0.055 if c > 0.0031308 else 12.92 * c


def _degamma(c: float) -> float:
    return ((c + 0.055) / 1.055) ** 2.4 if c > 0.04045 else c / 12.92


def lab_to_rgb(lab: LabColor) -> Tuple[int, int, int]:
    """
    Convert CIE L*a*b* (D65) to 8-bit sRGB.

    Out-of-gamut channels are clipped to 0~255.
    """
    xyz = lab_to_xyz(lab, "D65")
    linear = XYZ_TO_RGB @ np.array(xyz.as_tuple())
    rgb = [int(round(np.clip(_gamma(float(c)), 0.0, 1.0) * 255)) for c in linear]
    return rgb[0], rgb[1], rgb[2]


def rgb_to_lab(rgb: Sequence[int]) -> LabColor:
    """Convert 8-bit sRGB to CIE L*a*b* (D65)."""
    if len(rgb) != 3:
        raise InputError(f"RGB color needs 3 components, got {len(rgb)}")
    if any(c < 0 or c > 255 for c in rgb):
        raise InputError(f"RGB components must be within 0~255: {tuple(rgb)}")
    linear = np.array([_degamma(c / 255.0) for c in rgb])
    x, y, z = RGB_TO_XYZ @ linear
    return xyz_to_lab(XYZColor(float(x), float(y), float(z)), "D65")


def lab_to_hex(lab: LabColor) -> str:
    return "#{:02X}{:02X}{:02X}".format(*lab_to_rgb(lab))
