"""
Color Value Schemas

Immutable CIELAB / CIEXYZ value types shared by every module.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

from inkmix.errors import InputError

L_RANGE = (0.0, 100.0)
AB_RANGE = (-128.0, 127.0)


@dataclass(frozen=True)
class LabColor:
    """CIE L*a*b* color (L: 0~100, a/b: -128~127)"""

    L: float
    a: float
    b: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "LabColor":
        if len(values) != 3:
            raise InputError(f"Lab color needs 3 components, got {len(values)}")
        return cls(float(values[0]), float(values[1]), float(values[2]))

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.L, self.a, self.b)

    def __iter__(self) -> Iterator[float]:
        return iter(self.as_tuple())

    @property
    def chroma(self) -> float:
        return math.hypot(self.a, self.b)

    @property
    def hue(self) -> float:
        """Hue angle in degrees (0~360)"""
        h = math.degrees(math.atan2(self.b, self.a))
        return h + 360.0 if h < 0 else h

    def is_valid(self) -> bool:
        values = self.as_tuple()
        if not all(math.isfinite(v) for v in values):
            return False
        return (
            L_RANGE[0] <= self.L <= L_RANGE[1]
            and AB_RANGE[0] <= self.a <= AB_RANGE[1]
            and AB_RANGE[0] <= self.b <= AB_RANGE[1]
        )

    def clamped(self) -> "LabColor":
        """Clamp to the valid Lab bounds"""
        return LabColor(
            min(max(self.L, L_RANGE[0]), L_RANGE[1]),
            min(max(self.a, AB_RANGE[0]), AB_RANGE[1]),
            min(max(self.b, AB_RANGE[0]), AB_RANGE[1]),
        )

    def to_dict(self) -> dict:
        return {"L": self.L, "a": self.a, "b": self.b}


@dataclass(frozen=True)
class XYZColor:
    """CIE XYZ color, reference white has Y = 1.0"""

    X: float
    Y: float
    Z: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.X, self.Y, self.Z)


def as_lab(value) -> LabColor:
    """Coerce LabColor / (L, a, b) sequence / {"L","a","b"} dict into LabColor."""
    if isinstance(value, LabColor):
        return value
    if isinstance(value, dict):
        try:
            return LabColor(float(value["L"]), float(value["a"]), float(value["b"]))
        except KeyError as e:
            raise InputError(f"Lab dict missing component {e}") from e
    return LabColor.from_sequence(value)


def require_valid_lab(value, name: str = "color") -> LabColor:
    """Coerce and range-check a Lab color at an API boundary.

    Raises:
        InputError: component out of range or not finite
    """
    lab = as_lab(value)
    if not lab.is_valid():
        raise InputError(
            f"{name} out of range: L={lab.L}, a={lab.a}, b={lab.b} "
            f"(L {L_RANGE[0]:g}~{L_RANGE[1]:g}, a/b {AB_RANGE[0]:g}~{AB_RANGE[1]:g})"
        )
    return lab
