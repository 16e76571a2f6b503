"""
Gamut Validator Module

Approximates the reachable color range of an ink set as a Lab bounding box
(a*/b* extents widened by 10% around their center) and checks targets
against it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from inkmix.core.ink_catalog import InkCatalog
from inkmix.schemas.color import LabColor
from inkmix.utils.color_delta import delta_e_cie2000

GAMUT_EXPANSION = 1.1


@dataclass(frozen=True)
class GamutBounds:
    L: Tuple[float, float]
    a: Tuple[float, float]
    b: Tuple[float, float]


@dataclass
class GamutReport:
    in_gamut: bool
    bounds: GamutBounds
    nearest: Optional[LabColor] = None  # closest in-gamut color when out of gamut
    delta_e: float = 0.0  # target -> nearest
    distance: float = 0.0  # normalized out-of-gamut distance
    confidence: float = 100.0
    problems: List[str] = field(default_factory=list)


class GamutValidator:
    def __init__(self, catalog: InkCatalog, expansion: float = GAMUT_EXPANSION):
        labs = [lab for ink in catalog for lab in ink.concentrations.values() if not ink.is_medium]
        if not labs:
            labs = [lab for ink in catalog for lab in ink.concentrations.values()]
        self.bounds = self._bounds(labs, expansion)

    @staticmethod
    def _bounds(labs: List[LabColor], expansion: float) -> GamutBounds:
        if not labs:
            return GamutBounds((0.0, 0.0), (0.0, 0.0), (0.0, 0.0))
        L_min = max(0.0, min(c.L for c in labs))
        L_max = min(100.0, max(c.L for c in labs))
        # a/b ranges always include the neutral axis
        a_min, a_max = min(0.0, min(c.a for c in labs)), max(0.0, max(c.a for c in labs))
        b_min, b_max = min(0.0, min(c.b for c in labs)), max(0.0, max(c.b for c in labs))

        def widen(lo: float, hi: float) -> Tuple[float, float]:
            center = (lo + hi) / 2
            return center + (lo - center) * expansion, center + (hi - center) * expansion

        return GamutBounds((L_min, L_max), widen(a_min, a_max), widen(b_min, b_max))

    def is_in_gamut(self, lab: LabColor) -> bool:
        g = self.bounds
        return g.L[0] <= lab.L <= g.L[1] and g.a[0] <= lab.a <= g.a[1] and g.b[0] <= lab.b <= g.b[1]

    def clamp_to_gamut(self, lab: LabColor) -> LabColor:
        g = self.bounds
        return LabColor(
            min(max(lab.L, g.L[0]), g.L[1]),
            min(max(lab.a, g.a[0]), g.a[1]),
            min(max(lab.b, g.b[0]), g.b[1]),
        )

    def distance(self, lab: LabColor) -> float:
        """Normalized distance outside the box (L / 100, a, b / 128)."""
        g = self.bounds
        total = 0.0
        for value, (lo, hi), scale in ((lab.L, g.L, 100.0), (lab.a, g.a, 128.0), (lab.b, g.b, 128.0)):
            if value < lo:
                total += ((lo - value) / scale) ** 2
            elif value > hi:
                total += ((value - hi) / scale) ** 2
        return math.sqrt(total)

    def validate(self, lab: LabColor) -> GamutReport:
        if self.is_in_gamut(lab):
            return GamutReport(True, self.bounds)

        nearest = self.clamp_to_gamut(lab)
        dist = self.distance(lab)
        g = self.bounds
        problems = []
        if lab.L < g.L[0]:
            problems.append("needs a darker ink")
        if lab.L > g.L[1]:
            problems.append("needs a lighter ink")
        if lab.a < g.a[0]:
            problems.append("needs a stronger green ink")
        if lab.a > g.a[1]:
            problems.append("needs a stronger red ink")
        if lab.b < g.b[0]:
            problems.append("needs a stronger blue ink")
        if lab.b > g.b[1]:
            problems.append("needs a stronger yellow ink")
        return GamutReport(
            in_gamut=False,
            bounds=self.bounds,
            nearest=nearest,
            delta_e=delta_e_cie2000(lab, nearest),
            distance=dist,
            confidence=max(0.0, 100.0 - dist * 100.0),
            problems=problems,
        )
