"""
Recipe Data Schemas

Result structures returned by the recipe finder and the correction engine.
All are immutable once returned; persistence is up to the caller.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

from inkmix.errors import InfeasibleError
from inkmix.schemas.color import LabColor


@dataclass(frozen=True)
class Feasibility:
    """Structured feasibility verdict (infeasibility is data, not an exception)"""

    is_possible: bool
    reason: str  # reason code, see inkmix.reason_codes
    recommendation: str = ""
    confidence: float = 0.0
    details: Tuple[str, ...] = ()  # "CODE:detail" entries, e.g. "OUT_OF_GAMUT:needs a darker ink"

    def raise_for_status(self) -> None:
        """Raise InfeasibleError if the verdict is negative."""
        if not self.is_possible:
            raise InfeasibleError(self.reason, self.recommendation, self.details)


@dataclass(frozen=True)
class RecipeInk:
    ink_id: str
    name: str
    concentration: int
    ratio: float  # 0~1
    percentage: float  # 0~100

    @property
    def candidate_id(self) -> str:
        return f"{self.ink_id}_{self.concentration}"


@dataclass(frozen=True)
class RecipeResult:
    """Optimized ink recipe for a target color"""

    target: LabColor
    achieved: Optional[LabColor]
    inks: Tuple[RecipeInk, ...]
    delta_e: float
    total_cost: float
    score: float
    quality: str  # Excellent / Very Good / Good / Acceptable / Poor
    coverage: float = 0.0  # total area coverage (%)
    feasibility: Feasibility = field(default_factory=lambda: Feasibility(True, "RECIPE_FOUND"))

    @property
    def is_possible(self) -> bool:
        return self.feasibility.is_possible

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CorrectionSuggestion:
    """Ink addition proposed to move the actual color towards the target"""

    ink_id: str
    name: str
    concentration: int
    percentage: float  # amount to add (%), 1~20
    expected_impact: Tuple[float, float, float]  # (dL, da, db)
    confidence: float = 0.0


@dataclass(frozen=True)
class SpecialInkSuggestion:
    """Fallback special-ink proposal when no catalog ink is suitable"""

    code: str
    name: str
    reason: str
    usage_range: Tuple[float, float]  # % range
    effect: str
    lab_target: LabColor


@dataclass(frozen=True)
class CorrectionDirection:
    lighter: bool = False
    darker: bool = False
    redder: bool = False
    greener: bool = False
    yellower: bool = False
    bluer: bool = False


@dataclass(frozen=True)
class ColorDifference:
    dL: float
    da: float
    db: float
    delta_e: float


@dataclass(frozen=True)
class CorrectionResult:
    color_difference: ColorDifference
    feasibility: Feasibility
    direction: CorrectionDirection
    correction_inks: Tuple[CorrectionSuggestion, ...] = ()
    special_inks: Tuple[SpecialInkSuggestion, ...] = ()
    suggested_recipe: Tuple[RecipeInk, ...] = ()
    predicted_color: Optional[LabColor] = None

    @property
    def is_possible(self) -> bool:
        return self.feasibility.is_possible
