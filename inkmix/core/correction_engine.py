"""
Correction Engine Module

Analyzes the gap between a target color and a measured print and proposes
incremental ink additions to close it.

Flow:
1. diff = target - actual, overall ΔE00
2. feasibility: too large ΔE or no TAC headroom -> remake the recipe
3. rank catalog inks by how well their 100% sample points in the needed
   direction on each axis (L, a, b)
4. estimate an addition per ink with a single-axis linear approximation,
   capped to 1~20%, at most 3 inks
5. no suitable ink -> special-ink suggestion table
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple, Union

from inkmix.core.ink_catalog import FULL_STRENGTH, InkCatalog, InkDefinition
from inkmix.errors import InputError
from inkmix.schemas.color import LabColor, require_valid_lab
from inkmix.schemas.recipe import (
    ColorDifference,
    CorrectionDirection,
    CorrectionResult,
    CorrectionSuggestion,
    Feasibility,
    RecipeInk,
    RecipeResult,
    SpecialInkSuggestion,
)
from inkmix.utils.color_delta import delta_e_cie2000

logger = logging.getLogger(__name__)

# Axis weights for suitability and amount estimation
AXIS_WEIGHTS = {"L": 0.3, "a": 0.35, "b": 0.35}


@dataclass
class CorrectionConfig:
    """CorrectionEngine settings"""

    max_delta_e: float = 10.0  # above this, remake instead of correcting
    tac_limit: float = 400.0  # total ink amount ceiling (%)
    min_headroom: float = 10.0  # minimum remaining TAC (%)
    min_suitability: float = 0.5
    min_addition: float = 1.0  # %
    max_addition: float = 20.0  # %
    max_correction_inks: int = 3
    direction_threshold: float = 0.5
    history_size: int = 50
    target_delta_e: float = 1.0  # success criterion for history statistics


@dataclass
class _SuitableInk:
    ink: InkDefinition
    suitability: float

    @property
    def lab(self) -> LabColor:
        return self.ink.concentrations[FULL_STRENGTH]


# ================================================================
# Special ink table
# ================================================================


def suggest_special_inks(diff: ColorDifference) -> List[SpecialInkSuggestion]:
    """Named special inks keyed by the deficient axis."""
    out: List[SpecialInkSuggestion] = []

    if abs(diff.dL) > 2:
        if diff.dL > 0:
            out.append(
                SpecialInkSuggestion(
                    "TRANSPARENT_WHITE",
                    "Transparent White",
                    "Raise lightness without shifting hue",
                    (5.0, 15.0),
                    "L* +3~5",
                    LabColor(98.0, 0.0, 0.0),
                )
            )
            out.append(
                SpecialInkSuggestion(
                    "EXTENDER",
                    "Extender Base",
                    "Dilute the mix to raise lightness",
                    (10.0, 20.0),
                    "L* +2~4, slight chroma loss",
                    LabColor(96.0, 0.0, 0.0),
                )
            )
        else:
            out.append(
                SpecialInkSuggestion(
                    "CONCENTRATED_BLACK",
                    "Dense Black",
                    "Lower lightness",
                    (2.0, 5.0),
                    "L* -3~5",
                    LabColor(12.0, 0.0, 0.0),
                )
            )

    if diff.da < -1:
        out.append(
            SpecialInkSuggestion(
                "GREEN_SHADE", "Green Shade Blue", "Shift towards green", (3.0, 8.0), "a* -2~4", LabColor(45.0, -35.0, -5.0)
            )
        )
        out.append(
            SpecialInkSuggestion(
                "COOL_GREEN", "Emerald Green", "Shift towards green", (2.0, 6.0), "a* -1~3", LabColor(50.0, -30.0, 5.0)
            )
        )
    elif diff.da > 1:
        out.append(
            SpecialInkSuggestion(
                "WARM_RED", "Warm Red", "Shift towards red", (3.0, 8.0), "a* +2~4", LabColor(50.0, 45.0, 35.0)
            )
        )
        out.append(
            SpecialInkSuggestion(
                "RUBINE_RED", "Rubine Red", "Shift towards red", (2.0, 6.0), "a* +1~3", LabColor(48.0, 50.0, 5.0)
            )
        )

    if diff.db > 1:
        out.append(
            SpecialInkSuggestion(
                "WARM_YELLOW", "Yellow 012", "Shift towards yellow", (3.0, 8.0), "b* +3~5", LabColor(88.0, -5.0, 85.0)
            )
        )
    elif diff.db < -1:
        out.append(
            SpecialInkSuggestion(
                "REFLEX_BLUE", "Reflex Blue", "Shift towards blue", (2.0, 5.0), "b* -3~5", LabColor(30.0, 20.0, -60.0)
            )
        )
        out.append(
            SpecialInkSuggestion(
                "PROCESS_BLUE", "Process Blue", "Shift towards blue", (3.0, 7.0), "b* -2~4", LabColor(55.0, -25.0, -50.0)
            )
        )

    if math.hypot(diff.da, diff.db) > 5:
        out.append(
            SpecialInkSuggestion(
                "HIGH_CHROMA",
                "High Chroma Base",
                "Increase chroma",
                (10.0, 30.0),
                "Chroma +20~30%",
                LabColor(50.0, 0.0, 0.0),
            )
        )

    if abs(diff.da) < 1 and abs(diff.db) < 1 and abs(diff.dL) < 2:
        out.append(
            SpecialInkSuggestion(
                "FINE_TUNING", "Toning Colors", "Fine color adjustment", (1.0, 3.0), "Precise match", LabColor(50.0, 0.0, 0.0)
            )
        )
    return out


def predict_corrected_color(current: LabColor, corrections: Sequence[CorrectionSuggestion]) -> LabColor:
    """Sum the expected impacts onto the current color, clamped to Lab bounds."""
    L, a, b = current.as_tuple()
    for c in corrections:
        dL, da, db = c.expected_impact
        L, a, b = L + dL, a + da, b + db
    return LabColor(L, a, b).clamped()


def _same_sign(x: float, y: float) -> bool:
    return x != 0 and y != 0 and (x > 0) == (y > 0)


class CorrectionEngine:
    def __init__(self, config: CorrectionConfig = CorrectionConfig()):
        self.config = config
        self.history = CorrectionHistory(config.history_size, config.target_delta_e)

    def color_difference(self, target: LabColor, actual: LabColor) -> ColorDifference:
        return ColorDifference(
            dL=target.L - actual.L,
            da=target.a - actual.a,
            db=target.b - actual.b,
            delta_e=delta_e_cie2000(target, actual),
        )

    def analyze_direction(self, diff: ColorDifference) -> CorrectionDirection:
        t = self.config.direction_threshold
        return CorrectionDirection(
            lighter=diff.dL > t,
            darker=diff.dL < -t,
            redder=diff.da > t,
            greener=diff.da < -t,
            yellower=diff.db > t,
            bluer=diff.db < -t,
        )

    def identify_correction_inks(self, diff: ColorDifference, catalog: InkCatalog) -> List[_SuitableInk]:
        """Catalog inks whose 100% sample points in the needed direction, best first."""
        suitable = []
        for ink in catalog:
            lab = ink.concentrations[FULL_STRENGTH]
            score = 0.0
            if (diff.dL > 0 and lab.L > 50) or (diff.dL < 0 and lab.L < 50):
                score += abs(diff.dL) * AXIS_WEIGHTS["L"]
            if _same_sign(diff.da, lab.a):
                score += abs(diff.da) * AXIS_WEIGHTS["a"]
            if _same_sign(diff.db, lab.b):
                score += abs(diff.db) * AXIS_WEIGHTS["b"]
            if score > self.config.min_suitability:
                suitable.append(_SuitableInk(ink, score))
        return sorted(suitable, key=lambda s: -s.suitability)

    def estimate_additions(
        self, diff: ColorDifference, actual: LabColor, inks: Sequence[_SuitableInk], confidence: float = 0.0
    ) -> List[CorrectionSuggestion]:
        """
        Percentage to add per ink from a single-axis linear approximation.

        For each axis where the ink's pull (ink - actual) has the needed sign,
        diff / pull is accumulated with the axis weight. The result is
        |amount| * 100 capped to [min_addition, max_addition].
        """
        cfg = self.config
        out: List[CorrectionSuggestion] = []
        for item in inks:
            lab = item.lab
            pull = {"L": lab.L - actual.L, "a": lab.a - actual.a, "b": lab.b - actual.b}
            need = {"L": diff.dL, "a": diff.da, "b": diff.db}
            amount = 0.0
            for axis, weight in AXIS_WEIGHTS.items():
                if _same_sign(pull[axis], need[axis]):
                    amount += need[axis] / pull[axis] * weight
            pct = min(max(abs(amount) * 100.0, cfg.min_addition), cfg.max_addition)
            out.append(
                CorrectionSuggestion(
                    ink_id=item.ink.id,
                    name=item.ink.name,
                    concentration=FULL_STRENGTH,
                    percentage=pct,
                    expected_impact=(pull["L"] * pct / 100.0, pull["a"] * pct / 100.0, pull["b"] * pct / 100.0),
                    confidence=confidence,
                )
            )
        return out[: cfg.max_correction_inks]

    def suggested_recipe(
        self, recipe: Sequence[RecipeInk], corrections: Sequence[CorrectionSuggestion]
    ) -> Tuple[RecipeInk, ...]:
        """Current recipe plus additions, renormalized to 100%."""
        amounts: Dict[Tuple[str, int], float] = {}
        names: Dict[Tuple[str, int], str] = {}
        for ink in recipe:
            key = (ink.ink_id, ink.concentration)
            amounts[key] = amounts.get(key, 0.0) + ink.percentage
            names[key] = ink.name
        for c in corrections:
            key = (c.ink_id, c.concentration)
            amounts[key] = amounts.get(key, 0.0) + c.percentage
            names[key] = c.name
        total = sum(amounts.values())
        if total <= 0:
            return ()
        return tuple(
            RecipeInk(ink_id=k[0], name=names[k], concentration=k[1], ratio=v / total, percentage=v / total * 100.0)
            for k, v in sorted(amounts.items(), key=lambda item: -item[1])
        )

    def correct(
        self,
        target,
        actual,
        current_recipe: Union[RecipeResult, Sequence[RecipeInk]],
        catalog: InkCatalog,
    ) -> CorrectionResult:
        """
        Propose a correction for a measured print.

        Args:
            target: target Lab color
            actual: measured Lab color
            current_recipe: recipe in use (RecipeResult or RecipeInk list)
            catalog: inks available for correction

        Returns:
            CorrectionResult; infeasibility is reported in its feasibility field
        """
        target = require_valid_lab(target, "target")
        actual = require_valid_lab(actual, "actual")
        recipe = tuple(current_recipe.inks if isinstance(current_recipe, RecipeResult) else current_recipe)
        if any(ink.percentage < 0 for ink in recipe):
            raise InputError("Recipe percentages must be non-negative")

        cfg = self.config
        diff = self.color_difference(target, actual)
        direction = self.analyze_direction(diff)

        if diff.delta_e > cfg.max_delta_e:
            logger.warning(f"Correction infeasible: ΔE={diff.delta_e:.2f} exceeds {cfg.max_delta_e}")
            return CorrectionResult(diff, Feasibility(False, "COLOR_DIFFERENCE_TOO_LARGE", "REMAKE_RECIPE", 0.1), direction)

        headroom = cfg.tac_limit - sum(ink.percentage for ink in recipe)
        if headroom < cfg.min_headroom:
            logger.warning(f"Correction infeasible: TAC headroom {headroom:.1f}% below {cfg.min_headroom}%")
            return CorrectionResult(diff, Feasibility(False, "TAC_LIMIT_REACHED", "REMAKE_RECIPE", 0.2), direction)

        suitable = self.identify_correction_inks(diff, catalog)
        if not suitable:
            specials = tuple(suggest_special_inks(diff))
            logger.info(f"No suitable catalog inks, suggesting {[s.code for s in specials]}")
            return CorrectionResult(
                diff,
                Feasibility(False, "NO_SUITABLE_INKS", "ADD_SPECIAL_INKS", 0.3),
                direction,
                special_inks=specials,
            )

        confidence = min(1.0, 1.0 - diff.delta_e / cfg.max_delta_e)
        corrections = self.estimate_additions(diff, actual, suitable, confidence)
        logger.debug(f"Correction inks: {[(c.ink_id, round(c.percentage, 1)) for c in corrections]}")
        return CorrectionResult(
            color_difference=diff,
            feasibility=Feasibility(True, "CORRECTION_POSSIBLE", "APPLY_CORRECTION", confidence),
            direction=direction,
            correction_inks=tuple(corrections),
            suggested_recipe=self.suggested_recipe(recipe, corrections),
            predicted_color=self.history.calibrate(predict_corrected_color(actual, corrections)),
        )

    def record(self, predicted: LabColor, actual: LabColor) -> "HistoryEntry":
        """Record a measured result of an applied correction."""
        return self.history.add(predicted, actual)


# ================================================================
# History / calibration
# ================================================================


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: str
    predicted: LabColor
    actual: LabColor
    delta_e: float


@dataclass
class CalibrationReport:
    average_delta_e: float
    bias: Tuple[float, float, float]  # mean (actual - predicted) per axis
    recommendations: List[str] = field(default_factory=list)


class CorrectionHistory:
    """Bounded log of (predicted, actual) pairs used to de-bias predictions."""

    def __init__(self, max_size: int = 50, target_delta_e: float = 1.0):
        self.max_size = max_size
        self.target_delta_e = target_delta_e
        self._entries: List[HistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def add(self, predicted: LabColor, actual: LabColor) -> HistoryEntry:
        entry = HistoryEntry(datetime.now().isoformat(), predicted, actual, delta_e_cie2000(predicted, actual))
        self._entries.append(entry)
        if len(self._entries) > self.max_size:
            self._entries.pop(0)
        return entry

    def success_rate(self) -> float:
        """Percentage of entries whose ΔE met the target."""
        if not self._entries:
            return 0.0
        ok = sum(1 for e in self._entries if e.delta_e < self.target_delta_e)
        return ok / len(self._entries) * 100.0

    def report(self) -> Optional[CalibrationReport]:
        if not self._entries:
            return None
        n = len(self._entries)
        bias = (
            sum(e.actual.L - e.predicted.L for e in self._entries) / n,
            sum(e.actual.a - e.predicted.a for e in self._entries) / n,
            sum(e.actual.b - e.predicted.b for e in self._entries) / n,
        )
        avg = sum(e.delta_e for e in self._entries) / n
        recs = []
        if abs(bias[0]) > 2:
            recs.append("Lightness bias: predictions are too " + ("dark" if bias[0] > 0 else "light"))
        if avg > 2:
            recs.append("Mixing model parameters need recalibration")
        return CalibrationReport(avg, bias, recs)

    def calibrate(self, predicted: LabColor) -> LabColor:
        """Shift a prediction by the mean observed bias."""
        report = self.report()
        if report is None:
            return predicted
        dL, da, db = report.bias
        return LabColor(predicted.L + dL, predicted.a + da, predicted.b + db).clamped()


_default_engine = CorrectionEngine()


def correct(target, actual, current_recipe, catalog: InkCatalog) -> CorrectionResult:
    """Module-level shortcut to CorrectionEngine.correct."""
    return _default_engine.correct(target, actual, current_recipe, catalog)
