"""
Recipe Scorer Module

Multi-criteria scoring (ΔE, cost, ink count), quality labels and final
recipe formatting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from inkmix.core.candidate_generator import Candidate
from inkmix.errors import InputError
from inkmix.schemas.color import LabColor
from inkmix.schemas.recipe import Feasibility, RecipeInk, RecipeResult
from inkmix.utils.color_delta import delta_e_cie2000

logger = logging.getLogger(__name__)

# (upper bound, label), checked in order
QUALITY_BANDS: Tuple[Tuple[float, str], ...] = (
    (1.0, "Excellent"),
    (2.0, "Very Good"),
    (3.0, "Good"),
    (5.0, "Acceptable"),
)
POOR = "Poor"

MIN_OUTPUT_RATIO = 0.01  # ratios below 1% are dropped from output

# Press total area coverage ceilings (%)
PRINTER_TAC_LIMITS: Dict[str, float] = {
    "offset": 320.0,
    "flexo": 280.0,
    "digital": 300.0,
}


def tac_limit_for(print_method: str) -> float:
    try:
        return PRINTER_TAC_LIMITS[print_method]
    except KeyError as e:
        raise InputError(f"Unknown print method: {print_method} (use {sorted(PRINTER_TAC_LIMITS)})") from e


@dataclass
class ScoringConfig:
    """RecipeScorer settings"""

    cost_weight: float = 0.2
    ink_count_penalty: float = 0.0  # added per ink beyond the first
    min_ratio: float = MIN_OUTPUT_RATIO
    tac_limit: float = 300.0  # total area coverage ceiling (%)
    coverage_weights: Dict[str, float] = field(default_factory=dict)  # per category, default 1.0


def quality_label(delta_e: float) -> str:
    for bound, label in QUALITY_BANDS:
        if delta_e < bound:
            return label
    return POOR


def total_cost(candidates: Sequence[Candidate], ratios: Sequence[float]) -> float:
    return float(sum(c.cost * r for c, r in zip(candidates, ratios)))


def total_coverage(
    candidates: Sequence[Candidate], ratios: Sequence[float], weights: Optional[Dict[str, float]] = None
) -> float:
    """Total area coverage (%) = sum(ratio * 100 * category weight)."""
    weights = weights or {}
    return float(sum(r * 100.0 * weights.get(c.category.value, 1.0) for c, r in zip(candidates, ratios)))


def score(delta_e: float, cost: float, n_inks: int, config: ScoringConfig) -> float:
    """Lower is better: ΔE + cost_weight * cost + ink_count_penalty * (n - 1)."""
    return delta_e + config.cost_weight * cost + config.ink_count_penalty * max(n_inks - 1, 0)


def filter_ratios(
    candidates: Sequence[Candidate], ratios: Sequence[float], min_ratio: float = MIN_OUTPUT_RATIO
) -> Tuple[List[Candidate], List[float]]:
    """Drop ratios below `min_ratio` and renormalize the rest to sum 1."""
    kept = [(c, r) for c, r in zip(candidates, ratios) if r >= min_ratio]
    if not kept:
        # keep the dominant ink rather than returning an empty recipe
        i = max(range(len(ratios)), key=lambda j: ratios[j])
        kept = [(candidates[i], ratios[i])]
    total = sum(r for _, r in kept)
    return [c for c, _ in kept], [r / total for _, r in kept]


class RecipeScorer:
    def __init__(self, config: ScoringConfig = ScoringConfig()):
        self.config = config

    def score(self, delta_e: float, candidates: Sequence[Candidate], ratios: Sequence[float]) -> float:
        return score(delta_e, total_cost(candidates, ratios), len(candidates), self.config)

    def coverage(self, candidates: Sequence[Candidate], ratios: Sequence[float]) -> float:
        return total_coverage(candidates, ratios, self.config.coverage_weights)

    def within_tac(self, candidates: Sequence[Candidate], ratios: Sequence[float]) -> bool:
        return self.coverage(candidates, ratios) <= self.config.tac_limit

    def build_result(
        self,
        target: LabColor,
        candidates: Sequence[Candidate],
        ratios: Sequence[float],
        mix_fn: Callable[[Sequence[Candidate], Sequence[float]], LabColor],
        feasibility: Optional[Feasibility] = None,
    ) -> RecipeResult:
        """
        Format a subset + ratios into a RecipeResult.

        Near-zero ratios are removed, the remaining percentages renormalized
        to 100, and the achieved color / ΔE recomputed for the final ratios.
        """
        kept, kept_ratios = filter_ratios(candidates, ratios, self.config.min_ratio)
        achieved = mix_fn(kept, kept_ratios)
        de = delta_e_cie2000(target, achieved)
        cost = total_cost(kept, kept_ratios)
        inks = tuple(
            RecipeInk(
                ink_id=c.base_id,
                name=c.name,
                concentration=c.concentration,
                ratio=r,
                percentage=r * 100.0,
            )
            for c, r in sorted(zip(kept, kept_ratios), key=lambda item: -item[1])
        )
        return RecipeResult(
            target=target,
            achieved=achieved,
            inks=inks,
            delta_e=de,
            total_cost=cost,
            score=score(de, cost, len(kept), self.config),
            quality=quality_label(de),
            coverage=self.coverage(kept, kept_ratios),
            feasibility=feasibility or Feasibility(True, "RECIPE_FOUND", "", confidence=max(0.0, 1.0 - de / 10.0)),
        )
