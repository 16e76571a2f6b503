"""
Combination Search Module

Selects candidate subsets (size 1..max_inks) to hand to the ratio optimizer.

- Exhaustive enumeration while C(N, k) stays below the enumeration ceiling.
- Seeded random sampling (distinct subsets, bounded budget) above it.
- Optional smart pre-filter: keep the candidates closest to the target plus
  every concentration of the four process inks.
- Subsets holding the same base ink twice (e.g. cyan_100 + cyan_70) are
  rejected before evaluation.

Early termination: within one subset size, the search stops at the first
subset whose ΔE falls below `excellent_threshold` and moves on to the next
size. A later subset of the same size could have scored better; this trades
completeness for speed and is kept on purpose (set early_termination=False
for an exhaustive pass).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

import numpy as np
from scipy.special import comb

from inkmix.core.candidate_generator import Candidate
from inkmix.core.ink_catalog import ESSENTIAL_INK_IDS
from inkmix.schemas.color import LabColor
from inkmix.utils.color_delta import delta_e_cie2000

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SearchConfig:
    """CombinationSearch settings"""

    enumeration_ceiling: int = 500  # max C(N,k) enumerated exhaustively
    sample_budget: int = 200  # subsets sampled per size above the ceiling
    max_attempts_factor: int = 20  # sampling attempts = budget * factor
    excellent_threshold: float = 0.5  # ΔE that ends the current subset size
    early_termination: bool = True
    smart_filter: bool = True
    filter_multiplier: int = 5  # keep top max_inks * multiplier non-essential candidates
    stop_after_results: Optional[int] = None  # stop all sizes once this many results exist


@dataclass
class SearchReport(Generic[T]):
    results: List[T] = field(default_factory=list)
    evaluated: int = 0
    rejected_duplicates: int = 0
    sampled_sizes: List[int] = field(default_factory=list)
    early_stops: List[int] = field(default_factory=list)


def iter_combinations(n: int, k: int) -> Iterator[Tuple[int, ...]]:
    """
    Lexicographic k-subsets of range(n), generated iteratively.

    >>> list(iter_combinations(4, 2))[:3]
    [(0, 1), (0, 2), (0, 3)]
    """
    if k < 0 or k > n:
        return
    idx = list(range(k))
    while True:
        yield tuple(idx)
        i = k - 1
        while i >= 0 and idx[i] == i + n - k:
            i -= 1
        if i < 0:
            return
        idx[i] += 1
        for j in range(i + 1, k):
            idx[j] = idx[j - 1] + 1


def sample_combinations(
    items: Sequence[Candidate],
    k: int,
    budget: int,
    rng: np.random.Generator,
    max_attempts: Optional[int] = None,
) -> List[Tuple[int, ...]]:
    """
    Draw up to `budget` distinct k-subsets (as sorted index tuples).

    Subsets are deduplicated by their sorted candidate-id key. Drawing stops
    after `max_attempts` draws even if the budget is not filled.
    """
    n = len(items)
    if k > n or budget <= 0:
        return []
    max_attempts = max_attempts if max_attempts is not None else budget * 20
    seen = set()
    out: List[Tuple[int, ...]] = []
    attempts = 0
    while len(out) < budget and attempts < max_attempts:
        attempts += 1
        idx = tuple(sorted(int(i) for i in rng.choice(n, size=k, replace=False)))
        key = tuple(sorted(items[i].id for i in idx))
        if key in seen:
            continue
        seen.add(key)
        out.append(idx)
    return out


def has_duplicate_base(subset: Sequence[Candidate]) -> bool:
    bases = [c.base_id for c in subset]
    return len(set(bases)) != len(bases)


def smart_filter(
    candidates: Sequence[Candidate],
    target: LabColor,
    max_candidates: int,
    essential_ids: Sequence[str] = ESSENTIAL_INK_IDS,
) -> List[Candidate]:
    """
    Restrict candidates to the `max_candidates` closest non-essential ones
    (ΔE00 to target) plus every candidate of the essential process inks.

    Returns:
        Selected candidates ordered by proximity to the target
    """
    distance: Dict[str, float] = {c.id: delta_e_cie2000(target, c.lab) for c in candidates}
    ranked = sorted(candidates, key=lambda c: distance[c.id])
    keep = set(c.id for c in ranked if c.base_id in essential_ids)
    others = [c for c in ranked if c.base_id not in essential_ids]
    keep.update(c.id for c in others[:max_candidates])
    return [c for c in ranked if c.id in keep]


class CombinationSearch:
    """Subset search over candidates with a pluggable subset evaluator."""

    def __init__(self, config: SearchConfig = SearchConfig()):
        self.config = config

    def prepare(self, candidates: Sequence[Candidate], target: LabColor, max_inks: int) -> List[Candidate]:
        """Apply the smart pre-filter when the pool is larger than the limit."""
        limit = max_inks * self.config.filter_multiplier
        if self.config.smart_filter and len(candidates) > limit:
            filtered = smart_filter(candidates, target, limit)
            logger.debug(f"Smart filter kept {len(filtered)}/{len(candidates)} candidates")
            return filtered
        return list(candidates)

    def subsets(self, candidates: Sequence[Candidate], k: int, rng: np.random.Generator):
        """Return (index-tuple iterator, sampled flag) for subset size k."""
        n = len(candidates)
        total = int(comb(n, k, exact=True))
        if total <= self.config.enumeration_ceiling:
            return iter_combinations(n, k), False
        budget = self.config.sample_budget
        sampled = sample_combinations(
            candidates, k, budget, rng, max_attempts=budget * self.config.max_attempts_factor
        )
        return iter(sampled), True

    def search(
        self,
        candidates: Sequence[Candidate],
        evaluate: Callable[[Tuple[Candidate, ...]], Optional[T]],
        max_inks: int,
        rng: Optional[np.random.Generator] = None,
        score: Callable[[T], float] = lambda r: r.delta_e,
    ) -> SearchReport[T]:
        """
        Evaluate subsets of size 1..max_inks.

        Args:
            candidates: candidate pool (already filtered, in priority order)
            evaluate: subset -> result (None means rejected)
            max_inks: largest subset size
            rng: random generator for sampling; unseeded generator if None,
                which makes sampled searches non-deterministic
            score: ΔE of a result, compared to excellent_threshold

        Returns:
            SearchReport with every accepted result
        """
        rng = rng if rng is not None else np.random.default_rng()
        report: SearchReport[T] = SearchReport()
        cfg = self.config

        for k in range(1, min(max_inks, len(candidates)) + 1):
            subsets, sampled = self.subsets(candidates, k, rng)
            if sampled:
                report.sampled_sizes.append(k)
            for idx in subsets:
                subset = tuple(candidates[i] for i in idx)
                if has_duplicate_base(subset):
                    report.rejected_duplicates += 1
                    continue
                result = evaluate(subset)
                report.evaluated += 1
                if result is None:
                    continue
                report.results.append(result)
                if cfg.early_termination and score(result) < cfg.excellent_threshold:
                    report.early_stops.append(k)
                    logger.debug(f"Excellent result at size {k}, skipping remaining size-{k} subsets")
                    break
            if cfg.stop_after_results is not None and len(report.results) >= cfg.stop_after_results:
                logger.debug(f"Collected {len(report.results)} results, stopping after size {k}")
                break

        logger.debug(
            f"Search evaluated {report.evaluated} subsets "
            f"({report.rejected_duplicates} duplicate-base rejected, sampled sizes={report.sampled_sizes})"
        )
        return report
