"""
Candidate Generator Module

Expands catalog inks into (ink, concentration) candidates with a unit cost.
Diluted inks cost more to produce, so cost increases as concentration drops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from inkmix.core.ink_catalog import DEFAULT_CONCENTRATIONS, WHITE_INK_ID, InkCatalog, InkCategory
from inkmix.schemas.color import LabColor

logger = logging.getLogger(__name__)

CONCENTRATION_COST: Dict[int, float] = {100: 1.0, 70: 1.2, 40: 1.5}
DEFAULT_COST = 1.8


@dataclass(frozen=True)
class Candidate:
    """Mixable (ink, concentration) unit"""

    id: str  # "{base_id}_{concentration}"
    base_id: str
    name: str
    category: InkCategory
    concentration: int
    lab: LabColor
    cost: float

    @property
    def is_medium(self) -> bool:
        return self.category == InkCategory.MEDIUM


def concentration_cost(concentration: int) -> float:
    return CONCENTRATION_COST.get(concentration, DEFAULT_COST)


def generate_candidates(
    catalog: InkCatalog,
    concentrations: Iterable[int] = DEFAULT_CONCENTRATIONS,
    include_white: bool = True,
    interpolate: bool = False,
) -> List[Candidate]:
    """
    Generate one candidate per ink and requested concentration level.

    Args:
        catalog: ink catalog snapshot
        concentrations: requested levels (duplicates ignored)
        include_white: keep the white ink
        interpolate: also emit levels the ink does not define, using the
            catalog's interpolation (otherwise such levels are skipped)

    Returns:
        Candidates ordered by catalog order, then by descending concentration
    """
    levels: Tuple[int, ...] = tuple(sorted({int(c) for c in concentrations}, reverse=True))
    candidates: List[Candidate] = []
    for ink in catalog:
        if not include_white and ink.id == WHITE_INK_ID:
            continue
        for level in levels:
            if not ink.has_level(level) and not interpolate:
                continue
            cost = concentration_cost(level) * (ink.cost if ink.cost is not None else 1.0)
            candidates.append(
                Candidate(
                    id=f"{ink.id}_{level}",
                    base_id=ink.id,
                    name=ink.name,
                    category=ink.category,
                    concentration=level,
                    lab=ink.lab_at(level),
                    cost=cost,
                )
            )
    logger.debug(f"Generated {len(candidates)} candidates from {len(catalog)} inks (levels={levels})")
    return candidates
