"""
Ink Catalog Module

Immutable ink catalog snapshot consumed by the recipe engine.

Each ink carries Lab samples at discrete concentration levels (100% is
required, 70%/40% optional). Requests between defined levels are
interpolated; requests outside the defined range fall back to the nearest
defined level. Custom measurements are applied through an override layer
(`InkCatalog.with_overrides`) that returns a new snapshot instead of
patching shared state.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import numpy as np

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor, as_lab, require_valid_lab
from inkmix.utils.file_io import read_json

logger = logging.getLogger(__name__)

FULL_STRENGTH = 100
DEFAULT_CONCENTRATIONS: Tuple[int, ...] = (100, 70, 40)
WHITE_INK_ID = "white"
ESSENTIAL_INK_IDS: Tuple[str, ...] = ("cyan", "magenta", "yellow", "black")


class InkCategory(str, Enum):
    """Ink category"""

    PROCESS = "process"
    SPOT = "spot"
    METALLIC = "metallic"
    FLUORESCENT = "fluorescent"
    MEDIUM = "medium"
    CUSTOM = "custom"


@dataclass(frozen=True)
class InkProperties:
    opacity: Optional[float] = None  # 0.0 ~ 1.0
    viscosity: Optional[float] = None
    gloss: Optional[float] = None


@dataclass(frozen=True)
class InkDefinition:
    """Catalog ink with concentration-dependent Lab samples"""

    id: str
    name: str
    category: InkCategory
    concentrations: Mapping[int, LabColor]
    properties: InkProperties = field(default_factory=InkProperties)
    cost: Optional[float] = None  # production cost multiplier

    def __post_init__(self):
        # read-only copy; catalog fingerprints assume samples never change
        object.__setattr__(self, "concentrations", MappingProxyType(dict(self.concentrations)))
        if FULL_STRENGTH not in self.concentrations:
            raise InputError(f"Ink '{self.id}' must define a {FULL_STRENGTH}% sample")
        for level, lab in self.concentrations.items():
            if not 0 < level <= FULL_STRENGTH:
                raise InputError(f"Ink '{self.id}' has invalid concentration level {level}")
            require_valid_lab(lab, f"ink '{self.id}' @{level}%")

    @property
    def is_medium(self) -> bool:
        return self.category == InkCategory.MEDIUM

    @property
    def levels(self) -> List[int]:
        return sorted(self.concentrations)

    def has_level(self, level: int) -> bool:
        return level in self.concentrations

    def lab_at(self, level: float, method: str = "linear") -> LabColor:
        """
        Lab sample at an arbitrary concentration.

        Args:
            level: concentration (%)
            method: "linear" or "catmull_rom" (needs >= 3 defined levels)

        Returns:
            Exact sample if defined, interpolated between defined levels,
            nearest defined level outside the range.
        """
        if level in self.concentrations:
            return self.concentrations[level]
        levels = self.levels
        if level <= levels[0]:
            return self.concentrations[levels[0]]
        if level >= levels[-1]:
            return self.concentrations[levels[-1]]
        if method == "catmull_rom" and len(levels) >= 3:
            return self._catmull_rom(levels, level)
        if method not in ("linear", "catmull_rom"):
            raise InputError(f"Unknown interpolation method: {method}")

        samples = np.array([self.concentrations[lv].as_tuple() for lv in levels])
        values = [float(np.interp(level, levels, samples[:, ch])) for ch in range(3)]
        return LabColor(*values)

    def _catmull_rom(self, levels: List[int], level: float) -> LabColor:
        i = int(np.searchsorted(levels, level)) - 1
        p0 = self.concentrations[levels[max(0, i - 1)]]
        p1 = self.concentrations[levels[i]]
        p2 = self.concentrations[levels[i + 1]]
        p3 = self.concentrations[levels[min(len(levels) - 1, i + 2)]]

        t = (level - levels[i]) / (levels[i + 1] - levels[i])
        t2, t3 = t * t, t * t * t
        w0 = -0.5 * t3 + t2 - 0.5 * t
        w1 = 1.5 * t3 - 2.5 * t2 + 1
        w2 = -1.5 * t3 + 2 * t2 + 0.5 * t
        w3 = 0.5 * t3 - 0.5 * t2

        lab = [w0 * c0 + w1 * c1 + w2 * c2 + w3 * c3 for c0, c1, c2, c3 in zip(p0, p1, p2, p3)]
        return LabColor(*lab).clamped()

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "InkDefinition":
        """
        Build from a plain dict record, e.g.

            {"id": "cyan", "name": "Process Cyan", "type": "process",
             "concentrations": {"100": {"L": 55, "a": -37, "b": -50}}}
        """
        try:
            ink_id = str(record["id"])
            raw = record["concentrations"]
        except KeyError as e:
            raise InputError(f"Ink record missing field {e}") from e

        category_name = record.get("category", record.get("type", InkCategory.SPOT.value))
        try:
            category = InkCategory(category_name)
        except ValueError as e:
            raise InputError(f"Ink '{ink_id}' has unknown category '{category_name}'") from e

        concentrations = {int(level): as_lab(lab) for level, lab in raw.items()}
        props = record.get("properties") or {}
        return cls(
            id=ink_id,
            name=str(record.get("name", ink_id)),
            category=category,
            concentrations=concentrations,
            properties=InkProperties(
                opacity=props.get("opacity"),
                viscosity=props.get("viscosity"),
                gloss=props.get("gloss"),
            ),
            cost=record.get("cost"),
        )


class InkCatalog:
    """Read-only snapshot of ink definitions keyed by id."""

    def __init__(self, inks: Iterable[InkDefinition]):
        by_id: Dict[str, InkDefinition] = {}
        for ink in inks:
            if ink.id in by_id:
                raise InputError(f"Duplicate ink id in catalog: {ink.id}")
            by_id[ink.id] = ink
        self._inks = by_id
        self._fingerprint: Optional[str] = None

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "InkCatalog":
        return cls(InkDefinition.from_record(r) for r in records)

    def __len__(self) -> int:
        return len(self._inks)

    def __iter__(self) -> Iterator[InkDefinition]:
        return iter(self._inks.values())

    def __contains__(self, ink_id: object) -> bool:
        return ink_id in self._inks

    @property
    def ids(self) -> List[str]:
        return list(self._inks)

    def get(self, ink_id: str) -> InkDefinition:
        try:
            return self._inks[ink_id]
        except KeyError as e:
            raise InputError(f"Unknown ink id: {ink_id}") from e

    def subset(self, ink_ids: Iterable[str]) -> "InkCatalog":
        return InkCatalog(self.get(i) for i in ink_ids)

    def with_overrides(self, overrides: Mapping[str, Mapping[int, Any]]) -> "InkCatalog":
        """
        Return a new snapshot with custom concentration samples applied.

        Args:
            overrides: {ink_id: {level: LabColor | (L, a, b) | {"L","a","b"}}}

        The original catalog is left untouched.
        """
        inks = dict(self._inks)
        for ink_id, samples in overrides.items():
            base = self.get(ink_id)
            merged = dict(base.concentrations)
            for level, lab in samples.items():
                merged[int(level)] = as_lab(lab)
            logger.debug(f"Override applied to ink '{ink_id}': levels {sorted(samples)}")
            inks[ink_id] = replace(base, concentrations=merged)
        return InkCatalog(inks.values())

    @property
    def fingerprint(self) -> str:
        """Stable content hash, used as part of the result cache key."""
        if self._fingerprint is None:
            h = hashlib.sha1()
            for ink_id in sorted(self._inks):
                ink = self._inks[ink_id]
                h.update(f"{ink.id}|{ink.category.value}|{ink.cost}|{ink.properties}".encode())
                for level in ink.levels:
                    lab = ink.concentrations[level]
                    h.update(f"{level}:{lab.L:.6f},{lab.a:.6f},{lab.b:.6f};".encode())
            self._fingerprint = h.hexdigest()
        return self._fingerprint


def load_catalog(path: Path) -> InkCatalog:
    """
    Load a catalog from a JSON file.

    Accepts either a list of ink records or {"inks": [...]}.
    """
    path = Path(path)
    if not path.exists():
        raise InputError(f"Catalog file not found: {path}")
    data = read_json(path)
    records = data.get("inks", []) if isinstance(data, dict) else data
    catalog = InkCatalog.from_records(records)
    logger.info(f"Loaded {len(catalog)} inks from {path}")
    return catalog
