"""
Recipe Finder Module

Entry point of the recipe search pipeline:

    target + catalog -> candidates -> subset search -> ratio optimization
    -> scoring -> best recipe(s)

Results are cached per (target, options, catalog fingerprint, mixing model).
"No acceptable recipe" is returned as a RecipeResult whose feasibility says
so, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import ValidationError

from inkmix.core.candidate_generator import Candidate, generate_candidates
from inkmix.core.combination_search import CombinationSearch, SearchConfig
from inkmix.core.gamut_validator import GamutValidator
from inkmix.core.ink_catalog import InkCatalog
from inkmix.core.mixing_model import MixingModel, mix
from inkmix.core.ratio_optimizer import OptimizerConfig, optimize_ratios
from inkmix.core.recipe_scorer import RecipeScorer, ScoringConfig
from inkmix.core.result_cache import ResultCache, make_key
from inkmix.data.config_manager import ConfigManager
from inkmix.errors import InputError
from inkmix.schemas.color import LabColor, require_valid_lab
from inkmix.schemas.options import FindRecipeOptions
from inkmix.schemas.recipe import Feasibility, RecipeResult

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Recipe engine settings"""

    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    mixing: MixingModel = field(default_factory=MixingModel.linear)  # search loop mixing model
    cache_capacity: int = 256

    @classmethod
    def from_config_manager(cls, manager: ConfigManager) -> "EngineConfig":
        """
        Build from a JSON config document with optional sections
        "optimizer", "search", "scoring", "mixing" and key "cache_capacity".
        """
        try:
            mixing_section = manager.section("mixing")
            mixing_section.setdefault("method", "linear")
            return cls(
                optimizer=OptimizerConfig(**manager.section("optimizer")),
                search=SearchConfig(**manager.section("search")),
                scoring=ScoringConfig(**manager.section("scoring")),
                mixing=MixingModel(**mixing_section),
                cache_capacity=int(manager.get("cache_capacity", 256)),
            )
        except TypeError as e:
            raise InputError(f"Invalid engine config: {e}") from e


@dataclass(frozen=True)
class _Evaluation:
    subset: Tuple[Candidate, ...]
    ratios: Tuple[float, ...]
    delta_e: float
    score: float


def resolve_options(options: Union[FindRecipeOptions, Dict[str, Any], None] = None, **kwargs) -> FindRecipeOptions:
    """Merge an options object/dict with keyword overrides and validate."""
    if isinstance(options, FindRecipeOptions):
        data = options.model_dump()
    else:
        data = dict(options or {})
    data.update(kwargs)
    try:
        return FindRecipeOptions(**data)
    except ValidationError as e:
        raise InputError(f"Invalid recipe options: {e}") from e


class RecipeFinder:
    """Finds ink recipes for target colors."""

    def __init__(self, config: Optional[EngineConfig] = None, cache: Optional[ResultCache] = None):
        self.config = config or EngineConfig()
        self.cache = cache if cache is not None else ResultCache(self.config.cache_capacity)
        self.search = CombinationSearch(self.config.search)

    def find(
        self,
        target: Union[LabColor, Sequence[float], Dict[str, float]],
        catalog: InkCatalog,
        options: Union[FindRecipeOptions, Dict[str, Any], None] = None,
        **kwargs,
    ) -> List[RecipeResult]:
        """
        Find up to `max_results` recipes for a target color, best first.

        Args:
            target: target Lab color
            catalog: ink catalog snapshot
            options: FindRecipeOptions or dict; keyword arguments override it

        Returns:
            Non-empty list of RecipeResult. When nothing reaches the ΔE
            threshold the list holds the closest attempt flagged infeasible.

        Raises:
            InputError: invalid target or options
        """
        target = require_valid_lab(target, "target")
        opts = resolve_options(options, **kwargs)
        substrate = require_valid_lab(opts.substrate_lab.model_dump(), "substrate_lab") if opts.substrate_lab else None
        model = self.config.mixing.with_substrate(substrate)

        key = make_key(
            target,
            opts.max_inks,
            tuple(opts.preferred_concentrations),
            opts.include_white,
            round(opts.cost_weight, 6),
            opts.max_results,
            opts.seed,
            opts.delta_e_threshold,
            model,
            catalog.fingerprint,
        )
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Recipe cache hit for {target}")
            return list(cached)

        results = self._search(target, catalog, opts, model)
        self.cache.put(key, tuple(results))
        return results

    def _mix(self, model: MixingModel):
        def mix_candidates(subset: Sequence[Candidate], ratios: Sequence[float]) -> LabColor:
            return mix([c.lab for c in subset], ratios, model, [c.category for c in subset])

        return mix_candidates

    def _search(
        self, target: LabColor, catalog: InkCatalog, opts: FindRecipeOptions, model: MixingModel
    ) -> List[RecipeResult]:
        scorer = RecipeScorer(replace(self.config.scoring, cost_weight=opts.cost_weight))
        mix_candidates = self._mix(model)

        candidates = generate_candidates(catalog, opts.preferred_concentrations, opts.include_white)
        if not candidates:
            logger.warning("No ink candidates available for recipe search")
            return [self._empty_result(target)]

        pool = self.search.prepare(candidates, target, opts.max_inks)
        logger.info(
            f"Recipe search: target=({target.L:.1f}, {target.a:.1f}, {target.b:.1f}), "
            f"{len(pool)} candidates, max_inks={opts.max_inks}"
        )

        closest: List[_Evaluation] = []

        def evaluate(subset: Tuple[Candidate, ...]) -> Optional[_Evaluation]:
            opt = optimize_ratios(
                len(subset), target, lambda r: mix_candidates(subset, r), self.config.optimizer
            )
            ev = _Evaluation(subset, opt.ratios, opt.delta_e, scorer.score(opt.delta_e, subset, opt.ratios))
            if not closest or ev.delta_e < closest[0].delta_e:
                closest[:] = [ev]
            if opt.delta_e >= opts.delta_e_threshold:
                return None
            if not scorer.within_tac(subset, opt.ratios):
                logger.debug(f"Subset {[c.id for c in subset]} exceeds TAC limit")
                return None
            return ev

        rng = np.random.default_rng(opts.seed)
        report = self.search.search(pool, evaluate, opts.max_inks, rng)

        if not report.results:
            return [self._infeasible_result(target, catalog, closest[0] if closest else None, scorer, mix_candidates)]

        ranked = sorted(report.results, key=lambda ev: (ev.score, ev.delta_e))
        results: List[RecipeResult] = []
        seen = set()
        for ev in ranked:
            key = tuple(sorted(c.id for c in ev.subset))
            if key in seen:
                continue
            seen.add(key)
            results.append(scorer.build_result(target, ev.subset, ev.ratios, mix_candidates))
            if len(results) >= opts.max_results:
                break

        best = results[0]
        logger.info(
            f"Recipe search done: {report.evaluated} subsets evaluated, best ΔE={best.delta_e:.2f} ({best.quality})"
        )
        return results

    def _empty_result(self, target: LabColor) -> RecipeResult:
        return RecipeResult(
            target=target,
            achieved=None,
            inks=(),
            delta_e=float("inf"),
            total_cost=0.0,
            score=float("inf"),
            quality="Poor",
            feasibility=Feasibility(False, "NO_CANDIDATES", "ADD_INKS_TO_CATALOG"),
        )

    def _infeasible_result(
        self,
        target: LabColor,
        catalog: InkCatalog,
        closest: Optional[_Evaluation],
        scorer: RecipeScorer,
        mix_candidates,
    ) -> RecipeResult:
        if closest is None:
            return self._empty_result(target)

        gamut = GamutValidator(catalog).validate(target)
        recommendation = "ADD_SPECIAL_INKS" if gamut.in_gamut else "CHECK_GAMUT"
        if scorer.within_tac(closest.subset, closest.ratios):
            reason = "COLOR_DIFFERENCE_TOO_LARGE"
        else:
            reason = "TAC_LIMIT_EXCEEDED"
        details = tuple(f"OUT_OF_GAMUT:{problem}" for problem in gamut.problems)
        logger.warning(
            f"No acceptable recipe for ({target.L:.1f}, {target.a:.1f}, {target.b:.1f}): "
            f"closest ΔE={closest.delta_e:.2f}, {reason}"
            + ("" if gamut.in_gamut else f", out of gamut ({', '.join(gamut.problems)})")
        )
        return scorer.build_result(
            target,
            closest.subset,
            closest.ratios,
            mix_candidates,
            feasibility=Feasibility(False, reason, recommendation, details=details),
        )


_default_finder: Optional[RecipeFinder] = None


def default_finder() -> RecipeFinder:
    """Process-wide finder sharing one result cache."""
    global _default_finder
    if _default_finder is None:
        _default_finder = RecipeFinder()
    return _default_finder


def find_recipe(
    target: Union[LabColor, Sequence[float], Dict[str, float]],
    catalog: InkCatalog,
    options: Union[FindRecipeOptions, Dict[str, Any], None] = None,
    finder: Optional[RecipeFinder] = None,
    **kwargs,
) -> Union[RecipeResult, List[RecipeResult]]:
    """
    Find the recipe(s) reproducing `target` with inks from `catalog`.

    Returns a single RecipeResult when max_results == 1, else a list.
    """
    finder = finder or default_finder()
    opts = resolve_options(options, **kwargs)
    results = finder.find(target, catalog, opts)
    return results[0] if opts.max_results == 1 else results
