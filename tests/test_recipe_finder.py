"""
Recipe finder tests

End-to-end recipe searches over small catalogs.
"""

import logging

import pytest

from inkmix.core.recipe_finder import EngineConfig, RecipeFinder, find_recipe, resolve_options
from inkmix.core.result_cache import ResultCache
from inkmix.errors import InputError
from inkmix.schemas.color import LabColor
from inkmix.schemas.options import FindRecipeOptions
from inkmix.schemas.recipe import RecipeResult


def ink_ids(result: RecipeResult):
    return [i.ink_id for i in result.inks]


# ================================================================
# Scenarios
# ================================================================


class TestScenarios:
    def test_light_cyan_uses_cyan_and_white(self, finder, process_catalog):
        """Light cyan with {cyan, white, black}: cyan + white, no black"""
        catalog = process_catalog.subset(["cyan", "white", "black"])
        result = finder.find({"L": 80, "a": -20, "b": -30}, catalog, max_inks=3, seed=42)[0]

        assert result.is_possible
        assert result.delta_e < 5.0
        assert "cyan" in ink_ids(result)
        assert "black" not in ink_ids(result)
        assert sum(i.percentage for i in result.inks) == pytest.approx(100.0)

    def test_neutral_gray_uses_black_and_white(self, finder, process_catalog):
        result = finder.find((50.0, 0.0, 0.0), process_catalog, max_inks=3, seed=7)[0]

        assert result.is_possible
        assert result.delta_e < 2.0
        assert {"black", "white"} <= set(ink_ids(result))
        dominant = sum(i.percentage for i in result.inks if i.ink_id in ("black", "white"))
        assert dominant >= 80.0
        assert abs(result.achieved.a) < 2.0
        assert abs(result.achieved.b) < 2.0

    def test_neutral_gray_with_two_inks(self, finder, process_catalog):
        """Pre-filter must leave white in the pool when process inks fill the budget"""
        result = finder.find((50.0, 0.0, 0.0), process_catalog, max_inks=2, seed=7)[0]

        assert result.is_possible
        assert result.delta_e < 2.0
        assert set(ink_ids(result)) == {"black", "white"}

    def test_exact_spot_ink_single_ink(self, finder, full_catalog):
        result = finder.find((50.0, -40.0, 30.0), full_catalog, max_inks=1)[0]

        assert result.is_possible
        assert ink_ids(result) == ["green"]
        assert result.delta_e == pytest.approx(0.0, abs=1e-6)

    def test_unreachable_green_is_infeasible(self, finder, process_catalog):
        """Saturated green from grayscale inks: reported, not raised"""
        catalog = process_catalog.subset(["black", "white"])
        result = finder.find((50.0, -60.0, 40.0), catalog, max_inks=2)[0]

        assert not result.is_possible
        assert result.feasibility.reason == "COLOR_DIFFERENCE_TOO_LARGE"
        assert result.feasibility.recommendation == "CHECK_GAMUT"
        assert result.feasibility.details == (
            "OUT_OF_GAMUT:needs a stronger green ink",
            "OUT_OF_GAMUT:needs a stronger yellow ink",
        )
        assert result.delta_e > 10.0
        assert result.achieved is not None

    def test_no_candidates(self, finder, process_catalog):
        catalog = process_catalog.subset(["white"])
        result = finder.find((50.0, 0.0, 0.0), catalog, include_white=False)[0]
        assert not result.is_possible
        assert result.feasibility.reason == "NO_CANDIDATES"
        assert result.inks == ()

    def test_exact_single_ink(self, finder, process_catalog):
        result = finder.find((55.0, -37.0, -50.0), process_catalog, max_inks=1)[0]
        assert ink_ids(result) == ["cyan"]
        assert result.inks[0].concentration == 100
        assert result.quality == "Excellent"


# ================================================================
# Options and results
# ================================================================


class TestFindOptions:
    def test_max_results(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white", "black"])
        results = finder.find((80.0, -20.0, -30.0), catalog, max_inks=2, max_results=3, seed=1)
        assert 1 <= len(results) <= 3
        scores = [r.score for r in results]
        assert scores == sorted(scores)
        subsets = [tuple(sorted(i.candidate_id for i in r.inks)) for r in results]
        assert len(set(subsets)) == len(subsets)

    def test_concentration_filter(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white"])
        result = finder.find((80.0, -20.0, -30.0), catalog, max_inks=2, preferred_concentrations=[100])[0]
        assert all(i.concentration == 100 for i in result.inks)

    def test_options_object_and_overrides(self):
        opts = resolve_options(FindRecipeOptions(max_inks=2), cost_weight=0.5)
        assert opts.max_inks == 2
        assert opts.cost_weight == 0.5

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_inks": 0},
            {"preferred_concentrations": [55]},
            {"cost_weight": 2.0},
            {"preferred_concentrations": []},
            {"seed": -1},
        ],
    )
    def test_invalid_options(self, kwargs):
        with pytest.raises(InputError):
            resolve_options(**kwargs)

    def test_concentrations_normalized(self):
        assert resolve_options(preferred_concentrations=[40, 100, 40]).preferred_concentrations == [100, 40]

    @pytest.mark.parametrize("target", [(120.0, 0.0, 0.0), (50.0, 0.0), {"L": 50, "a": 0}])
    def test_invalid_target(self, finder, process_catalog, target):
        with pytest.raises(InputError):
            finder.find(target, process_catalog)

    def test_substrate_targeting(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white"])
        plain = finder.find((80.0, -20.0, -30.0), catalog, max_inks=2)[0]
        kraft = finder.find(
            (80.0, -20.0, -30.0), catalog, max_inks=2, substrate_lab={"L": 70.0, "a": 5.0, "b": 15.0}
        )[0]
        assert kraft is not plain
        assert kraft.achieved != plain.achieved


# ================================================================
# Caching
# ================================================================


class TestCaching:
    def test_repeat_query_hits_cache(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white"])
        first = finder.find((80.0, -20.0, -30.0), catalog, max_inks=2)
        second = finder.find((80.0, -20.0, -30.0), catalog, max_inks=2)
        assert second[0] is first[0]
        assert finder.cache.hits == 1

    def test_catalog_change_misses(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white"])
        finder.find((80.0, -20.0, -30.0), catalog, max_inks=2)
        custom = catalog.with_overrides({"cyan": {100: (56.0, -36.0, -49.0)}})
        finder.find((80.0, -20.0, -30.0), custom, max_inks=2)
        assert finder.cache.hits == 0
        assert len(finder.cache) == 2

    def test_option_change_misses(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white"])
        finder.find((80.0, -20.0, -30.0), catalog, max_inks=2)
        finder.find((80.0, -20.0, -30.0), catalog, max_inks=2, cost_weight=0.4)
        assert finder.cache.hits == 0

    def test_shared_cache(self, process_catalog):
        cache = ResultCache(capacity=4)
        catalog = process_catalog.subset(["cyan", "white"])
        a = RecipeFinder(EngineConfig(), cache=cache).find((80.0, -20.0, -30.0), catalog, max_inks=2)
        b = RecipeFinder(EngineConfig(), cache=cache).find((80.0, -20.0, -30.0), catalog, max_inks=2)
        assert a[0] is b[0]

    def test_search_logs(self, finder, process_catalog, caplog):
        catalog = process_catalog.subset(["cyan", "white"])
        with caplog.at_level(logging.INFO, logger="inkmix.core.recipe_finder"):
            finder.find((80.0, -20.0, -30.0), catalog, max_inks=2)
        assert "Recipe search" in caplog.text


class TestFindRecipe:
    def test_single_result(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white"])
        result = find_recipe((80.0, -20.0, -30.0), catalog, finder=finder, max_inks=2)
        assert isinstance(result, RecipeResult)

    def test_list_for_many_results(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white"])
        results = find_recipe((80.0, -20.0, -30.0), catalog, {"max_inks": 2, "max_results": 2}, finder=finder)
        assert isinstance(results, list)

    def test_result_is_immutable(self, finder, process_catalog):
        catalog = process_catalog.subset(["cyan", "white"])
        result = find_recipe((80.0, -20.0, -30.0), catalog, finder=finder, max_inks=2)
        with pytest.raises(AttributeError):
            result.delta_e = 0.0
        assert isinstance(result.achieved, LabColor)
