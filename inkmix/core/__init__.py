"""
Core Algorithm Modules

Contains the main algorithmic components of the recipe engine:
- InkCatalog: immutable ink catalog snapshot with override layer
- MixingModel / mix: linear, Kubelka-Munk and XYZ mixing
- generate_candidates: (ink, concentration) candidates with cost
- CombinationSearch: subset enumeration / seeded sampling
- optimize_ratios: momentum gradient descent and coordinate probe
- RecipeScorer / ResultCache: scoring, formatting, LRU cache
- RecipeFinder / find_recipe: search pipeline entry point
- CorrectionEngine / correct: post-print correction suggestions
"""

__all__ = [
    "InkCatalog",
    "MixingModel",
    "mix",
    "generate_candidates",
    "CombinationSearch",
    "optimize_ratios",
    "RecipeScorer",
    "ResultCache",
    "RecipeFinder",
    "find_recipe",
    "CorrectionEngine",
    "correct",
    "GamutValidator",
]

from inkmix.core.candidate_generator import generate_candidates
from inkmix.core.combination_search import CombinationSearch
from inkmix.core.correction_engine import CorrectionEngine, correct
from inkmix.core.gamut_validator import GamutValidator
from inkmix.core.ink_catalog import InkCatalog
from inkmix.core.mixing_model import MixingModel, mix
from inkmix.core.ratio_optimizer import optimize_ratios
from inkmix.core.recipe_finder import RecipeFinder, find_recipe
from inkmix.core.recipe_scorer import RecipeScorer
from inkmix.core.result_cache import ResultCache
