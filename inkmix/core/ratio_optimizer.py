"""
Ratio Optimizer Module

Finds mixing ratios for a fixed candidate subset that minimize CIEDE2000
between the predicted mixture and the target.

Primary method is gradient descent with momentum on a numerically
estimated gradient. The walk is not monotonic, so the best ratio vector
seen so far is tracked and returned instead of the last iterate.
A coordinate-wise probe is available as a cheaper path, and as an optional
refinement pass started from the gradient-descent optimum.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor
from inkmix.utils.color_delta import delta_e_cie2000

logger = logging.getLogger(__name__)

MixFunction = Callable[[Sequence[float]], LabColor]

OPTIMIZER_METHODS = ("gradient", "coordinate")


@dataclass
class OptimizerConfig:
    """RatioOptimizer settings"""

    method: str = "gradient"  # gradient, coordinate
    max_iterations: int = 100  # 100~500 depending on caller
    tolerance: float = 0.5  # stop once ΔE00 drops below this
    learning_rate: float = 0.01
    momentum: float = 0.9
    epsilon: float = 0.001  # forward difference step
    decay_every: int = 20  # learning-rate decay period (iterations)
    decay_rate: float = 0.9
    probe_step: float = 0.01  # coordinate probe step
    refine_iterations: int = 50  # coordinate refinement after gradient descent (0 = off)


@dataclass(frozen=True)
class OptimizationResult:
    ratios: Tuple[float, ...]  # sums to 1
    delta_e: float
    mixed: LabColor
    iterations: int
    converged: bool


def normalize(ratios: np.ndarray) -> np.ndarray:
    """Clamp to [0, 1] and rescale to sum 1 (uniform if everything is zero)."""
    r = np.clip(ratios, 0.0, 1.0)
    total = r.sum()
    if total <= 0:
        return np.full(len(r), 1.0 / len(r))
    return r / total


def _objective(target: LabColor, mix_fn: MixFunction):
    def f(ratios: np.ndarray) -> Tuple[float, LabColor]:
        mixed = mix_fn(ratios.tolist())
        return delta_e_cie2000(target, mixed), mixed

    return f


def gradient_descent(
    n: int,
    target: LabColor,
    mix_fn: MixFunction,
    config: OptimizerConfig = OptimizerConfig(),
    initial: Optional[Sequence[float]] = None,
) -> OptimizationResult:
    """
    Momentum gradient descent over the ratio simplex.

    Each iteration estimates dΔE/dr_i by forward differences on the
    renormalized perturbed vector, updates the velocity
    (v = momentum * v - lr * grad), clamps to [0, 1] and renormalizes.
    The learning rate decays geometrically every `decay_every` iterations.
    """
    f = _objective(target, mix_fn)
    ratios = normalize(np.asarray(initial, dtype=float)) if initial is not None else np.full(n, 1.0 / n)
    velocity = np.zeros(n)
    lr = config.learning_rate

    best_de, best_mixed = f(ratios)
    best_ratios = ratios.copy()
    iterations = 0

    for it in range(config.max_iterations):
        iterations = it + 1
        de, mixed = f(ratios)
        if de < best_de:
            best_de, best_mixed, best_ratios = de, mixed, ratios.copy()
        if de < config.tolerance:
            break

        grad = np.zeros(n)
        for i in range(n):
            probe = ratios.copy()
            probe[i] += config.epsilon
            grad[i] = (f(normalize(probe))[0] - de) / config.epsilon

        velocity = config.momentum * velocity - lr * grad
        ratios = normalize(ratios + velocity)

        if (it + 1) % config.decay_every == 0:
            lr *= config.decay_rate

    de, mixed = f(ratios)
    if de < best_de:
        best_de, best_mixed, best_ratios = de, mixed, ratios.copy()

    return OptimizationResult(
        ratios=tuple(float(r) for r in best_ratios),
        delta_e=float(best_de),
        mixed=best_mixed,
        iterations=iterations,
        converged=best_de < config.tolerance,
    )


def coordinate_probe(
    n: int,
    target: LabColor,
    mix_fn: MixFunction,
    config: OptimizerConfig = OptimizerConfig(),
    initial: Optional[Sequence[float]] = None,
    max_iterations: Optional[int] = None,
) -> OptimizationResult:
    """
    Coordinate-wise probe: for each ink try +step / -step, keep whichever
    lowers ΔE, clamp and renormalize. Stops when no move improves,
    on tolerance or on the iteration budget.
    """
    f = _objective(target, mix_fn)
    ratios = normalize(np.asarray(initial, dtype=float)) if initial is not None else np.full(n, 1.0 / n)
    best_de, best_mixed = f(ratios)
    step = config.probe_step
    budget = config.max_iterations if max_iterations is None else max_iterations
    iterations = 0

    for it in range(budget):
        iterations = it + 1
        if best_de < config.tolerance:
            break
        improved = False
        for i in range(n):
            for direction in (step, -step):
                probe = ratios.copy()
                probe[i] += direction
                probe = normalize(probe)
                de, mixed = f(probe)
                if de < best_de:
                    ratios, best_de, best_mixed = probe, de, mixed
                    improved = True
                    break
        if not improved:
            break

    return OptimizationResult(
        ratios=tuple(float(r) for r in ratios),
        delta_e=float(best_de),
        mixed=best_mixed,
        iterations=iterations,
        converged=best_de < config.tolerance,
    )


def optimize_ratios(
    n: int,
    target: LabColor,
    mix_fn: MixFunction,
    config: OptimizerConfig = OptimizerConfig(),
) -> OptimizationResult:
    """
    Optimize mixing ratios for an n-ink subset.

    Args:
        n: number of inks in the subset
        target: target color
        mix_fn: ratios -> predicted LabColor
        config: optimizer settings

    Returns:
        Best-seen OptimizationResult; ratios always sum to 1.
        Not converging within the budget is not an error.
    """
    if n < 1:
        raise InputError("Cannot optimize an empty ink subset")
    if config.method not in OPTIMIZER_METHODS:
        raise InputError(f"Unknown optimizer method: {config.method} (use {OPTIMIZER_METHODS})")

    if n == 1:
        mixed = mix_fn([1.0])
        de = delta_e_cie2000(target, mixed)
        return OptimizationResult((1.0,), de, mixed, 0, de < config.tolerance)

    if config.method == "coordinate":
        return coordinate_probe(n, target, mix_fn, config)

    result = gradient_descent(n, target, mix_fn, config)
    if not result.converged and config.refine_iterations > 0:
        refined = coordinate_probe(
            n, target, mix_fn, config, initial=result.ratios, max_iterations=config.refine_iterations
        )
        if refined.delta_e < result.delta_e:
            result = OptimizationResult(
                ratios=refined.ratios,
                delta_e=refined.delta_e,
                mixed=refined.mixed,
                iterations=result.iterations + refined.iterations,
                converged=refined.converged,
            )
    return result
