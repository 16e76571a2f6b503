"""
Mixing Model Module

Predicts the color of an ink mixture.

Three mixing methods are available:
- linear: ratio-weighted average in Lab (cheap, used inside search loops)
- kubelka_munk: K/S absorption/scattering mixing with substrate scattering
  and medium dilution
- xyz: ratio-weighted average in XYZ

Optional correction passes (dot gain, substrate blending) are switched on
through the MixingModel value, so mix() stays a pure function of its inputs.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Union

from inkmix.core.dot_gain import DOT_GAIN_CURVES, compensate_lab
from inkmix.core.ink_catalog import InkCategory
from inkmix.core.substrate import (
    SUBSTRATE_PROFILES,
    SUBSTRATE_SCATTERING,
    blend_with_substrate,
    scattering_coefficient,
)
from inkmix.errors import InputError
from inkmix.schemas.color import LabColor, XYZColor, as_lab
from inkmix.utils.color_space import REFERENCE_WHITES, lab_to_xyz, xyz_to_lab

logger = logging.getLogger(__name__)

MIX_METHODS = ("linear", "kubelka_munk", "xyz")

# Hiding power by ink category
INK_OPACITY: Dict[str, float] = {
    InkCategory.PROCESS.value: 0.85,
    InkCategory.SPOT.value: 0.95,
    InkCategory.METALLIC.value: 0.98,
    InkCategory.FLUORESCENT.value: 0.75,
    InkCategory.CUSTOM.value: 0.95,
    InkCategory.MEDIUM.value: 0.05,
}

REFLECTANCE_MIN = 0.01
REFLECTANCE_MAX = 0.99

# Medium (transparent base) effects per unit medium fraction
MEDIUM_DILUTION = 0.7
MEDIUM_OPACITY_LOSS = 0.6
MEDIUM_DESATURATION = 0.5
MEDIUM_KS = 0.01
MEDIUM_MAX_LIGHTENING = 15.0
# linear mode
LINEAR_MEDIUM_LIGHTENING = 10.0
LINEAR_MEDIUM_DESATURATION = 0.3


@dataclass(frozen=True)
class MixingModel:
    """Enabled physical effects for mix()"""

    method: str = "kubelka_munk"  # linear, kubelka_munk, xyz
    medium_effect: bool = True  # medium dilutes/lightens instead of mixing as a color
    dot_gain: bool = False  # press dot gain compensation pass
    substrate_blend: bool = False  # blend the mixed ink over the substrate color
    substrate_type: str = "coated"  # K/S scattering: coated, uncoated, plastic, metal, transparent
    print_method: str = "offset"  # dot gain curve: offset, flexo, digital
    substrate_profile: str = "white_coated"  # substrate color/absorption profile
    substrate_lab: Optional[LabColor] = None  # measured substrate color (overrides profile base)
    illuminant: str = "D65"  # xyz mode reference white

    def __post_init__(self):
        if self.method not in MIX_METHODS:
            raise InputError(f"Unknown mixing method: {self.method} (use {MIX_METHODS})")
        if self.substrate_type not in SUBSTRATE_SCATTERING:
            raise InputError(f"Unknown substrate type: {self.substrate_type}")
        if self.print_method not in DOT_GAIN_CURVES:
            raise InputError(f"Unknown print method: {self.print_method}")
        if self.substrate_profile not in SUBSTRATE_PROFILES:
            raise InputError(f"Unknown substrate profile: {self.substrate_profile}")
        if self.illuminant not in REFERENCE_WHITES:
            raise InputError(f"Unknown illuminant: {self.illuminant}")

    @classmethod
    def linear(cls, **kwargs) -> "MixingModel":
        return cls(method="linear", **kwargs)

    @classmethod
    def physical(cls, **kwargs) -> "MixingModel":
        """Kubelka-Munk with dot gain and substrate blending enabled"""
        kwargs.setdefault("dot_gain", True)
        kwargs.setdefault("substrate_blend", True)
        return cls(method="kubelka_munk", **kwargs)

    def with_substrate(self, substrate_lab: Optional[LabColor]) -> "MixingModel":
        if substrate_lab is None:
            return self
        return replace(self, substrate_blend=True, substrate_lab=substrate_lab)


# ================================================================
# Reflectance approximation
# ================================================================


def lab_to_reflectance(lab: LabColor) -> float:
    """
    Approximate reflectance from Lab.

    Y from L*, reduced by chroma (saturated colors absorb more),
    clamped to [0.01, 0.99].
    """
    y = ((lab.L + 16.0) / 116.0) ** 3
    r = y - lab.chroma / 100.0 * 0.1
    return min(max(r, REFLECTANCE_MIN), REFLECTANCE_MAX)


def ks_from_reflectance(r: float) -> float:
    """K/S = (1 - R)^2 / 2R"""
    r = min(max(r, REFLECTANCE_MIN), REFLECTANCE_MAX)
    return (1.0 - r) ** 2 / (2.0 * r)


def reflectance_from_ks(ks: float) -> float:
    """Inverse of K/S: R = 1 + K/S - sqrt((K/S)^2 + 2 K/S), clamped."""
    ks = max(ks, 0.0)
    r = 1.0 + ks - math.sqrt(ks * ks + 2.0 * ks)
    return min(max(r, REFLECTANCE_MIN), REFLECTANCE_MAX)


def reflectance_to_lightness(r: float) -> float:
    return 116.0 * math.pow(r, 1.0 / 3.0) - 16.0


def ink_opacity(category: Union[InkCategory, str, None]) -> float:
    if category is None:
        return INK_OPACITY[InkCategory.SPOT.value]
    key = category.value if isinstance(category, InkCategory) else str(category)
    return INK_OPACITY.get(key, INK_OPACITY[InkCategory.SPOT.value])


# ================================================================
# Mixing
# ================================================================


def _is_medium(category) -> bool:
    return category == InkCategory.MEDIUM or category == InkCategory.MEDIUM.value


def _split_medium(ratios: Sequence[float], categories: Sequence, model: MixingModel):
    """Return (color indices, medium fraction of the total ratio)."""
    total = sum(ratios)
    if not model.medium_effect:
        return list(range(len(ratios))), 0.0
    color_idx = [i for i, c in enumerate(categories) if not _is_medium(c)]
    medium = total - sum(ratios[i] for i in color_idx)
    return color_idx, (medium / total if total > 0 else 0.0)


def _weighted_lab(labs: List[LabColor], ratios: Sequence[float], idx: List[int]) -> LabColor:
    weight = sum(ratios[i] for i in idx)
    if weight <= 0:
        # nothing but medium: fall back to the plain average
        idx = list(range(len(labs)))
        weight = sum(ratios)
    L = sum(labs[i].L * ratios[i] for i in idx) / weight
    a = sum(labs[i].a * ratios[i] for i in idx) / weight
    b = sum(labs[i].b * ratios[i] for i in idx) / weight
    return LabColor(L, a, b)


def _mix_linear(labs, ratios, categories, model) -> LabColor:
    idx, medium = _split_medium(ratios, categories, model)
    color = _weighted_lab(labs, ratios, idx)
    if medium > 0:
        keep = 1.0 - LINEAR_MEDIUM_DESATURATION * medium
        color = LabColor(color.L + LINEAR_MEDIUM_LIGHTENING * medium, color.a * keep, color.b * keep)
    return LabColor(min(max(color.L, 0.0), 100.0), color.a, color.b)


def _mix_xyz(labs, ratios, categories, model) -> LabColor:
    idx, medium = _split_medium(ratios, categories, model)
    weight = sum(ratios[i] for i in idx)
    if weight <= 0:
        idx, weight = list(range(len(labs))), sum(ratios)
    X = Y = Z = 0.0
    for i in idx:
        xyz = lab_to_xyz(labs[i], model.illuminant)
        X += xyz.X * ratios[i]
        Y += xyz.Y * ratios[i]
        Z += xyz.Z * ratios[i]
    color = xyz_to_lab(XYZColor(X / weight, Y / weight, Z / weight), model.illuminant)
    if medium > 0:
        keep = 1.0 - LINEAR_MEDIUM_DESATURATION * medium
        color = LabColor(color.L + LINEAR_MEDIUM_LIGHTENING * medium, color.a * keep, color.b * keep)
    return LabColor(min(max(color.L, 0.0), 100.0), color.a, color.b)


def _mix_kubelka_munk(labs, ratios, categories, model) -> LabColor:
    idx, medium = _split_medium(ratios, categories, model)
    total = sum(ratios)

    dilution = 1.0 - MEDIUM_DILUTION * medium
    opacity_factor = 1.0 - MEDIUM_OPACITY_LOSS * medium
    saturation = 1.0 - MEDIUM_DESATURATION * medium

    ks_sum = 0.0
    a_sum = b_sum = w_sum = 0.0
    for i in idx:
        conc = ratios[i] / total * dilution
        opacity = ink_opacity(categories[i]) * opacity_factor
        w = conc * opacity
        ks_sum += ks_from_reflectance(lab_to_reflectance(labs[i])) * w
        a_sum += labs[i].a * w
        b_sum += labs[i].b * w
        w_sum += w
    ks_sum += MEDIUM_KS * medium
    ks_sum *= scattering_coefficient(model.substrate_type)

    L = reflectance_to_lightness(reflectance_from_ks(ks_sum)) + MEDIUM_MAX_LIGHTENING * medium
    a = a_sum / w_sum * saturation if w_sum > 0 else 0.0
    b = b_sum / w_sum * saturation if w_sum > 0 else 0.0
    return LabColor(min(max(L, 0.0), 100.0), a, b)


_MIXERS = {
    "linear": _mix_linear,
    "xyz": _mix_xyz,
    "kubelka_munk": _mix_kubelka_munk,
}


def mix(
    inks: Sequence[LabColor],
    ratios: Sequence[float],
    model: MixingModel = MixingModel(),
    categories: Optional[Sequence[Union[InkCategory, str]]] = None,
) -> LabColor:
    """
    Predict the color of a mixture.

    Args:
        inks: Lab sample per ink
        ratios: mixing weight per ink (>= 0, need not sum to 1)
        model: enabled effects and mixing method
        categories: ink category per ink (drives opacity and medium handling);
            defaults to spot inks

    Returns:
        Mixed LabColor. A single ink at ratio 1.0 reproduces its own sample
        exactly in linear mode. In Kubelka-Munk mode a*/b* are preserved and
        L* follows the reflectance approximation (R clamped to [0.01, 0.99]).

    Raises:
        InputError: length mismatch, negative or all-zero ratios
    """
    if len(inks) != len(ratios):
        raise InputError(f"inks/ratios length mismatch: {len(inks)} != {len(ratios)}")
    if not inks:
        raise InputError("Nothing to mix")
    if categories is None:
        categories = [InkCategory.SPOT] * len(inks)
    elif len(categories) != len(inks):
        raise InputError(f"inks/categories length mismatch: {len(inks)} != {len(categories)}")
    if any(r < 0 or not math.isfinite(r) for r in ratios):
        raise InputError(f"Ratios must be finite and non-negative: {list(ratios)}")
    if sum(ratios) <= 0:
        raise InputError("Ratios sum to zero")

    labs = [as_lab(c) for c in inks]
    color = _MIXERS[model.method](labs, ratios, categories, model)

    if model.dot_gain:
        coverage = sum(ratios) / len(ratios) * 100.0
        color = compensate_lab(color, coverage, model.print_method)

    if model.substrate_blend:
        color_opacities = [ink_opacity(c) for c in categories if not _is_medium(c)]
        mean_opacity = sum(color_opacities) / len(color_opacities) if color_opacities else 0.0
        color = blend_with_substrate(color, model.substrate_profile, mean_opacity, base=model.substrate_lab)

    return color
