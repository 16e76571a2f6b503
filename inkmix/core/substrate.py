"""
Substrate Module

Substrate profiles, ink color blending over the substrate and
multilayer (overprint) composition.
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from inkmix.errors import InputError
from inkmix.schemas.color import LabColor


@dataclass(frozen=True)
class SubstrateProfile:
    base: LabColor
    absorption: float  # ink absorption (darkening factor)
    opacity: float  # how much of the ink layer hides the substrate


SUBSTRATE_PROFILES: Dict[str, SubstrateProfile] = {
    "white_coated": SubstrateProfile(LabColor(95.0, 0.0, -2.0), absorption=0.15, opacity=0.98),
    "white_uncoated": SubstrateProfile(LabColor(92.0, 0.0, 2.0), absorption=0.25, opacity=0.95),
    "kraft": SubstrateProfile(LabColor(70.0, 5.0, 15.0), absorption=0.35, opacity=0.90),
    "transparent": SubstrateProfile(LabColor(100.0, 0.0, 0.0), absorption=0.05, opacity=0.10),
    "metallic": SubstrateProfile(LabColor(85.0, -1.0, -1.0), absorption=0.10, opacity=0.99),
}

# Scattering coefficient multiplying the summed K/S
SUBSTRATE_SCATTERING: Dict[str, float] = {
    "coated": 0.85,
    "uncoated": 0.95,
    "plastic": 0.75,
    "metal": 0.65,
    "transparent": 0.55,
}


def get_profile(name: str) -> SubstrateProfile:
    try:
        return SUBSTRATE_PROFILES[name]
    except KeyError as e:
        raise InputError(f"Unknown substrate profile: {name} (use {sorted(SUBSTRATE_PROFILES)})") from e


def scattering_coefficient(substrate_type: str) -> float:
    try:
        return SUBSTRATE_SCATTERING[substrate_type]
    except KeyError as e:
        raise InputError(f"Unknown substrate type: {substrate_type} (use {sorted(SUBSTRATE_SCATTERING)})") from e


def blend_with_substrate(
    ink: LabColor,
    profile: str = "white_coated",
    ink_opacity: float = 0.9,
    base: Optional[LabColor] = None,
) -> LabColor:
    """
    Alpha-blend an ink color over the substrate, then apply absorption.

    Args:
        ink: mixed ink color
        profile: substrate profile name
        ink_opacity: mean opacity of the inks in the mix (0~1)
        base: substrate color overriding the profile's base color
    """
    sub = get_profile(profile)
    base = base or sub.base
    alpha = min(max(ink_opacity, 0.0), 1.0) * sub.opacity
    L = ink.L * alpha + base.L * (1 - alpha)
    a = ink.a * alpha + base.a * (1 - alpha)
    b = ink.b * alpha + base.b * (1 - alpha)
    return LabColor(L * (1 - sub.absorption * 0.1), a, b).clamped()


@dataclass(frozen=True)
class InkLayer:
    color: LabColor
    thickness: float = 1.0
    opacity: float = 0.8


def composite_layers(layers: Sequence[InkLayer], substrate: LabColor = LabColor(95.0, 0.0, -2.0)) -> LabColor:
    """
    Overprint layers bottom to top over a substrate.

    Each layer transmits T = exp(-opacity * thickness) of what lies below:
    result = below * T + layer * (1 - T).
    """
    L, a, b = substrate.as_tuple()
    for layer in layers:
        if layer.thickness < 0 or layer.opacity < 0:
            raise InputError("Layer thickness and opacity must be non-negative")
        t = math.exp(-layer.opacity * layer.thickness)
        L = L * t + layer.color.L * (1 - t)
        a = a * t + layer.color.a * (1 - t)
        b = b * t + layer.color.b * (1 - t)
    return LabColor(L, a, b)
