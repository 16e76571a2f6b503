"""
Recipe Option Schemas

Pydantic models validating caller options for find_recipe.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

ALLOWED_CONCENTRATIONS = (100, 70, 40)


class LabColorData(BaseModel):
    """Lab color (CIELAB)"""

    L: float = Field(..., ge=0, le=100, description="Lightness (0-100)")
    a: float = Field(..., ge=-128, le=127, description="a* (-128 to 127)")
    b: float = Field(..., ge=-128, le=127, description="b* (-128 to 127)")

    class Config:
        json_schema_extra = {"example": {"L": 80.0, "a": -20.0, "b": -30.0}}


class FindRecipeOptions(BaseModel):
    """Options for find_recipe"""

    max_inks: int = Field(default=4, ge=1, le=8, description="Maximum inks per recipe")
    preferred_concentrations: List[int] = Field(
        default_factory=lambda: list(ALLOWED_CONCENTRATIONS),
        min_length=1,
        description="Concentration levels to use (subset of 100/70/40)",
    )
    include_white: bool = Field(default=True, description="Allow the white ink")
    cost_weight: float = Field(default=0.2, ge=0.0, le=1.0, description="Weight of cost in the score")
    max_results: int = Field(default=1, ge=1, description="Number of recipes to return")
    substrate_lab: Optional[LabColorData] = Field(None, description="Substrate color for substrate-adjusted targeting")
    seed: Optional[int] = Field(None, ge=0, description="Random seed for sampled searches (None = non-deterministic)")
    delta_e_threshold: float = Field(default=10.0, gt=0, description="Results above this ΔE are discarded")

    @field_validator("preferred_concentrations")
    @classmethod
    def validate_concentrations(cls, v):
        invalid = [c for c in v if c not in ALLOWED_CONCENTRATIONS]
        if invalid:
            raise ValueError(f"Unsupported concentrations {invalid}, allowed: {list(ALLOWED_CONCENTRATIONS)}")
        return sorted(set(v), reverse=True)

    class Config:
        json_schema_extra = {
            "example": {
                "max_inks": 3,
                "preferred_concentrations": [100, 70, 40],
                "include_white": True,
                "cost_weight": 0.2,
                "max_results": 3,
                "seed": 42,
            }
        }
