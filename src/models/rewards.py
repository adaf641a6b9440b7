"""Eco-points ledger models."""

from pydantic import Field

from src.models.base import CamelModel


class UserStats(CamelModel):
    """Per-user eco-points counters.

    Attributes:
        total_points: Current redeemable balance, never negative
        total_carbon_saved: Cumulative kg CO2 across analyses
        analyses_count: Number of analyses credited to the user
    """

    total_points: int = Field(default=0, ge=0)
    total_carbon_saved: float = Field(default=0.0, ge=0)
    analyses_count: int = Field(default=0, ge=0)


class EcoRewardsResponse(CamelModel):
    """Balance summary with reward level."""

    total_points: int = Field(ge=0)
    total_carbon_saved: float
    analyses_count: int = Field(ge=0)
    level: str
    next_level_points: int
