"""Eco-points ledger: per-user balance, carbon total and reward levels."""

from typing import Optional
from uuid import UUID

import structlog

from src.config import get_settings
from src.models.rewards import EcoRewardsResponse, UserStats
from src.store import InMemoryStore, get_store

logger = structlog.get_logger(__name__)

# (exclusive upper bound, level name); Platinum has no bound
LEVEL_THRESHOLDS = [
    (500, "Bronze"),
    (1500, "Silver"),
    (3000, "Gold"),
]
TOP_LEVEL = "Platinum"
TOP_LEVEL_MILESTONE = 2000


def get_level(points: int) -> str:
    """Return the reward level name for a balance."""
    for bound, name in LEVEL_THRESHOLDS:
        if points < bound:
            return name
    return TOP_LEVEL


def get_next_level_points(points: int) -> int:
    """Return the balance needed for the next level.

    Platinum users get a rolling milestone above their balance.
    """
    for bound, _ in LEVEL_THRESHOLDS:
        if points < bound:
            return bound
    return points + TOP_LEVEL_MILESTONE


class LedgerService:
    """Service for reading and mutating eco-points balances.

    Mutations take the user's ledger lock from the store. Callers that must
    check a balance and then deduct atomically hold ``lock(user_id)`` and use
    ``deduct_locked``.
    """

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store if store is not None else get_store()
        self.settings = get_settings()

    def get_stats(self, user_id: UUID) -> UserStats:
        """Return the user's stats, creating them on first access."""
        return self.store.get_stats(user_id, self.settings.initial_points)

    def get_points(self, user_id: UUID) -> int:
        return self.get_stats(user_id).total_points

    def get_rewards(self, user_id: UUID) -> EcoRewardsResponse:
        """Summarize a user's balance with level information."""
        stats = self.get_stats(user_id)
        return EcoRewardsResponse(
            total_points=stats.total_points,
            total_carbon_saved=round(stats.total_carbon_saved, 1),
            analyses_count=stats.analyses_count,
            level=get_level(stats.total_points),
            next_level_points=get_next_level_points(stats.total_points),
        )

    def lock(self, user_id: UUID):
        return self.store.ledger_lock(user_id)

    async def earn(self, user_id: UUID, points: int, carbon: float) -> UserStats:
        """Credit points and carbon for one analysis.

        Args:
            user_id: User to credit
            points: Eco-points earned, non-negative
            carbon: kg CO2 attributed to the analysis, non-negative

        Returns:
            Updated stats

        Raises:
            ValueError: If either amount is negative
        """
        if points < 0 or carbon < 0:
            raise ValueError("Earned points and carbon must be non-negative")

        async with self.lock(user_id):
            stats = self.get_stats(user_id)
            stats.total_points += points
            stats.total_carbon_saved += carbon
            stats.analyses_count += 1

        logger.info(
            "points_earned",
            user_id=str(user_id),
            points=points,
            carbon=carbon,
            total_points=stats.total_points,
        )
        return stats

    def deduct_locked(self, user_id: UUID, points: int) -> bool:
        """Deduct points; the caller must hold ``lock(user_id)``.

        Returns:
            False without touching the balance if it is insufficient
        """
        if points < 0:
            raise ValueError("Deducted points must be non-negative")

        stats = self.get_stats(user_id)
        if stats.total_points < points:
            logger.info(
                "points_deduction_refused",
                user_id=str(user_id),
                points=points,
                total_points=stats.total_points,
            )
            return False

        stats.total_points -= points
        logger.info(
            "points_deducted",
            user_id=str(user_id),
            points=points,
            total_points=stats.total_points,
        )
        return True

    async def deduct(self, user_id: UUID, points: int) -> bool:
        """Deduct points if the balance covers them.

        Returns:
            True after deducting, False if the balance is insufficient
        """
        async with self.lock(user_id):
            return self.deduct_locked(user_id, points)
