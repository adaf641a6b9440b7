"""In-memory repository for users and eco-points stats.

State lives for the lifetime of the process and resets on restart. Services
receive the store by injection; ``get_store()`` returns the process-wide
instance used by the API.
"""

import asyncio
from collections import defaultdict
from typing import Optional
from uuid import UUID

import structlog

from src.models.rewards import UserStats
from src.models.user import UserRecord

logger = structlog.get_logger(__name__)


class InMemoryStore:
    """Process-local maps for users and their ledger counters."""

    def __init__(self):
        self._users: dict[UUID, UserRecord] = {}
        self._ids_by_email: dict[str, UUID] = {}
        self._stats: dict[UUID, UserStats] = {}
        self._ledger_locks: defaultdict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    # Users

    def add_user(self, record: UserRecord) -> None:
        """Insert a user.

        Raises:
            KeyError: If the email is already taken
        """
        email = record.email.lower()
        if email in self._ids_by_email:
            raise KeyError(email)
        self._users[record.id] = record
        self._ids_by_email[email] = record.id

    def get_user(self, user_id: UUID) -> Optional[UserRecord]:
        return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        user_id = self._ids_by_email.get(email.lower())
        if user_id is None:
            return None
        return self._users[user_id]

    def count_users(self) -> int:
        return len(self._users)

    # Ledger

    def get_stats(self, user_id: UUID, initial_points: int = 0) -> UserStats:
        """Return the user's stats record, creating it on first access."""
        stats = self._stats.get(user_id)
        if stats is None:
            stats = UserStats(total_points=initial_points)
            self._stats[user_id] = stats
            logger.debug(
                "user_stats_created",
                user_id=str(user_id),
                initial_points=initial_points,
            )
        return stats

    def ledger_lock(self, user_id: UUID) -> asyncio.Lock:
        """Lock serializing balance mutations for one user."""
        return self._ledger_locks[user_id]

    def clear(self) -> None:
        """Drop all users and stats."""
        self._users.clear()
        self._ids_by_email.clear()
        self._stats.clear()
        self._ledger_locks.clear()


_store: Optional[InMemoryStore] = None


def get_store() -> InMemoryStore:
    """Get or create the process-wide store."""
    global _store
    if _store is None:
        _store = InMemoryStore()
    return _store


def reset_store() -> InMemoryStore:
    """Replace the process-wide store with an empty one."""
    global _store
    _store = InMemoryStore()
    return _store
