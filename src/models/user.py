"""User and authentication models."""

from datetime import datetime
from uuid import UUID

from src.models.base import CamelModel


class User(CamelModel):
    """A registered EcoWear user, as returned to clients."""

    id: UUID
    email: str
    name: str
    created_at: datetime


class UserRecord(User):
    """Stored user including the bcrypt password hash. Never serialized to clients."""

    password_hash: str

    def to_public(self) -> User:
        """Drop the password hash."""
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            created_at=self.created_at,
        )
