"""User registration and lookup service."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from src.models.auth import MIN_PASSWORD_LENGTH
from src.models.user import User, UserRecord
from src.services.auth_service import AuthService
from src.store import InMemoryStore, get_store

logger = structlog.get_logger(__name__)


class UserService:
    """Service for user registration and credential checks."""

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store if store is not None else get_store()
        self.auth_service = AuthService()

    def create_user(self, email: str, password: str, name: str) -> User:
        """Register a new user with a hashed password.

        Args:
            email: Unique email (compared and stored lowercased)
            password: Plain-text password (will be hashed)
            name: User's display name

        Returns:
            Created User model

        Raises:
            ValidationError: If a field is missing or the password is too short
            ConflictError: If the email is already registered
        """
        email = email.strip().lower()
        if not email or not password or not name:
            raise ValidationError("Email, password, and name are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if self.store.get_user_by_email(email) is not None:
            raise ConflictError("User with this email already exists", "user_exists")

        record = UserRecord(
            id=uuid4(),
            email=email,
            name=name,
            created_at=datetime.now(timezone.utc),
            password_hash=self.auth_service.hash_password(password),
        )
        try:
            self.store.add_user(record)
        except KeyError:
            raise ConflictError("User with this email already exists", "user_exists")

        logger.info("user_registered", user_id=str(record.id))
        return record.to_public()

    def authenticate(self, email: str, password: str) -> User:
        """Check credentials and return the matching user.

        Raises:
            NotFoundError: If no account uses this email
            UnauthorizedError: If the password does not match
        """
        record = self.store.get_user_by_email(email.strip())
        if record is None:
            logger.info("login_unknown_email")
            raise NotFoundError(
                "No account found with this email address. "
                "Would you like to create an account?",
                "user_not_found",
                suggestion="signup",
            )

        if not self.auth_service.verify_password(password, record.password_hash):
            logger.info("login_wrong_password", user_id=str(record.id))
            raise UnauthorizedError(
                "Incorrect password. Please check your password and try again.",
                "wrong_password",
                suggestion="reset_password",
            )

        logger.info("user_logged_in", user_id=str(record.id))
        return record.to_public()

    def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by UUID, or None if not found."""
        record = self.store.get_user(user_id)
        return record.to_public() if record is not None else None

    def get_by_email(self, email: str) -> Optional[User]:
        """Get a user by email (case-insensitive), or None if not found."""
        record = self.store.get_user_by_email(email)
        return record.to_public() if record is not None else None

    def count_users(self) -> int:
        return self.store.count_users()
