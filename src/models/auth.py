"""Auth request and response models with validation."""

from typing import Optional

from pydantic import Field, field_validator

from src.models.base import CamelModel
from src.models.user import User

MIN_PASSWORD_LENGTH = 6


class RegisterRequest(CamelModel):
    """New account details.

    Attributes:
        email: Unique email address (stored lowercased)
        password: Plain-text password (min 6 chars)
        name: Display name
    """

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def email_looks_valid(cls, v: str) -> str:
        """Normalize the email and require an '@'."""
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Email must contain '@'")
        return v

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        """Ensure name is not empty or whitespace only."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Name cannot be empty or whitespace only")
        return stripped


class LoginRequest(CamelModel):
    """Login credentials."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class RefreshRequest(CamelModel):
    """Request to exchange a refresh token for a new token pair.

    The token is optional at the schema level so a missing token can be
    reported as 401 rather than a validation error.
    """

    refresh_token: Optional[str] = None


class AuthTokens(CamelModel):
    """Access and refresh JWT pair.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Long-lived JWT for obtaining new token pairs
    """

    access_token: str
    refresh_token: str


class AuthResponse(CamelModel):
    """Successful register/login response."""

    user: User
    tokens: AuthTokens


class RefreshResponse(CamelModel):
    tokens: AuthTokens


class MeResponse(CamelModel):
    user: User


class MessageResponse(CamelModel):
    message: str


class TokenPayload(CamelModel):
    """Decoded JWT claims shared by access and refresh tokens."""

    user_id: str
    email: str
    type: str
    iat: Optional[int] = None
    exp: Optional[int] = None
