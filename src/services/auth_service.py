"""Authentication service for JWT tokens and password hashing."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import bcrypt
import jwt
import structlog

from src.config import get_settings
from src.errors import ForbiddenError, UnauthorizedError
from src.models.auth import AuthTokens, TokenPayload
from src.models.user import User

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS256"
BCRYPT_MAX_PASSWORD_BYTES = 72
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _password_bytes(password: str) -> bytes:
    """UTF-8 encode a password, keeping only the bytes bcrypt reads."""
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


class AuthService:
    """Service for password hashing and access/refresh JWT lifecycle.

    Access and refresh tokens are signed with distinct secrets, so a token of
    one kind never verifies as the other. There is no server-side revocation
    list; a token is valid until it expires.
    """

    def __init__(self):
        self.settings = get_settings()

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Only the first 72 UTF-8 bytes are significant.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(_password_bytes(password), salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise
        """
        return bcrypt.checkpw(
            _password_bytes(password),
            password_hash.encode("utf-8"),
        )

    def _encode(self, user: User, token_type: str, secret: str, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "userId": str(user.id),
            "email": user.email,
            "type": token_type,
            "jti": uuid4().hex,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)

    def create_access_token(self, user: User) -> str:
        """Create a signed JWT access token.

        Args:
            user: Token subject; its id and email are placed in the payload

        Returns:
            Encoded JWT string
        """
        token = self._encode(
            user,
            ACCESS_TOKEN_TYPE,
            self.settings.jwt_secret,
            timedelta(minutes=self.settings.access_token_expire_minutes),
        )
        logger.debug(
            "access_token_created",
            user_id=str(user.id),
            expires_minutes=self.settings.access_token_expire_minutes,
        )
        return token

    def create_refresh_token(self, user: User) -> str:
        """Create a signed JWT refresh token using the refresh secret."""
        token = self._encode(
            user,
            REFRESH_TOKEN_TYPE,
            self.settings.jwt_refresh_secret,
            timedelta(days=self.settings.refresh_token_expire_days),
        )
        logger.debug(
            "refresh_token_created",
            user_id=str(user.id),
            expires_days=self.settings.refresh_token_expire_days,
        )
        return token

    def issue_tokens(self, user: User) -> AuthTokens:
        """Issue a fresh access/refresh pair for a user."""
        return AuthTokens(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user),
        )

    @staticmethod
    def _decode(token: str, secret: str, token_type: str) -> TokenPayload:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
        if payload.get("type") != token_type:
            raise jwt.InvalidTokenError(f"Expected a {token_type} token")
        try:
            return TokenPayload.model_validate(payload)
        except ValueError as e:
            raise jwt.InvalidTokenError(f"Malformed payload: {e}")

    def validate_access_token(self, token: str) -> TokenPayload:
        """Decode and validate a JWT access token.

        Args:
            token: Encoded JWT string

        Returns:
            Decoded payload

        Raises:
            UnauthorizedError: If the token is invalid, expired, or malformed
        """
        try:
            return self._decode(token, self.settings.jwt_secret, ACCESS_TOKEN_TYPE)
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Access token has expired", "token_expired")
        except jwt.InvalidTokenError as e:
            logger.debug("access_token_rejected", reason=str(e))
            raise UnauthorizedError("Invalid access token", "invalid_token")

    def validate_refresh_token(self, token: str) -> TokenPayload:
        """Decode and validate a JWT refresh token.

        Raises:
            ForbiddenError: If the signature, expiry, type or payload is bad
        """
        try:
            return self._decode(token, self.settings.jwt_refresh_secret, REFRESH_TOKEN_TYPE)
        except jwt.InvalidTokenError as e:
            # ExpiredSignatureError is a subclass
            logger.warning("refresh_token_rejected", reason=str(e))
            raise ForbiddenError("Invalid refresh token", "invalid_refresh_token")
