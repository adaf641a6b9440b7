"""Authentication API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
import structlog

from src.api.dependencies import get_auth_service, get_current_user, get_user_service
from src.errors import ForbiddenError, NotFoundError, UnauthorizedError
from src.models.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
)
from src.models.user import User
from src.services.auth_service import AuthService
from src.services.user_service import UserService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Create an account and sign the new user in.

    Raises:
        ValidationError 400: If the password is shorter than 6 characters
        ConflictError 409: If the email is already registered
    """
    user = user_service.create_user(
        email=request.email,
        password=request.password,
        name=request.name,
    )
    return AuthResponse(user=user, tokens=auth_service.issue_tokens(user))


@router.post("/login")
async def login(
    request: LoginRequest,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Login with email and password.

    Raises:
        NotFoundError 404: If no account uses the email
        UnauthorizedError 401: If the password is wrong
    """
    user = user_service.authenticate(request.email, request.password)
    return AuthResponse(user=user, tokens=auth_service.issue_tokens(user))


@router.post("/refresh")
async def refresh(
    request: RefreshRequest,
    user_service: UserService = Depends(get_user_service),
    auth_service: AuthService = Depends(get_auth_service),
) -> RefreshResponse:
    """Exchange a refresh token for a brand new token pair.

    Raises:
        UnauthorizedError 401: If no refresh token was sent
        ForbiddenError 403: If the token is tampered, expired or not a refresh token
        NotFoundError 404: If the token's user no longer exists
    """
    if not request.refresh_token:
        raise UnauthorizedError("Refresh token required", "missing_token")

    payload = auth_service.validate_refresh_token(request.refresh_token)
    try:
        user_id = UUID(payload.user_id)
    except ValueError:
        raise ForbiddenError("Invalid refresh token", "invalid_refresh_token")

    user = user_service.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found", "user_not_found")

    logger.info("tokens_refreshed", user_id=str(user.id))
    return RefreshResponse(tokens=auth_service.issue_tokens(user))


@router.post("/logout")
async def logout() -> MessageResponse:
    """Acknowledge a logout; clients discard their tokens."""
    return MessageResponse(message="Logged out successfully")


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> MeResponse:
    """Get current authenticated user info."""
    return MeResponse(user=current_user)
