"""FastAPI dependencies for services and bearer authentication."""

from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.errors import NotFoundError, UnauthorizedError
from src.models.user import User
from src.services.analysis_service import AnalysisService
from src.services.auth_service import AuthService
from src.services.ledger_service import LedgerService
from src.services.offer_service import OfferService
from src.services.user_service import UserService
from src.store import InMemoryStore, get_store

bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service() -> AuthService:
    return AuthService()


def get_user_service(store: InMemoryStore = Depends(get_store)) -> UserService:
    return UserService(store)


def get_ledger_service(store: InMemoryStore = Depends(get_store)) -> LedgerService:
    return LedgerService(store)


def get_offer_service(store: InMemoryStore = Depends(get_store)) -> OfferService:
    return OfferService(store)


def get_analysis_service(store: InMemoryStore = Depends(get_store)) -> AnalysisService:
    return AnalysisService(store)


def _resolve_user(
    token: str,
    auth_service: AuthService,
    user_service: UserService,
) -> User:
    payload = auth_service.validate_access_token(token)
    try:
        user_id = UUID(payload.user_id)
    except ValueError:
        raise UnauthorizedError("Invalid token payload", "invalid_token")

    user = user_service.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found", "user_not_found")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Extract and validate the current user from a JWT Bearer token.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Authenticated User model

    Raises:
        UnauthorizedError: If the token is missing, invalid or expired
        NotFoundError: If the token's user no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access token required", "missing_token")
    return _resolve_user(credentials.credentials, auth_service, user_service)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
    user_service: UserService = Depends(get_user_service),
) -> Optional[User]:
    """Like get_current_user, but anonymous or bad tokens yield None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _resolve_user(credentials.credentials, auth_service, user_service)
    except (UnauthorizedError, NotFoundError):
        return None
