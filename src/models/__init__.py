"""Models package exports."""

from src.models.analysis import AnalyzeImageRequest, ClothingItem, ImageAnalysisResponse
from src.models.auth import (
    AuthResponse,
    AuthTokens,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenPayload,
)
from src.models.offer import Offer, OffersResponse, RedeemRequest, RedeemResponse
from src.models.rewards import EcoRewardsResponse, UserStats
from src.models.user import User, UserRecord

__all__ = [
    "AnalyzeImageRequest",
    "AuthResponse",
    "AuthTokens",
    "ClothingItem",
    "EcoRewardsResponse",
    "ImageAnalysisResponse",
    "LoginRequest",
    "Offer",
    "OffersResponse",
    "RedeemRequest",
    "RedeemResponse",
    "RefreshRequest",
    "RegisterRequest",
    "TokenPayload",
    "User",
    "UserRecord",
    "UserStats",
]
