"""API package exports."""

from src.api.analysis import router as analysis_router
from src.api.auth import router as auth_router
from src.api.middleware import CorrelationIdMiddleware
from src.api.rewards import router as rewards_router
from src.api.routes import router

__all__ = [
    "CorrelationIdMiddleware",
    "analysis_router",
    "auth_router",
    "rewards_router",
    "router",
]
