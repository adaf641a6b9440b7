"""Services package exports."""

from src.services.analysis_service import AnalysisService
from src.services.auth_service import AuthService
from src.services.ledger_service import LedgerService
from src.services.logging_service import configure_logging, get_logger
from src.services.offer_service import OfferService
from src.services.user_service import UserService

__all__ = [
    "AnalysisService",
    "AuthService",
    "LedgerService",
    "OfferService",
    "UserService",
    "configure_logging",
    "get_logger",
]
