"""Eco-rewards, offers and redemption endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_current_user, get_ledger_service, get_offer_service
from src.models.offer import OffersResponse, RedeemRequest, RedeemResponse
from src.models.rewards import EcoRewardsResponse
from src.models.user import User
from src.services.ledger_service import LedgerService
from src.services.offer_service import OfferService

router = APIRouter(tags=["Rewards"])


@router.get("/eco-rewards")
async def get_eco_rewards(
    current_user: User = Depends(get_current_user),
    ledger: LedgerService = Depends(get_ledger_service),
) -> EcoRewardsResponse:
    """Current balance, carbon total and reward level."""
    return ledger.get_rewards(current_user.id)


@router.get("/offers")
async def list_offers(
    current_user: User = Depends(get_current_user),
    offer_service: OfferService = Depends(get_offer_service),
) -> OffersResponse:
    """Offer catalog with the caller's balance."""
    return offer_service.list_offers(current_user.id)


@router.post("/redeem-offer")
async def redeem_offer(
    request: RedeemRequest,
    current_user: User = Depends(get_current_user),
    offer_service: OfferService = Depends(get_offer_service),
) -> RedeemResponse:
    """Redeem an offer, returning a coupon code and the remaining balance.

    Raises:
        NotFoundError 404: Unknown offer id
        InsufficientPointsError 400: Balance below the offer cost
    """
    return await offer_service.redeem(current_user.id, request.offer_id)
