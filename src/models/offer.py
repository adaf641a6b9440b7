"""Offer catalog and redemption models."""

from typing import Literal, Optional

from pydantic import Field

from src.models.base import CamelModel

OfferCategory = Literal["discount", "experience", "eco-product"]


class Offer(CamelModel):
    """A catalog entry redeemable for eco-points."""

    id: str
    title: str
    description: str
    points_cost: int = Field(gt=0)
    category: OfferCategory
    image_url: Optional[str] = None
    expires_at: Optional[str] = None  # ISO-8601


class OffersResponse(CamelModel):
    available_offers: list[Offer]
    user_points: int = Field(ge=0)


class RedeemRequest(CamelModel):
    offer_id: str = Field(..., min_length=1)


class RedeemResponse(CamelModel):
    """Result of a successful redemption.

    Attributes:
        success: Always True; failures are reported as error bodies
        message: Confirmation naming the offer
        points_deducted: Exact cost of the offer
        remaining_points: Balance after deduction
        redemption_id: Identifier for this redemption
        coupon_code: Freshly generated, non-persisted coupon
    """

    success: bool = True
    message: str
    points_deducted: int
    remaining_points: int = Field(ge=0)
    redemption_id: str
    coupon_code: str
