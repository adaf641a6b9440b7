"""Offer catalog and eco-points redemption."""

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.errors import EcoWearError, InsufficientPointsError, NotFoundError
from src.models.offer import Offer, OffersResponse, RedeemResponse
from src.services.ledger_service import LedgerService
from src.store import InMemoryStore

logger = structlog.get_logger(__name__)

COUPON_ALPHABET = string.ascii_uppercase + string.digits
COUPON_PREFIX = "ECO"
COUPON_GROUPS = 2
COUPON_GROUP_LENGTH = 4

# (id, title, description, points_cost, category, expires_in_days)
CATALOG = [
    (
        "eco_tshirt_discount",
        "20% Off Organic Cotton T-Shirt",
        "Get 20% off your next purchase of an organic cotton t-shirt from our "
        "sustainable fashion partners.",
        500,
        "discount",
        30,
    ),
    (
        "bamboo_fiber_discount",
        "Bamboo Fiber Clothing - 15% Off",
        "Sustainable bamboo fiber clothing with natural antibacterial properties.",
        750,
        "discount",
        45,
    ),
    (
        "eco_workshop",
        "Sustainable Fashion Workshop",
        "Join our online workshop on sustainable fashion choices and eco-friendly "
        "clothing care.",
        300,
        "experience",
        60,
    ),
    (
        "plant_tree",
        "Plant a Tree in Your Name",
        "We'll plant a tree in your name and send you a certificate with GPS "
        "coordinates.",
        1000,
        "eco-product",
        None,
    ),
    (
        "recycled_bag",
        "Recycled Ocean Plastic Tote Bag",
        "Stylish tote bag made from recycled ocean plastic. Free shipping included.",
        800,
        "eco-product",
        90,
    ),
    (
        "upcycling_kit",
        "DIY Upcycling Kit",
        "Complete kit with tools and instructions to upcycle your old clothing "
        "into new pieces.",
        600,
        "eco-product",
        None,
    ),
    (
        "sustainable_brand_voucher",
        "$25 Sustainable Fashion Voucher",
        "Voucher valid at any of our 50+ partner sustainable fashion brands.",
        1200,
        "discount",
        365,
    ),
    (
        "carbon_offset",
        "Carbon Offset - 1 Ton CO₂",
        "Offset 1 ton of CO₂ through verified reforestation projects.",
        1500,
        "eco-product",
        None,
    ),
]


def build_catalog(now: Optional[datetime] = None) -> list[Offer]:
    """Build the offer catalog with expiry dates relative to ``now``."""
    now = now or datetime.now(timezone.utc)
    offers = []
    for offer_id, title, description, cost, category, expires_in_days in CATALOG:
        expires_at = None
        if expires_in_days is not None:
            expires_at = (now + timedelta(days=expires_in_days)).isoformat()
        offers.append(
            Offer(
                id=offer_id,
                title=title,
                description=description,
                points_cost=cost,
                category=category,
                expires_at=expires_at,
            )
        )
    return offers


def generate_coupon_code() -> str:
    """Return a random coupon code such as ``ECO-7KQ2-M9XD``."""
    groups = [
        "".join(secrets.choice(COUPON_ALPHABET) for _ in range(COUPON_GROUP_LENGTH))
        for _ in range(COUPON_GROUPS)
    ]
    return "-".join([COUPON_PREFIX, *groups])


class OfferService:
    """Service exposing the static catalog and redeeming offers."""

    def __init__(
        self,
        store: Optional[InMemoryStore] = None,
        catalog: Optional[list[Offer]] = None,
    ):
        self.ledger = LedgerService(store)
        self.catalog = catalog if catalog is not None else get_catalog()
        self._by_id = {offer.id: offer for offer in self.catalog}

    def get_offer(self, offer_id: str) -> Optional[Offer]:
        return self._by_id.get(offer_id)

    def list_offers(self, user_id: UUID) -> OffersResponse:
        """Return the catalog with the user's current balance."""
        return OffersResponse(
            available_offers=list(self.catalog),
            user_points=self.ledger.get_points(user_id),
        )

    async def redeem(self, user_id: UUID, offer_id: str) -> RedeemResponse:
        """Redeem an offer for a user.

        The balance check and deduction happen under the user's ledger lock,
        so concurrent redemptions cannot overdraw the balance.

        Args:
            user_id: Redeeming user
            offer_id: Catalog id of the offer

        Returns:
            RedeemResponse with a fresh coupon code and remaining balance

        Raises:
            NotFoundError: If the offer id is unknown
            InsufficientPointsError: If the balance is below the offer cost
        """
        offer = self.get_offer(offer_id)
        if offer is None:
            raise NotFoundError("Offer not found", "offer_not_found")

        async with self.ledger.lock(user_id):
            current = self.ledger.get_points(user_id)
            if current < offer.points_cost:
                logger.info(
                    "redemption_insufficient_points",
                    user_id=str(user_id),
                    offer_id=offer_id,
                    required=offer.points_cost,
                    current=current,
                )
                raise InsufficientPointsError(required=offer.points_cost, current=current)

            if not self.ledger.deduct_locked(user_id, offer.points_cost):
                raise EcoWearError("Failed to deduct points", "deduction_failed")

            remaining = self.ledger.get_points(user_id)

        response = RedeemResponse(
            message=f"Successfully redeemed: {offer.title}",
            points_deducted=offer.points_cost,
            remaining_points=remaining,
            redemption_id=f"redemption_{uuid4().hex}",
            coupon_code=generate_coupon_code(),
        )
        logger.info(
            "offer_redeemed",
            user_id=str(user_id),
            offer_id=offer_id,
            redemption_id=response.redemption_id,
            remaining_points=remaining,
        )
        return response


_catalog: Optional[list[Offer]] = None


def get_catalog() -> list[Offer]:
    """Get the process-wide catalog, built on first use."""
    global _catalog
    if _catalog is None:
        _catalog = build_catalog()
    return _catalog
