"""Unit tests for the offer catalog and redemption."""

import asyncio
import re
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from src.errors import InsufficientPointsError, NotFoundError
from src.services.offer_service import (
    OfferService,
    build_catalog,
    generate_coupon_code,
)


@pytest.fixture
def offer_service(store):
    return OfferService(store)


class TestCatalog:
    def test_catalog_has_unique_ids(self):
        catalog = build_catalog()
        ids = [offer.id for offer in catalog]
        assert len(ids) == len(set(ids)) == 8

    def test_expiry_relative_to_build_time(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        catalog = {offer.id: offer for offer in build_catalog(now)}

        assert catalog["eco_tshirt_discount"].expires_at == (now + timedelta(days=30)).isoformat()
        assert catalog["plant_tree"].expires_at is None

    def test_categories(self):
        assert {o.category for o in build_catalog()} == {"discount", "experience", "eco-product"}

    def test_list_offers_includes_balance(self, offer_service):
        user_id = uuid4()
        offer_service.ledger.get_stats(user_id).total_points = 420

        response = offer_service.list_offers(user_id)

        assert response.user_points == 420
        assert len(response.available_offers) == 8

    def test_serializes_camel_case(self, offer_service):
        body = offer_service.list_offers(uuid4()).model_dump(by_alias=True)
        assert "availableOffers" in body
        assert "pointsCost" in body["availableOffers"][0]


class TestCouponCode:
    def test_format(self):
        assert re.fullmatch(r"ECO-[A-Z0-9]{4}-[A-Z0-9]{4}", generate_coupon_code())

    def test_codes_vary(self):
        codes = {generate_coupon_code() for _ in range(20)}
        assert len(codes) > 1


class TestRedeem:
    async def test_redeem_deducts_exact_cost(self, offer_service):
        user_id = uuid4()
        await offer_service.ledger.earn(user_id, 1000, 0)

        result = await offer_service.redeem(user_id, "eco_workshop")

        assert result.success is True
        assert result.points_deducted == 300
        assert result.remaining_points == 700
        assert offer_service.ledger.get_points(user_id) == 700
        assert result.message == "Successfully redeemed: Sustainable Fashion Workshop"
        assert result.coupon_code.startswith("ECO-")

    async def test_each_redemption_gets_new_coupon(self, offer_service):
        user_id = uuid4()
        await offer_service.ledger.earn(user_id, 1000, 0)

        first = await offer_service.redeem(user_id, "eco_workshop")
        second = await offer_service.redeem(user_id, "eco_workshop")

        assert first.redemption_id != second.redemption_id
        assert second.remaining_points == 400

    async def test_unknown_offer(self, offer_service):
        with pytest.raises(NotFoundError) as exc_info:
            await offer_service.redeem(uuid4(), "does_not_exist")
        assert exc_info.value.error_type == "offer_not_found"

    async def test_insufficient_points_leaves_balance(self, offer_service):
        user_id = uuid4()
        await offer_service.ledger.earn(user_id, 999, 0)

        with pytest.raises(InsufficientPointsError) as exc_info:
            await offer_service.redeem(user_id, "plant_tree")

        assert exc_info.value.to_dict() == {
            "error": "Insufficient points",
            "type": "insufficient_points",
            "required": 1000,
            "current": 999,
        }
        assert offer_service.ledger.get_points(user_id) == 999

    async def test_concurrent_redemptions_cannot_overdraw(self, offer_service):
        user_id = uuid4()
        await offer_service.ledger.earn(user_id, 1000, 0)

        results = await asyncio.gather(
            *(offer_service.redeem(user_id, "upcycling_kit") for _ in range(3)),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, InsufficientPointsError)]
        assert len(succeeded) == 1
        assert len(failed) == 2
        assert offer_service.ledger.get_points(user_id) == 400

    async def test_redeem_waits_for_ledger_lock(self, offer_service):
        user_id = uuid4()
        await offer_service.ledger.earn(user_id, 600, 0)

        async with offer_service.ledger.lock(user_id):
            task = asyncio.create_task(offer_service.redeem(user_id, "upcycling_kit"))
            for _ in range(5):
                await asyncio.sleep(0)
            assert not task.done()
            # Spend the balance while the redemption is queued on the lock
            assert offer_service.ledger.deduct_locked(user_id, 600)

        with pytest.raises(InsufficientPointsError):
            await task
        assert offer_service.ledger.get_points(user_id) == 0
