"""Integration tests for EcoWearClient token handling against the ASGI app."""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import jwt
import pytest

from src.client import EcoWearApiError, EcoWearClient, TokenStore, token_expires_at
from src.models.auth import AuthTokens
from src.services.auth_service import JWT_ALGORITHM
from tests.helpers import SAMPLE_IMAGE


@pytest.fixture
def transport(store):
    from src.main import app
    from src.store import get_store

    app.dependency_overrides[get_store] = lambda: store
    yield httpx.ASGITransport(app=app)
    app.dependency_overrides.clear()


@pytest.fixture
def token_path(tmp_path):
    return tmp_path / "session" / "tokens.json"


def _client(transport, token_path=None, **kwargs) -> EcoWearClient:
    token_store = TokenStore(token_path) if token_path is not None else None
    return EcoWearClient("http://test", token_store, transport=transport, **kwargs)


class TestTokenStore:
    def test_missing_file_loads_none(self, token_path):
        store = TokenStore(token_path)
        assert store.load() is None
        assert store.version() is None

    def test_save_and_load(self, token_path):
        store = TokenStore(token_path)
        tokens = AuthTokens(access_token="a", refresh_token="r")
        store.save(tokens)

        assert store.load() == tokens
        assert '"accessToken"' in token_path.read_text()

    def test_each_save_changes_version(self, token_path):
        store = TokenStore(token_path)
        store.save(AuthTokens(access_token="a", refresh_token="r"))
        first = store.version()
        store.save(AuthTokens(access_token="b", refresh_token="r"))
        assert store.version() != first

    def test_corrupt_file_is_discarded(self, token_path):
        token_path.parent.mkdir(parents=True)
        token_path.write_text("{not json")
        store = TokenStore(token_path)

        assert store.load() is None
        assert not token_path.exists()


def test_token_expires_at_reads_claim():
    exp = datetime.now(timezone.utc) + timedelta(minutes=5)
    token = jwt.encode({"exp": exp}, "any-secret", algorithm=JWT_ALGORITHM)
    assert token_expires_at(token) == pytest.approx(exp.timestamp(), abs=1)
    assert token_expires_at("garbage") is None


class TestSession:
    async def test_register_and_use_session(self, transport, token_path):
        async with _client(transport, token_path) as client:
            user = await client.register("kim@example.com", "secret123", "Kim")

            assert client.is_authenticated
            assert (await client.me()).id == user.id
            rewards = await client.eco_rewards()
            assert rewards.total_points == 0

    async def test_login_errors_surface_api_message(self, transport):
        async with _client(transport) as client:
            with pytest.raises(EcoWearApiError) as exc_info:
                await client.login("ghost@example.com", "secret123")

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_type == "user_not_found"
        assert "No account found" in exc_info.value.message

    async def test_refreshes_before_expiry(self, transport, token_path):
        # A margin longer than the access token lifetime makes every request refresh first
        async with _client(transport, token_path, refresh_margin=3600) as client:
            await client.register("lee@example.com", "secret123", "Lee")
            before = client.tokens

            await client.me()

            assert client.tokens.access_token != before.access_token
            assert TokenStore(token_path).load() == client.tokens

    async def test_retries_once_after_401(self, transport, token_path):
        async with _client(transport, token_path) as client:
            user = await client.register("max@example.com", "secret123", "Max")
            now = datetime.now(timezone.utc)
            forged = jwt.encode(
                {
                    "userId": str(user.id),
                    "email": user.email,
                    "type": "access",
                    "iat": now,
                    "exp": now + timedelta(minutes=15),
                },
                "not-the-server-secret",
                algorithm=JWT_ALGORITHM,
            )
            TokenStore(token_path).save(
                AuthTokens(access_token=forged, refresh_token=client.tokens.refresh_token)
            )

            me = await client.me()

            assert me.id == user.id
            assert client.tokens.access_token != forged

    async def test_rejected_refresh_logs_out(self, transport, token_path):
        async with _client(transport, token_path) as client:
            await client.register("ned@example.com", "secret123", "Ned")
            TokenStore(token_path).save(
                AuthTokens(access_token="garbage", refresh_token="also-garbage")
            )

            assert await client.refresh() is False
            assert not client.is_authenticated
            assert not token_path.exists()

            with pytest.raises(EcoWearApiError) as exc_info:
                await client.eco_rewards()
            assert exc_info.value.status_code == 401

    async def test_sessions_sync_through_shared_store(self, transport, token_path):
        first = _client(transport, token_path)
        second = _client(transport, token_path)
        try:
            assert not second.is_authenticated

            user = await first.register("oli@example.com", "secret123", "Oli")

            assert second.is_authenticated
            assert (await second.me()).id == user.id

            await first.logout()

            assert not second.is_authenticated
        finally:
            await first.close()
            await second.close()

    async def test_analysis_credits_logged_in_user(self, transport, store, token_path):
        async with _client(transport, token_path) as client:
            user = await client.register("pat@example.com", "secret123", "Pat")
            result = await client.analyze_image(SAMPLE_IMAGE)

            assert store.get_stats(user.id).total_points == result.eco_reward_points

    async def test_redeem_through_client(self, transport, store, token_path):
        async with _client(transport, token_path) as client:
            user = await client.register("quinn@example.com", "secret123", "Quinn")
            store.get_stats(user.id).total_points = 700

            offers = await client.offers()
            assert offers.user_points == 700

            result = await client.redeem_offer("upcycling_kit")
            assert result.remaining_points == 100

            with pytest.raises(EcoWearApiError) as exc_info:
                await client.redeem_offer("upcycling_kit")
            assert exc_info.value.error_type == "insufficient_points"
            assert exc_info.value.body["current"] == 100

    async def test_auto_refresh_task_lifecycle(self, transport, token_path):
        client = _client(transport, token_path)
        await client.register("ray@example.com", "secret123", "Ray")
        before = client.tokens.access_token

        client.start_auto_refresh(interval=0.01)
        for _ in range(50):
            if client.tokens.access_token != before:
                break
            await asyncio.sleep(0.01)

        await client.close()
        assert client.tokens.access_token != before
