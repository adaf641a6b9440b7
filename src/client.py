"""Async HTTP client for the EcoWear API with managed token sessions.

Tokens live in a ``TokenStore``: a JSON file that several client processes
can share. Each request first re-reads the file if another process changed
it, refreshes the access token shortly before it expires, and retries once
after a refresh if the server still answers 401.
"""

import asyncio
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Optional

import httpx
import jwt
import structlog

from src.models.analysis import ImageAnalysisResponse
from src.models.auth import AuthResponse, AuthTokens, RefreshResponse
from src.models.offer import OffersResponse, RedeemResponse
from src.models.rewards import EcoRewardsResponse
from src.models.user import User

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30
REFRESH_MARGIN_SECONDS = 60
AUTO_REFRESH_INTERVAL_SECONDS = 14 * 60


class EcoWearApiError(Exception):
    """Non-2xx response from the API.

    Attributes:
        status_code: HTTP status
        message: The ``error`` field of the body, or the raw text
        error_type: The ``type`` field of the body, if any
        body: Decoded JSON body, or None
    """

    def __init__(self, status_code: int, body: Optional[dict], text: str = ""):
        self.status_code = status_code
        self.body = body
        self.message = (body or {}).get("error") or text or f"HTTP {status_code}"
        self.error_type = (body or {}).get("type")
        super().__init__(f"{status_code}: {self.message}")


class TokenStore:
    """File-backed token storage shared between client instances."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Optional[AuthTokens]:
        """Read tokens, or None if the file is missing or unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return AuthTokens.model_validate_json(raw)
        except ValueError:
            logger.warning("token_store_corrupt", path=str(self.path))
            self.clear()
            return None

    def save(self, tokens: AuthTokens) -> None:
        """Atomically replace the stored tokens."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".tokens-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(tokens.model_dump_json(by_alias=True))
            os.replace(tmp_path, self.path)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def version(self) -> Optional[tuple[int, int]]:
        """Stamp used to notice writes from other clients.

        Every save replaces the file, so the inode changes even when the
        modification time does not.
        """
        try:
            stat = self.path.stat()
            return stat.st_ino, stat.st_mtime_ns
        except FileNotFoundError:
            return None


def token_expires_at(token: str) -> Optional[float]:
    """Read the ``exp`` claim without verifying the signature."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return None
    exp = claims.get("exp")
    return float(exp) if exp is not None else None


class EcoWearClient:
    """Client for the EcoWear REST API.

    Usage:
        async with EcoWearClient("http://localhost:8000", TokenStore("tokens.json")) as client:
            await client.login("me@example.com", "secret1")
            rewards = await client.eco_rewards()
    """

    def __init__(
        self,
        base_url: str,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
        refresh_margin: float = REFRESH_MARGIN_SECONDS,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self.refresh_margin = refresh_margin
        self._http = httpx.AsyncClient(
            base_url=f"{self.base_url}/api",
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._tokens: Optional[AuthTokens] = None
        self._store_version: Optional[tuple[int, int]] = None
        self._refresh_lock = asyncio.Lock()
        self._auto_refresh_task: Optional[asyncio.Task] = None
        self._sync_from_store(force=True)

    async def __aenter__(self) -> "EcoWearClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        """Stop auto refresh and close the HTTP client."""
        await self.stop_auto_refresh()
        await self._http.aclose()

    # Token state

    @property
    def tokens(self) -> Optional[AuthTokens]:
        self._sync_from_store()
        return self._tokens

    @property
    def is_authenticated(self) -> bool:
        return self.tokens is not None

    def _sync_from_store(self, force: bool = False) -> None:
        """Adopt tokens written to the store by another client."""
        if self.token_store is None:
            return
        version = self.token_store.version()
        if not force and version == self._store_version:
            return
        self._store_version = version
        self._tokens = self.token_store.load() if version is not None else None
        if not force:
            logger.debug("tokens_synced_from_store", authenticated=self._tokens is not None)

    def _set_tokens(self, tokens: Optional[AuthTokens]) -> None:
        self._tokens = tokens
        if self.token_store is None:
            return
        if tokens is None:
            self.token_store.clear()
        else:
            self.token_store.save(tokens)
        self._store_version = self.token_store.version()

    def _access_token_due(self) -> bool:
        if self._tokens is None:
            return False
        expires_at = token_expires_at(self._tokens.access_token)
        if expires_at is None:
            return True
        return expires_at - time.time() <= self.refresh_margin

    # Transport

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = None
        raise EcoWearApiError(response.status_code, body, response.text)

    async def _send(
        self, method: str, path: str, authenticated: bool, **kwargs: Any
    ) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if authenticated and self._tokens is not None:
            headers["Authorization"] = f"Bearer {self._tokens.access_token}"
        return await self._http.request(method, path, headers=headers, **kwargs)

    async def _request(
        self, method: str, path: str, authenticated: bool = True, **kwargs: Any
    ) -> Any:
        """Send a request, refreshing tokens before and after as needed."""
        if authenticated:
            self._sync_from_store()
            if self._access_token_due():
                await self.refresh()

        response = await self._send(method, path, authenticated, **kwargs)

        if authenticated and response.status_code == 401 and self._tokens is not None:
            logger.info("access_token_rejected_retrying", path=path)
            if await self.refresh():
                response = await self._send(method, path, authenticated, **kwargs)

        self._raise_for_status(response)
        return response.json()

    # Auth

    async def register(self, email: str, password: str, name: str) -> User:
        data = await self._request(
            "POST",
            "/auth/register",
            authenticated=False,
            json={"email": email, "password": password, "name": name},
        )
        result = AuthResponse.model_validate(data)
        self._set_tokens(result.tokens)
        return result.user

    async def login(self, email: str, password: str) -> User:
        data = await self._request(
            "POST",
            "/auth/login",
            authenticated=False,
            json={"email": email, "password": password},
        )
        result = AuthResponse.model_validate(data)
        self._set_tokens(result.tokens)
        logger.info("client_logged_in", user_id=str(result.user.id))
        return result.user

    async def refresh(self) -> bool:
        """Exchange the refresh token for a new pair.

        Concurrent callers share one refresh: if the tokens changed while
        waiting (another coroutine, or another client writing the store),
        those are used instead. Tokens are cleared when the server rejects
        the refresh token.

        Returns:
            True if valid-looking tokens are in place
        """
        self._sync_from_store()
        observed = self._tokens.access_token if self._tokens else None

        async with self._refresh_lock:
            self._sync_from_store()
            if self._tokens is None:
                return False
            if self._tokens.access_token != observed:
                return True

            response = await self._http.post(
                "/auth/refresh", json={"refreshToken": self._tokens.refresh_token}
            )
            if response.status_code in (401, 403, 404):
                logger.warning("client_refresh_rejected", status_code=response.status_code)
                self._set_tokens(None)
                return False
            self._raise_for_status(response)

            self._set_tokens(RefreshResponse.model_validate(response.json()).tokens)
            logger.debug("client_tokens_refreshed")
            return True

    async def logout(self) -> None:
        """Tell the server and discard tokens locally, even if the call fails."""
        try:
            await self._request("POST", "/auth/logout", authenticated=False)
        except (httpx.HTTPError, EcoWearApiError) as e:
            logger.warning("client_logout_request_failed", error=str(e))
        finally:
            self._set_tokens(None)

    async def me(self) -> User:
        data = await self._request("GET", "/auth/me")
        return User.model_validate(data["user"])

    # Auto refresh

    def start_auto_refresh(self, interval: float = AUTO_REFRESH_INTERVAL_SECONDS) -> None:
        """Refresh tokens in the background every ``interval`` seconds."""
        if self._auto_refresh_task is not None and not self._auto_refresh_task.done():
            return

        async def _loop():
            while True:
                await asyncio.sleep(interval)
                try:
                    await self.refresh()
                except (httpx.HTTPError, EcoWearApiError) as e:
                    logger.warning("client_auto_refresh_failed", error=str(e))

        self._auto_refresh_task = asyncio.create_task(_loop())

    async def stop_auto_refresh(self) -> None:
        task, self._auto_refresh_task = self._auto_refresh_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # Eco-points

    async def ping(self) -> dict:
        return await self._request("GET", "/ping", authenticated=False)

    async def analyze_image(self, image_data: str) -> ImageAnalysisResponse:
        """Analyze an image; points are credited when logged in."""
        data = await self._request(
            "POST",
            "/analyze-image",
            authenticated=self.is_authenticated,
            json={"imageData": image_data},
        )
        return ImageAnalysisResponse.model_validate(data)

    async def eco_rewards(self) -> EcoRewardsResponse:
        return EcoRewardsResponse.model_validate(await self._request("GET", "/eco-rewards"))

    async def offers(self) -> OffersResponse:
        return OffersResponse.model_validate(await self._request("GET", "/offers"))

    async def redeem_offer(self, offer_id: str) -> RedeemResponse:
        data = await self._request("POST", "/redeem-offer", json={"offerId": offer_id})
        return RedeemResponse.model_validate(data)
