from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, Optional

import httpx

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
HELIX_URL = "https://api.twitch.tv/helix"


class TwitchAPI:
    """Minimal Twitch Helix client, enough to answer "is this channel live?".

    - Acquires an app access token (client credentials) and refreshes it
      shortly before it expires.
    - `get_stream` returns the stream object when live, None when offline.
    - `stream_fetcher` adapts `get_stream` to the zero-argument coroutine
      function a `Watcher` polls.

    Pass `transport` to swap the network layer (e.g. `httpx.MockTransport`
    in tests). Credentials come from `Config`; never commit them.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self._timeout = timeout
        self._transport = transport

        # token state
        self._access_token: Optional[str] = None
        self._token_expiry: float = 0.0

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def _acquire_app_token(self) -> None:
        if not (self.client_id and self.client_secret):
            raise RuntimeError("TWITCH_CLIENT_ID and TWITCH_CLIENT_SECRET must be set")

        data = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "client_credentials",
        }
        async with self._client() as client:
            resp = await client.post(TOKEN_URL, data=data)
            resp.raise_for_status()
            payload = resp.json()

        token = payload.get("access_token")
        expires_in = int(payload.get("expires_in", 0))
        if not token:
            raise RuntimeError(f"failed to acquire Twitch token: {payload}")

        # small clock skew buffer
        self._access_token = token
        self._token_expiry = time.time() + max(0, expires_in - 30)

    async def _ensure_token(self) -> None:
        if not self._access_token or time.time() >= self._token_expiry:
            await self._acquire_app_token()

    async def get_helix(self, path: str, params: dict | None = None) -> dict:
        """GET a Helix endpoint, e.g. ``await api.get_helix("users", {"login": "x"})``."""
        await self._ensure_token()
        headers = {
            "Client-Id": self.client_id,
            "Authorization": f"Bearer {self._access_token}",
        }
        url = f"{HELIX_URL}/{path.lstrip('/')}"
        async with self._client() as client:
            resp = await client.get(url, params=params, headers=headers)
            if resp.status_code == 401:
                # token revoked or expired early; retry once with a fresh one
                await self._acquire_app_token()
                headers["Authorization"] = f"Bearer {self._access_token}"
                resp = await client.get(url, params=params, headers=headers)
            resp.raise_for_status()
            return resp.json()

    @staticmethod
    def _first(res: Any) -> dict | None:
        if not isinstance(res, dict):
            return None
        data = res.get("data") or []
        if not data:
            return None
        return data[0]

    async def get_user_by_login(self, login: str) -> dict | None:
        if not login:
            return None
        return self._first(await self.get_helix("users", {"login": login}))

    async def get_stream(
        self, user_login: str | None = None, user_id: str | None = None
    ) -> dict | None:
        """Return the live stream object for a channel, or None if it is offline."""
        if bool(user_login) == bool(user_id):
            raise ValueError("exactly one of user_login or user_id is required")
        params = {"user_login": user_login} if user_login else {"user_id": user_id}
        return self._first(await self.get_helix("streams", params))

    def stream_fetcher(
        self, user_login: str | None = None, user_id: str | None = None
    ) -> Callable[[], Awaitable[dict | None]]:
        if bool(user_login) == bool(user_id):
            raise ValueError("exactly one of user_login or user_id is required")

        async def fetch() -> dict | None:
            return await self.get_stream(user_login=user_login, user_id=user_id)

        return fetch
