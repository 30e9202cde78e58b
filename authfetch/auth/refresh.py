"""Refresh-token exchange."""

from __future__ import annotations

import logging
import math
from typing import Any, Protocol

import httpx

from authfetch.auth.constants import FORM_CONTENT_TYPE, REFRESH_TIMEOUT_SEC
from authfetch.auth.models import Token
from authfetch.fetch.errors import AuthError

logger = logging.getLogger(__name__)


class TokenRefresher(Protocol):
    """Exchange a refresh token for a brand-new token pair.

    Implementations raise AuthError on failure and never retry internally.
    """

    async def refresh(self, refresh_token: str) -> Token: ...


def _parse_token_payload(payload: Any, previous_refresh: str) -> Token:
    if not isinstance(payload, dict):
        raise AuthError("Token refresh response is not a JSON object")
    access = payload.get("access_token")
    if not access or not isinstance(access, str):
        raise AuthError("Token refresh response missing access_token")
    # Servers that do not rotate refresh tokens omit the field.
    refresh = payload.get("refresh_token") or previous_refresh
    return Token.from_expires_in(access, str(refresh), _parse_expires_in(payload.get("expires_in")))


def _parse_expires_in(value: Any) -> int | None:
    """Lifetime in whole seconds, or None when absent or unusable."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if not math.isfinite(seconds):
        return None
    return int(seconds)


class OAuthTokenRefresher:
    """OAuth2 ``refresh_token`` grant against a token endpoint."""

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str | None = None,
        timeout: float = REFRESH_TIMEOUT_SEC,
        client: httpx.AsyncClient | None = None,
    ):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._client = client

    def _build_request(self, refresh_token: str) -> tuple[dict[str, str], httpx.BasicAuth | None]:
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        if self.client_secret:
            return data, httpx.BasicAuth(self.client_id, self.client_secret)
        data["client_id"] = self.client_id
        return data, None

    async def _post(self, client: httpx.AsyncClient, refresh_token: str) -> httpx.Response:
        data, auth = self._build_request(refresh_token)
        kwargs: dict[str, Any] = {"data": data, "headers": {"Content-Type": FORM_CONTENT_TYPE}}
        if auth is not None:
            kwargs["auth"] = auth
        return await client.post(self.token_url, **kwargs)

    async def refresh(self, refresh_token: str) -> Token:
        if not refresh_token:
            raise AuthError("No refresh token available")

        logger.debug("Refreshing access token via %s", self.token_url)
        try:
            if self._client is not None:
                response = await self._post(self._client, refresh_token)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, refresh_token)
        except httpx.HTTPError as e:
            raise AuthError(f"Token refresh request failed: {e}") from e

        if response.status_code != 200:
            raise AuthError(f"Token refresh failed: {response.status_code} {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError("Token refresh response is not valid JSON") from e
        return _parse_token_payload(payload, refresh_token)
