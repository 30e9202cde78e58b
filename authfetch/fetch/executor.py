"""Single authenticated GET with one-shot token refresh."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from authfetch.fetch.cancel import run_cancellable
from authfetch.fetch.errors import (
    HTTP_OK,
    HTTP_UNAUTHORIZED,
    AuthError,
    ErrorClassifier,
    FetchError,
    TransportError,
)

if TYPE_CHECKING:
    from authfetch.auth.models import Token
    from authfetch.auth.refresh import TokenRefresher

logger = logging.getLogger(__name__)


class AuthState(Enum):
    """Refresh progress within one execute() call."""

    INITIAL = "initial"
    REFRESHED_ONCE = "refreshed_once"
    TERMINAL = "terminal"


@dataclass
class FetchResult:
    """Body of a successful fetch plus the token in effect afterwards."""

    body: bytes
    token: Token
    status_code: int = HTTP_OK
    attempts: int = 1

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)


def _build_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


class RequestExecutor:
    """Perform one GET, refreshing the token at most once on 401."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        refresher: TokenRefresher,
        classifier: ErrorClassifier | None = None,
        refresh_leeway: float | None = None,
    ):
        self._client = client
        self._refresher = refresher
        self._classifier = classifier or ErrorClassifier()
        self._refresh_leeway = refresh_leeway

    async def execute(self, url: str, token: Token, cancel: asyncio.Event | None = None) -> FetchResult:
        """Fetch ``url``; return the body and the token that was used.

        The passed-in token is never modified. If a refresh happened, the
        result (or the raised FetchError) carries the new token.
        """
        state = AuthState.INITIAL
        current = token
        try:
            if self._refresh_leeway is not None and current.is_expired(self._refresh_leeway):
                logger.debug("Access token expires within %ss; refreshing before request", self._refresh_leeway)
                current = await self._refresh(current, cancel)
                state = AuthState.REFRESHED_ONCE

            while True:
                response = await self._send(url, current, cancel)
                if response.status_code == HTTP_UNAUTHORIZED:
                    if state is AuthState.REFRESHED_ONCE:
                        state = AuthState.TERMINAL
                        raise AuthError(f"Refreshed access token was rejected by {url}")
                    logger.debug("Access token rejected by %s; refreshing", url)
                    current = await self._refresh(current, cancel)
                    state = AuthState.REFRESHED_ONCE
                    continue
                if response.status_code != HTTP_OK:
                    raise self._classifier.classify(response.status_code)
                return FetchResult(body=response.content, token=current, status_code=response.status_code)
        except FetchError as e:
            if current is not token:
                e.token = current
            raise

    async def _send(self, url: str, token: Token, cancel: asyncio.Event | None) -> httpx.Response:
        if not token.access:
            raise AuthError("Access token is empty")
        try:
            return await run_cancellable(
                self._client.get(url, headers=_build_headers(token.access)),
                cancel,
                f"GET {url}",
            )
        except httpx.TransportError as e:
            raise TransportError(f"GET {url} failed: {e}") from e

    async def _refresh(self, token: Token, cancel: asyncio.Event | None) -> Token:
        try:
            return await run_cancellable(self._refresher.refresh(token.refresh), cancel, "token refresh")
        except FetchError:
            raise
        except Exception as e:
            raise AuthError(f"Token refresh failed: {e}") from e
