"""Public entry point: authenticated GET with refresh and backoff."""

from __future__ import annotations

import asyncio
import random
from typing import TYPE_CHECKING, Any

import httpx

from authfetch.fetch.errors import ErrorClassifier, FetchError
from authfetch.fetch.executor import FetchResult, RequestExecutor
from authfetch.fetch.retry import DEFAULT_POLICY, BackoffRetrier, RetryPolicy, Sleep

if TYPE_CHECKING:
    from authfetch.auth.models import Token
    from authfetch.auth.refresh import TokenRefresher

DEFAULT_TIMEOUT_SEC = 10.0


class Fetcher:
    """Fetch bearer-protected resources, retrying transient HTTP failures.

    Usage::

        async with Fetcher(refresher, base_url="https://api.example") as fetcher:
            result = await fetcher.fetch("/x", token)
            token = result.token

    ``base_url`` and ``timeout`` only configure the client the Fetcher
    creates itself. A caller-supplied ``client`` is used as is and is left
    open on close.
    """

    def __init__(
        self,
        refresher: TokenRefresher,
        policy: RetryPolicy = DEFAULT_POLICY,
        classifier: ErrorClassifier | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str = "",
        timeout: float = DEFAULT_TIMEOUT_SEC,
        refresh_leeway: float | None = None,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._executor = RequestExecutor(
            self._client,
            refresher,
            classifier=classifier,
            refresh_leeway=refresh_leeway,
        )
        self._retrier = BackoffRetrier(policy, sleep=sleep, rng=rng)

    @property
    def policy(self) -> RetryPolicy:
        return self._retrier.policy

    async def fetch(self, url: str, token: Token, cancel: asyncio.Event | None = None) -> FetchResult:
        """GET ``url`` and return the body with the possibly refreshed token.

        Raises a FetchError subclass on failure; its ``token`` attribute holds
        the latest token so a refresh is never lost.
        """
        current = token
        attempts = 0

        async def operation() -> FetchResult:
            nonlocal current, attempts
            attempts += 1
            try:
                result = await self._executor.execute(url, current, cancel=cancel)
            except FetchError as e:
                if e.token is not None:
                    current = e.token
                raise
            current = result.token
            return result

        try:
            result = await self._retrier.retry(operation, cancel=cancel)
        except FetchError as e:
            e.token = current
            raise
        result.attempts = attempts
        return result

    async def fetch_json(self, url: str, token: Token, cancel: asyncio.Event | None = None) -> tuple[Any, Token]:
        """Fetch ``url`` and decode the body as JSON."""
        result = await self.fetch(url, token, cancel=cancel)
        return result.json(), result.token

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
