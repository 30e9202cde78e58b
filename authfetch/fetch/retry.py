"""Exponential backoff with jitter for HTTP-level failures."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from tenacity import AsyncRetrying, RetryCallState, before_sleep_log, retry_if_exception, stop_after_attempt
from tenacity.wait import wait_base

from authfetch.fetch.cancel import run_cancellable
from authfetch.fetch.errors import ClassifiedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 32.0
DEFAULT_RETRYABLE_STATUSES = frozenset({500, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry limits; delays are in seconds."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    retryable_statuses: frozenset[int] = field(default=DEFAULT_RETRYABLE_STATUSES)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must not be smaller than base_delay")
        object.__setattr__(self, "retryable_statuses", frozenset(self.retryable_statuses))

    def is_retryable(self, exc: BaseException) -> bool:
        """Only classified HTTP errors with a retryable status qualify."""
        return isinstance(exc, ClassifiedError) and exc.status_code in self.retryable_statuses

    def delay_for(self, retry_index: int) -> float:
        """Pre-jitter delay before retry ``retry_index`` (0-based)."""
        return min(self.base_delay * (2 ** retry_index), self.max_delay)


DEFAULT_POLICY = RetryPolicy()


class BackoffWait(wait_base):
    """Doubling delay capped at ``max_delay`` plus uniform jitter in [0, delay)."""

    def __init__(self, policy: RetryPolicy, rng: random.Random | None = None):
        self._policy = policy
        self._rng = rng or random.Random()

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self._policy.delay_for(retry_state.attempt_number - 1)
        return delay + self._rng.random() * delay


class BackoffRetrier:
    """Re-invoke an async operation under a RetryPolicy."""

    def __init__(
        self,
        policy: RetryPolicy = DEFAULT_POLICY,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ):
        self.policy = policy
        self._sleep = sleep or asyncio.sleep
        self._rng = rng

    def _retrying(self, cancel: asyncio.Event | None) -> AsyncRetrying:
        async def _sleep(seconds: float) -> None:
            await run_cancellable(self._sleep(seconds), cancel, "retry backoff")

        return AsyncRetrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=BackoffWait(self.policy, self._rng),
            retry=retry_if_exception(self.policy.is_retryable),
            sleep=_sleep,
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        )

    async def retry(self, operation: Callable[[], Awaitable[T]], cancel: asyncio.Event | None = None) -> T:
        """Run ``operation`` until it succeeds, fails terminally or attempts run out.

        The last error seen is raised once attempts are exhausted.
        """
        return await self._retrying(cancel)(operation)
