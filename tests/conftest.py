from collections.abc import Callable, Iterable
from typing import Union

import httpx
import pytest

from authfetch.auth.models import Token
from authfetch.fetch.errors import AuthError

URL = "https://api.example/x"


class FakeRefresher:
    """Hand out queued tokens (or raise queued errors) on refresh."""

    def __init__(self, *outcomes: Token | Exception) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[str] = []

    async def refresh(self, refresh_token: str) -> Token:
        self.calls.append(refresh_token)
        if not self.outcomes:
            raise AuthError("no refresh configured")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


Reply = Union[int, tuple[int, bytes], Callable[[httpx.Request], httpx.Response]]


class FakeServer:
    """Reply with queued status codes, (status, body) pairs or handlers.

    The last reply repeats once the queue is down to one entry.
    """

    def __init__(self, replies: Iterable[Reply]) -> None:
        self.replies = list(replies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, int):
            return httpx.Response(reply)
        if isinstance(reply, tuple):
            status, body = reply
            return httpx.Response(status, content=body)
        return reply(request)

    @property
    def auth_headers(self) -> list[str]:
        return [r.headers.get("Authorization", "") for r in self.requests]

    def client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self), **kwargs)


class FakeSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def token() -> Token:
    return Token(access="old", refresh="r1")


@pytest.fixture
def new_token() -> Token:
    return Token(access="new", refresh="r2")


@pytest.fixture
def sleep() -> FakeSleep:
    return FakeSleep()
