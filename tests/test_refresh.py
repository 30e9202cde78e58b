import time
import urllib.parse

import httpx
import pytest

from authfetch.auth.refresh import OAuthTokenRefresher
from authfetch.fetch.errors import AuthError

TOKEN_URL = "https://idp.example/oauth/token"


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in urllib.parse.parse_qs(request.content.decode()).items()}


def _refresher(handler, **kwargs) -> OAuthTokenRefresher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OAuthTokenRefresher(TOKEN_URL, "client-1", client=client, **kwargs)


@pytest.mark.asyncio
async def test_refresh_posts_grant_and_parses_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"access_token": "new", "refresh_token": "r2", "expires_in": 1200})

    before_ms = int(time.time() * 1000)
    token = await _refresher(handler).refresh("r1")

    assert token.access == "new"
    assert token.refresh == "r2"
    assert token.expires >= before_ms + 1200 * 1000
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == TOKEN_URL
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert _form(request) == {"grant_type": "refresh_token", "refresh_token": "r1", "client_id": "client-1"}


@pytest.mark.asyncio
async def test_client_secret_uses_basic_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"access_token": "new", "refresh_token": "r2", "expires_in": 60})

    await _refresher(handler, client_secret="s3cret").refresh("r1")

    assert seen[0].headers["Authorization"].startswith("Basic ")
    assert "client_id" not in _form(seen[0])


@pytest.mark.asyncio
async def test_missing_refresh_token_and_expiry_are_tolerated() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "new"})

    token = await _refresher(handler).refresh("r1")

    assert token.refresh == "r1"
    assert token.expires == 0


@pytest.mark.asyncio
async def test_rejected_refresh_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    with pytest.raises(AuthError, match="400"):
        await _refresher(handler).refresh("r1")


@pytest.mark.asyncio
async def test_non_json_response_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    with pytest.raises(AuthError):
        await _refresher(handler).refresh("r1")


@pytest.mark.asyncio
async def test_missing_access_token_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"refresh_token": "r2"})

    with pytest.raises(AuthError, match="access_token"):
        await _refresher(handler).refresh("r1")


@pytest.mark.asyncio
async def test_transport_failure_raises_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(AuthError) as exc_info:
        await _refresher(handler).refresh("r1")

    assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)


@pytest.mark.asyncio
async def test_empty_refresh_token_is_rejected_without_request() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    with pytest.raises(AuthError):
        await _refresher(handler).refresh("")

    assert calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("expires_in", [3600.0, "3600", 3600.5])
async def test_non_integer_expires_in_still_sets_expiry(expires_in) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "new", "expires_in": expires_in})

    before_ms = int(time.time() * 1000)
    token = await _refresher(handler).refresh("r1")

    assert token.expires >= before_ms + 3600 * 1000
    assert token.expires_in_ms() <= 3600 * 1000


@pytest.mark.asyncio
@pytest.mark.parametrize("expires_in", [True, "soon", None, [3600]])
async def test_unusable_expires_in_means_unknown_expiry(expires_in) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "new", "expires_in": expires_in})

    token = await _refresher(handler).refresh("r1")

    assert token.expires == 0
