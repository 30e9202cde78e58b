"""Fetch error taxonomy and HTTP status classification."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

if TYPE_CHECKING:
    from authfetch.auth.models import Token

HTTP_OK = 200
HTTP_UNAUTHORIZED = 401
GENERIC_MESSAGE = "failed request"

DEFAULT_STATUS_ERRORS: Mapping[int, str] = MappingProxyType(
    {
        404: "not found",
        500: "internal error",
        503: "service unavailable",
        504: "gateway timeout",
    }
)


class FetchError(Exception):
    """Base class for every failure surfaced by a fetch.

    ``token`` holds the token in effect when the error was raised, so a token
    refreshed during a failed call can still be persisted by the caller.
    """

    def __init__(self, message: str, token: Token | None = None):
        super().__init__(message)
        self.token = token


class TransportError(FetchError):
    """The request never produced an HTTP status (DNS, connect, timeout)."""


class AuthError(FetchError):
    """Token refresh failed or the refreshed token was rejected too."""


class FetchCancelledError(FetchError):
    """The caller aborted the request or a pending retry sleep."""


class ClassifiedError(FetchError):
    """A definite HTTP-level failure, identified by its status code."""

    def __init__(self, status_code: int, message: str = GENERIC_MESSAGE, token: Token | None = None):
        super().__init__(f"HTTP {status_code}: {message}", token=token)
        self.status_code = status_code
        self.message = message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassifiedError):
            return NotImplemented
        return self.status_code == other.status_code

    def __hash__(self) -> int:
        return hash(self.status_code)

    def __repr__(self) -> str:
        return f"ClassifiedError({self.status_code!r}, {self.message!r})"


class ErrorClassifier:
    """Map non-success HTTP status codes to ClassifiedError values."""

    def __init__(self, status_errors: Mapping[int, str] = DEFAULT_STATUS_ERRORS):
        self._status_errors = MappingProxyType(dict(status_errors))

    @property
    def status_errors(self) -> Mapping[int, str]:
        return self._status_errors

    def lookup(self, status_code: int) -> ClassifiedError | None:
        """Return the pre-registered error for a status, if any."""
        message = self._status_errors.get(status_code)
        if message is None:
            return None
        return ClassifiedError(status_code, message)

    def classify(self, status_code: int) -> ClassifiedError:
        """Return a typed error for any status other than 200 and 401."""
        if status_code == HTTP_OK:
            raise ValueError("Status 200 is not an error")
        if status_code == HTTP_UNAUTHORIZED:
            raise ValueError("Status 401 triggers a token refresh and is not classified")
        return self.lookup(status_code) or ClassifiedError(status_code, GENERIC_MESSAGE)
