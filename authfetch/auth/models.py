"""OAuth token data models."""

from __future__ import annotations

import time
from dataclasses import dataclass


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Token:
    """OAuth bearer token pair.

    ``expires`` is an epoch timestamp in milliseconds; ``0`` means the expiry
    is unknown and the token is only refreshed when the server rejects it.
    """

    access: str
    refresh: str
    expires: int = 0

    @classmethod
    def from_expires_in(cls, access: str, refresh: str, expires_in: int | None) -> "Token":
        expires = _now_ms() + expires_in * 1000 if expires_in else 0
        return cls(access=access, refresh=refresh, expires=expires)

    def expires_in_ms(self, now_ms: int | None = None) -> int | None:
        """Milliseconds until expiry, or None when the expiry is unknown."""
        if not self.expires:
            return None
        return self.expires - (_now_ms() if now_ms is None else now_ms)

    def is_expired(self, leeway_sec: float = 0) -> bool:
        remaining = self.expires_in_ms()
        if remaining is None:
            return False
        return remaining <= leeway_sec * 1000
