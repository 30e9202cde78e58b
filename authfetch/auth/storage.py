"""Token storage helpers."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import IO

from authfetch.auth.constants import LOCK_SUFFIX, TOKEN_FILENAME
from authfetch.auth.models import Token
from authfetch.utils.helpers import ensure_dir, get_data_path

logger = logging.getLogger(__name__)


def get_token_path() -> Path:
    auth_dir = ensure_dir(get_data_path() / "auth")
    return auth_dir / TOKEN_FILENAME


def load_token(path: Path | None = None) -> Token | None:
    """Load the stored token, or None if it is missing or unreadable."""
    path = path or get_token_path()
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Token(
            access=data["access"],
            refresh=data["refresh"],
            expires=int(data.get("expires", 0)),
        )
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("Ignoring unreadable token file %s: %s", path, e)
        return None


def save_token(token: Token, path: Path | None = None) -> Path:
    path = path or get_token_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(
            {
                "access": token.access,
                "refresh": token.refresh,
                "expires": token.expires,
            },
            ensure_ascii=True,
            indent=2,
        ),
        encoding="utf-8",
    )
    try:
        os.chmod(path, 0o600)
    except OSError:
        # Some filesystems do not support POSIX modes.
        pass
    return path


class TokenFileLock:
    """Exclusive file lock serializing token refresh across processes."""

    def __init__(self, path: Path | None = None):
        self._path = path or get_token_path().with_suffix(LOCK_SUFFIX)
        self._fp: IO[str] | None = None

    def __enter__(self) -> "TokenFileLock":
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fp = open(self._path, "a+")
        try:
            import fcntl
        except ImportError:
            # Non-POSIX: continue without locking.
            return self
        fcntl.flock(self._fp.fileno(), fcntl.LOCK_EX)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._fp is None:
            return
        try:
            import fcntl

            fcntl.flock(self._fp.fileno(), fcntl.LOCK_UN)
        except ImportError:
            pass
        finally:
            self._fp.close()
            self._fp = None
