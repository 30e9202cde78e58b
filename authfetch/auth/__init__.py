"""Token models, refresh and storage."""

from authfetch.auth.models import Token
from authfetch.auth.refresh import OAuthTokenRefresher, TokenRefresher
from authfetch.auth.storage import TokenFileLock, get_token_path, load_token, save_token

__all__ = [
    "OAuthTokenRefresher",
    "Token",
    "TokenFileLock",
    "TokenRefresher",
    "get_token_path",
    "load_token",
    "save_token",
]
