"""
authfetch - OAuth2 bearer-token HTTP client with refresh and backoff
"""

__version__ = "0.1.0"
__logo__ = "🔑"
