"""OAuth token constants."""

TOKEN_FILENAME = "token.json"
LOCK_SUFFIX = ".lock"
REFRESH_TIMEOUT_SEC = 30.0
REFRESH_LEEWAY_SEC = 60
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
