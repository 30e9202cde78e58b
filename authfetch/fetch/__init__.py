"""Authenticated fetch pipeline: classify, refresh, retry."""

from authfetch.fetch.client import Fetcher
from authfetch.fetch.errors import (
    AuthError,
    ClassifiedError,
    ErrorClassifier,
    FetchCancelledError,
    FetchError,
    TransportError,
)
from authfetch.fetch.executor import AuthState, FetchResult, RequestExecutor
from authfetch.fetch.retry import DEFAULT_POLICY, BackoffRetrier, BackoffWait, RetryPolicy

__all__ = [
    "DEFAULT_POLICY",
    "AuthError",
    "AuthState",
    "BackoffRetrier",
    "BackoffWait",
    "ClassifiedError",
    "ErrorClassifier",
    "FetchCancelledError",
    "FetchError",
    "FetchResult",
    "Fetcher",
    "RequestExecutor",
    "RetryPolicy",
    "TransportError",
]
