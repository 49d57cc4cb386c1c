"""Project-native typed exceptions for price source failures."""

from __future__ import annotations


class PriceSourceError(Exception):
    """Base exception for price-source lookup failures.

    Attributes:
        token: Token whose lookup failed, None for batch lookups.
    """

    def __init__(self, message: str, token: str | None = None):
        super().__init__(message)
        self.token = token


class PriceSourceConnectionError(PriceSourceError, ConnectionError):
    """Transport-level connectivity failure during price API communication."""


class PriceSourceTimeoutError(PriceSourceError, TimeoutError):
    """Price API request exceeded its timeout."""


class PriceSourceResponseError(PriceSourceError, ValueError):
    """Price API answered with a non-success status or an unusable payload.

    Attributes:
        status_code: HTTP status code, when the failure was status-based.
    """

    def __init__(self, message: str, token: str | None = None, status_code: int | None = None):
        super().__init__(message=message, token=token)
        self.status_code = status_code
