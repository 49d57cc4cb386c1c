"""Adapter layer package for external price source boundaries."""

from .cryptocompare import CryptoComparePriceAdapter
from .interfaces import PriceSourcePort, RateFetchResult
from .price_errors import (
    PriceSourceConnectionError,
    PriceSourceError,
    PriceSourceResponseError,
    PriceSourceTimeoutError,
)

__all__ = [
    "CryptoComparePriceAdapter",
    "PriceSourceConnectionError",
    "PriceSourceError",
    "PriceSourcePort",
    "PriceSourceResponseError",
    "PriceSourceTimeoutError",
    "RateFetchResult",
]
