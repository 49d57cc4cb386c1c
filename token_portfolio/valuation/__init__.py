"""Valuation layer package combining balances and rates."""

from .service import (
    PortfolioValuationPort,
    PortfolioValuationService,
    RateProviderPort,
    SnapshotProviderPort,
    valuation_build_token_valuation,
)

__all__ = [
    "PortfolioValuationPort",
    "PortfolioValuationService",
    "RateProviderPort",
    "SnapshotProviderPort",
    "valuation_build_token_valuation",
]
