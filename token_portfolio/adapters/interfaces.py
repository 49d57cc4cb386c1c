"""Typed interfaces for adapter-layer responsibilities."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class RateFetchResult:
    """Result contract for price-source fetch operations.

    Attributes:
        rates: Non-negative rate per requested token; degraded tokens map to zero.
        failed_tokens: Tokens whose lookup failed and were degraded to zero.
    """

    rates: dict[str, Decimal]
    failed_tokens: frozenset[str] = field(default_factory=frozenset)


class PriceSourcePort(Protocol):
    """Port definition for fetching quote-currency rates from a price source."""

    def adapter_source_name(self) -> str:
        """Return adapter source identifier for diagnostics.

        Returns:
            str: Human-readable upstream source identifier.

        Raises:
            RuntimeError: Raised when source metadata is unavailable.
        """

    async def rates_fetch(self, tokens: Iterable[str], at: int | None = None) -> RateFetchResult:
        """Fetch rates for tokens, latest when `at` is None, historical otherwise.

        Args:
            tokens: Token symbols to price.
            at: Optional epoch-seconds quote timestamp.

        Returns:
            RateFetchResult: Rates per token with degraded tokens listed.

        Raises:
            PriceSourceError: Raised when the failure policy treats a failure as fatal.
        """
