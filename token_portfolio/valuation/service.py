"""Portfolio valuation combining replayed balances with cached rates."""
# pylint: disable=too-few-public-methods

from __future__ import annotations

from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Final, Protocol

from token_portfolio.domain import BalanceSnapshot, TokenValuation, cutoff_now, domain_normalize_token

_CENT: Final[Decimal] = Decimal("0.01")


class SnapshotProviderPort(Protocol):
    """Port for obtaining a balance snapshot at a cutoff."""

    async def snapshot_get(self, cutoff: int) -> BalanceSnapshot:
        """Return balances at an inclusive cutoff."""


class RateProviderPort(Protocol):
    """Port for obtaining quote-currency rates."""

    async def rates_get(self, tokens, at: int | None = None) -> dict[str, Decimal]:
        """Return rates per token, latest when `at` is None."""


class PortfolioValuationPort(Protocol):
    """Port for valuing the portfolio or one token at an optional cutoff."""

    async def valuation_portfolio(self, cutoff: int | None = None) -> dict[str, TokenValuation]:
        """Return valuations for every token held at the cutoff."""

    async def valuation_token(self, token: str, cutoff: int | None = None) -> TokenValuation:
        """Return the valuation of one token at the cutoff."""


class PortfolioValuationService:
    """Value replayed token balances in the quote currency."""

    def __init__(
        self,
        snapshot_provider: SnapshotProviderPort,
        rate_provider: RateProviderPort,
        now_provider: Callable[[], int] | None = None,
    ):
        """Initialize valuation dependencies.

        Args:
            snapshot_provider: Snapshot cache or replayer wrapper.
            rate_provider: Rate cache.
            now_provider: Optional provider of the current epoch-seconds cutoff.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if snapshot_provider is None:
            raise ValueError("snapshot_provider must not be None")
        if rate_provider is None:
            raise ValueError("rate_provider must not be None")
        self._snapshot_provider = snapshot_provider
        self._rate_provider = rate_provider
        self._now_provider = now_provider or cutoff_now

    async def valuation_portfolio(self, cutoff: int | None = None) -> dict[str, TokenValuation]:
        """Value every token held at the cutoff.

        Args:
            cutoff: Inclusive epoch-seconds cutoff; None means now with latest rates.

        Returns:
            dict[str, TokenValuation]: Valuation per token in replay order.

        Raises:
            LedgerReadError: Raised when the ledger cannot be replayed.
            PriceSourceError: Raised when rates cannot be resolved under the failure policy.
        """

        snapshot = await self._snapshot_provider.snapshot_get(self._valuation_resolve_cutoff(cutoff))
        tokens = list(snapshot.balances)
        rates = await self._rate_provider.rates_get(tokens, at=cutoff)
        return {
            token: valuation_build_token_valuation(token, snapshot.balances[token], rates.get(token))
            for token in tokens
        }

    async def valuation_token(self, token: str, cutoff: int | None = None) -> TokenValuation:
        """Value one token at the cutoff; a token never seen has zero balance.

        Args:
            token: Token symbol, case-insensitive.
            cutoff: Inclusive epoch-seconds cutoff; None means now with latest rates.

        Returns:
            TokenValuation: Valuation for the normalized token.

        Raises:
            ValueError: Raised when token is blank.
            LedgerReadError: Raised when the ledger cannot be replayed.
            PriceSourceError: Raised when rates cannot be resolved under the failure policy.
        """

        normalized_token = domain_normalize_token(token)
        snapshot = await self._snapshot_provider.snapshot_get(self._valuation_resolve_cutoff(cutoff))
        rates = await self._rate_provider.rates_get([normalized_token], at=cutoff)
        return valuation_build_token_valuation(
            normalized_token,
            snapshot.snapshot_balance(normalized_token),
            rates.get(normalized_token),
        )

    def _valuation_resolve_cutoff(self, cutoff: int | None) -> int:
        if cutoff is None:
            return self._now_provider()
        return cutoff


def valuation_build_token_valuation(token: str, balance: Decimal, rate: Decimal | None) -> TokenValuation:
    """Build one valuation, rounding the quote value half-up to cents.

    Args:
        token: Normalized token symbol.
        balance: Signed token balance.
        rate: Quote-currency rate, None when unavailable.

    Returns:
        TokenValuation: Valuation with a zero rate when none was available.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    resolved_rate = rate if rate is not None else Decimal("0")
    with localcontext() as context:
        # Precision covers the exact product and its cent quantization.
        context.prec = max(
            context.prec,
            len(balance.as_tuple().digits) + len(resolved_rate.as_tuple().digits) + 2,
        )
        product = balance * resolved_rate
        context.prec = max(context.prec, product.adjusted() + 4)
        usd_value = product.quantize(_CENT, rounding=ROUND_HALF_UP)
    return TokenValuation(token=token, balance=balance, rate=resolved_rate, usd_value=usd_value)


__all__ = [
    "PortfolioValuationPort",
    "PortfolioValuationService",
    "RateProviderPort",
    "SnapshotProviderPort",
    "valuation_build_token_valuation",
]
