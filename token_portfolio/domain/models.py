"""Typed domain models shared across runtime layers.

This module provides immutable data contracts for ledger records, balance
snapshots, cached rates and token valuations.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class RateFailurePolicy(str, Enum):
    """Policy applied when the price source fails for some or all tokens.

    Members:
        STRICT_LATEST: Latest batch failures raise; per-token historical failures degrade to zero.
        ZERO_FILL: Every failure degrades the affected tokens to a zero rate.
        STRICT: Every failure raises.
    """

    STRICT_LATEST = "strict_latest"
    ZERO_FILL = "zero_fill"
    STRICT = "strict"


class TransactionType(str, Enum):
    """Ledger transaction types that move a token balance."""

    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


@dataclass(frozen=True)
class Transaction:
    """One parsed ledger record.

    Attributes:
        timestamp: Epoch seconds of the transaction.
        token: Uppercase token symbol.
        amount: Non-negative transaction amount.
        transaction_type: Deposit or withdrawal marker.
    """

    timestamp: int
    token: str
    amount: Decimal
    transaction_type: TransactionType

    def signed_amount(self) -> Decimal:
        """Return the balance delta contributed by this transaction.

        Returns:
            Decimal: Positive amount for deposits, negative amount for withdrawals.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if self.transaction_type is TransactionType.WITHDRAWAL:
            return -self.amount
        return self.amount


@dataclass(frozen=True)
class BalanceSnapshot:
    """Balances produced by one full ledger replay.

    Attributes:
        cutoff: Inclusive epoch-seconds cutoff used for the replay.
        balances: Signed balance per uppercase token.
        included_record_count: Number of records applied to balances.
        skipped_record_count: Number of malformed records skipped.
    """

    cutoff: int
    balances: dict[str, Decimal]
    included_record_count: int = 0
    skipped_record_count: int = 0

    def snapshot_balance(self, token: str) -> Decimal:
        """Return balance for one token, zero when the token never appeared."""

        return self.balances.get(token.strip().upper(), Decimal("0"))


@dataclass(frozen=True)
class RateEntry:
    """Cached price lookup result for one token set.

    Attributes:
        tokens: Sorted uppercase tokens covered by the entry.
        quote_timestamp: Historical quote timestamp, None for latest prices.
        rates: Non-negative rate per token.
        fetched_at: Wall-clock time the rates were fetched.
    """

    tokens: tuple[str, ...]
    quote_timestamp: int | None
    rates: dict[str, Decimal]
    fetched_at: float


@dataclass(frozen=True)
class TokenValuation:
    """Quote-currency valuation of one token balance.

    Attributes:
        token: Uppercase token symbol.
        balance: Signed token balance.
        rate: Quote-currency rate used for valuation.
        usd_value: Balance times rate, rounded to cents.
    """

    token: str
    balance: Decimal
    rate: Decimal
    usd_value: Decimal


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str
