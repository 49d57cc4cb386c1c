"""Domain models used across application layer boundaries."""

from .cutoff_dates import cutoff_now, cutoff_parse_date
from .models import (
    BalanceSnapshot,
    HealthStatus,
    RateEntry,
    RateFailurePolicy,
    TokenValuation,
    Transaction,
    TransactionType,
)
from .tokens import domain_normalize_token, domain_normalize_token_set

__all__ = [
    "BalanceSnapshot",
    "HealthStatus",
    "RateEntry",
    "RateFailurePolicy",
    "TokenValuation",
    "Transaction",
    "TransactionType",
    "cutoff_now",
    "cutoff_parse_date",
    "domain_normalize_token",
    "domain_normalize_token_set",
]
