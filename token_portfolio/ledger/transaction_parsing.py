"""Ledger record parsing from raw CSV column mappings."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Final

from token_portfolio.domain import Transaction, TransactionType

from .ledger_errors import LedgerRecordParseError

LEDGER_REQUIRED_COLUMNS: Final[tuple[str, ...]] = ("timestamp", "token", "amount", "transaction_type")
_KNOWN_TRANSACTION_TYPES: Final[dict[str, TransactionType]] = {member.value: member for member in TransactionType}


def ledger_parse_transaction(row: dict[str, str | None], line_number: int | None = None) -> Transaction | None:
    """Parse one raw ledger row into a typed transaction.

    Rows with an unknown transaction type carry no balance effect and are
    returned as None rather than reported as malformed.

    Args:
        row: Raw column mapping for one CSV record.
        line_number: Optional one-based source line for error context.

    Returns:
        Transaction | None: Parsed transaction, or None for unknown transaction types.

    Raises:
        LedgerRecordParseError: Raised when timestamp, token or amount are missing or invalid.
    """

    transaction_type_text = _ledger_column_text(row, "transaction_type").upper()
    transaction_type = _KNOWN_TRANSACTION_TYPES.get(transaction_type_text)
    if transaction_type is None:
        return None

    timestamp_text = _ledger_column_text(row, "timestamp")
    try:
        timestamp = int(timestamp_text)
    except ValueError as error:
        raise LedgerRecordParseError(f"invalid timestamp={timestamp_text!r}", line_number=line_number) from error

    token = _ledger_column_text(row, "token").upper()
    if not token:
        raise LedgerRecordParseError("token must not be blank", line_number=line_number)

    amount_text = _ledger_column_text(row, "amount")
    try:
        amount = Decimal(amount_text)
    except InvalidOperation as error:
        raise LedgerRecordParseError(f"invalid amount={amount_text!r}", line_number=line_number) from error
    if not amount.is_finite():
        raise LedgerRecordParseError(f"amount must be finite, got {amount_text!r}", line_number=line_number)
    if amount < Decimal("0"):
        raise LedgerRecordParseError(f"amount must be non-negative, got {amount_text!r}", line_number=line_number)

    return Transaction(
        timestamp=timestamp,
        token=token,
        amount=amount,
        transaction_type=transaction_type,
    )


def _ledger_column_text(row: dict[str, str | None], column_name: str) -> str:
    value = row.get(column_name)
    if value is None:
        return ""
    return str(value).strip()


__all__ = ["LEDGER_REQUIRED_COLUMNS", "ledger_parse_transaction"]
