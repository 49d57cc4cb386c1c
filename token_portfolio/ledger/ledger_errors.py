"""Project-native typed exceptions for ledger read and parse failures."""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for ledger-level failures."""


class LedgerRecordParseError(LedgerError, ValueError):
    """Malformed ledger record that replay skips and logs.

    Attributes:
        line_number: One-based source line of the record, when known.
    """

    def __init__(self, message: str, line_number: int | None = None):
        super().__init__(message)
        self.line_number = line_number


class LedgerReadError(LedgerError, OSError):
    """Ledger source could not be opened or read; fatal for one replay."""
