"""Typed interfaces for ledger-layer responsibilities."""

from collections.abc import AsyncIterator
from typing import Protocol

from token_portfolio.domain import BalanceSnapshot, HealthStatus


class LedgerSourcePort(Protocol):
    """Port definition for streaming raw ledger rows."""

    def ledger_source_label(self) -> str:
        """Return source label for diagnostics.

        Returns:
            str: Human-readable ledger source identifier.

        Raises:
            RuntimeError: Raised when source metadata is unavailable.
        """

    def ledger_stream_rows(self) -> AsyncIterator[tuple[int, dict[str, str | None]]]:
        """Stream raw rows in file order without materializing the source.

        Returns:
            AsyncIterator[tuple[int, dict[str, str | None]]]: Line number and raw column mapping pairs.

        Raises:
            LedgerReadError: Raised when the source cannot be opened or read.
        """


class LedgerReplayPort(Protocol):
    """Port definition for point-in-time balance replay."""

    async def ledger_replay(self, cutoff: int) -> BalanceSnapshot:
        """Replay the ledger up to an inclusive cutoff.

        Args:
            cutoff: Inclusive epoch-seconds cutoff.

        Returns:
            BalanceSnapshot: Balances per token at the cutoff.

        Raises:
            LedgerReadError: Raised when the ledger source cannot be read.
        """


class LedgerHealthPort(Protocol):
    """Port definition for ledger source availability checks."""

    def ledger_source_label(self) -> str:
        """Return source label for diagnostics."""

    def ledger_check_health(self) -> HealthStatus:
        """Verify the ledger source is readable.

        Returns:
            HealthStatus: Health payload with status and diagnostic detail.

        Raises:
            ConnectionError: Raised when the ledger source is unavailable.
        """
