"""Streaming ledger replay producing point-in-time token balances."""

from __future__ import annotations

import logging
from decimal import Decimal

from token_portfolio.domain import BalanceSnapshot

from .interfaces import LedgerReplayPort, LedgerSourcePort
from .ledger_errors import LedgerRecordParseError
from .transaction_parsing import ledger_parse_transaction

logger = logging.getLogger(__name__)


class LedgerReplayer(LedgerReplayPort):
    """Replay every ledger record with timestamp at or before a cutoff."""

    def __init__(self, source: LedgerSourcePort):
        """Initialize replayer dependencies.

        Args:
            source: Streaming ledger source.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when source is invalid.
        """

        if source is None:
            raise ValueError("source must not be None")
        self._source = source

    async def ledger_replay(self, cutoff: int) -> BalanceSnapshot:
        """Accumulate signed balances per token for records with timestamp <= cutoff.

        Malformed records are logged and skipped. Unknown transaction types
        have no effect. Negative balances are kept as computed.

        Args:
            cutoff: Inclusive epoch-seconds cutoff.

        Returns:
            BalanceSnapshot: Balances per uppercase token at the cutoff.

        Raises:
            LedgerReadError: Raised when the ledger source cannot be opened or read.
        """

        balances: dict[str, Decimal] = {}
        included_record_count = 0
        skipped_record_count = 0

        async for line_number, row in self._source.ledger_stream_rows():
            try:
                transaction = ledger_parse_transaction(row, line_number=line_number)
            except LedgerRecordParseError as error:
                skipped_record_count += 1
                logger.warning(
                    "Skipping malformed ledger record source=%s line=%s reason=%s",
                    self._source.ledger_source_label(),
                    line_number,
                    error,
                )
                continue

            if transaction is None or transaction.timestamp > cutoff:
                continue

            balances[transaction.token] = balances.get(transaction.token, Decimal("0")) + transaction.signed_amount()
            included_record_count += 1

        logger.info(
            "Ledger replay completed cutoff=%s tokens=%s included=%s skipped=%s",
            cutoff,
            len(balances),
            included_record_count,
            skipped_record_count,
        )
        return BalanceSnapshot(
            cutoff=cutoff,
            balances=balances,
            included_record_count=included_record_count,
            skipped_record_count=skipped_record_count,
        )


__all__ = ["LedgerReplayer"]
