"""Ledger layer package for streaming replay and snapshot caching."""

from .csv_source import CsvLedgerSource
from .interfaces import LedgerHealthPort, LedgerReplayPort, LedgerSourcePort
from .ledger_errors import LedgerError, LedgerReadError, LedgerRecordParseError
from .replayer import LedgerReplayer
from .snapshot_cache import CachedSnapshot, PortfolioSnapshotCache
from .transaction_parsing import LEDGER_REQUIRED_COLUMNS, ledger_parse_transaction

__all__ = [
    "CachedSnapshot",
    "CsvLedgerSource",
    "LEDGER_REQUIRED_COLUMNS",
    "LedgerError",
    "LedgerHealthPort",
    "LedgerReadError",
    "LedgerRecordParseError",
    "LedgerReplayPort",
    "LedgerReplayer",
    "LedgerSourcePort",
    "PortfolioSnapshotCache",
    "ledger_parse_transaction",
]
