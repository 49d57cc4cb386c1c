"""CSV file ledger source with batched streaming reads."""

from __future__ import annotations

import asyncio
import csv
from collections.abc import AsyncIterator
from pathlib import Path

from token_portfolio.domain import HealthStatus

from .interfaces import LedgerHealthPort, LedgerSourcePort
from .ledger_errors import LedgerReadError
from .transaction_parsing import LEDGER_REQUIRED_COLUMNS


class CsvLedgerSource(LedgerSourcePort, LedgerHealthPort):
    """Ledger source reading a headed CSV file in bounded batches.

    Each batch is read in a worker thread, so every batch boundary is an
    event-loop suspension point and memory use is bounded by batch size.
    """

    def __init__(self, csv_path: str | Path, batch_size: int = 500):
        """Initialize CSV ledger source.

        Args:
            csv_path: Filesystem path of the ledger CSV.
            batch_size: Number of rows read per worker-thread batch.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when csv_path is blank or batch_size is not positive.
        """

        normalized_path = str(csv_path).strip()
        if not normalized_path:
            raise ValueError("csv_path must not be blank")
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        self._csv_path = Path(normalized_path)
        self._batch_size = batch_size

    def ledger_source_label(self) -> str:
        """Return the ledger file path for diagnostics.

        Returns:
            str: Ledger CSV path.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return str(self._csv_path)

    def ledger_check_health(self) -> HealthStatus:
        """Verify the ledger file exists and its header carries the required columns.

        Returns:
            HealthStatus: Healthy status payload.

        Raises:
            ConnectionError: Raised when the ledger file is missing or unreadable.
        """

        try:
            with self._csv_path.open("r", encoding="utf-8", newline="") as handle:
                self._ledger_validate_header(csv.DictReader(handle))
        except (OSError, UnicodeDecodeError, csv.Error) as error:
            raise ConnectionError(f"ledger source unavailable: {error}") from error
        return HealthStatus(status="ok", detail="ledger source readable")

    async def ledger_stream_rows(self) -> AsyncIterator[tuple[int, dict[str, str | None]]]:
        """Stream raw rows with their source line numbers in file order.

        Returns:
            AsyncIterator[tuple[int, dict[str, str | None]]]: Line number and raw row pairs.

        Raises:
            LedgerReadError: Raised when the file cannot be opened, decoded or parsed as CSV.
        """

        try:
            handle = await asyncio.to_thread(self._csv_path.open, "r", encoding="utf-8", newline="")
        except OSError as error:
            raise LedgerReadError(f"ledger source could not be opened: {self._csv_path}: {error}") from error

        try:
            reader = csv.DictReader(handle)
            while True:
                try:
                    batch = await asyncio.to_thread(self._ledger_read_batch, reader)
                except LedgerReadError:
                    raise
                except (OSError, UnicodeDecodeError, csv.Error) as error:
                    raise LedgerReadError(f"ledger source read failed: {self._csv_path}: {error}") from error
                if not batch:
                    return
                for line_number, row in batch:
                    yield line_number, row
        finally:
            handle.close()

    def _ledger_read_batch(
        self,
        reader: csv.DictReader,
    ) -> list[tuple[int, dict[str, str | None]]]:
        """Read up to one batch of rows from the shared reader.

        Args:
            reader: Dict reader bound to the open ledger file.

        Returns:
            list[tuple[int, dict[str, str | None]]]: Line number and row pairs, empty at end of file.

        Raises:
            LedgerReadError: Raised when the header lacks required columns.
        """

        if reader.line_num == 0:
            self._ledger_validate_header(reader)

        batch: list[tuple[int, dict[str, str | None]]] = []
        for row in reader:
            batch.append((reader.line_num, row))
            if len(batch) >= self._batch_size:
                break
        return batch

    def _ledger_validate_header(self, reader: csv.DictReader) -> None:
        """Validate the CSV header against the required ledger columns.

        Args:
            reader: Dict reader positioned at the start of the file.

        Returns:
            None: Validation passes silently; an empty file has no header and passes.

        Raises:
            LedgerReadError: Raised when required columns are missing.
        """

        fieldnames = reader.fieldnames
        if fieldnames is None:
            return
        normalized_fieldnames = [str(name).strip() for name in fieldnames]
        reader.fieldnames = normalized_fieldnames
        normalized_columns = set(normalized_fieldnames)
        missing_columns = [name for name in LEDGER_REQUIRED_COLUMNS if name not in normalized_columns]
        if missing_columns:
            raise LedgerReadError(f"ledger header missing required columns: {', '.join(missing_columns)}")


__all__ = ["CsvLedgerSource"]
