"""Regression tests for streaming ledger replay over CSV sources."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from pathlib import Path

import pytest

from token_portfolio.ledger import CsvLedgerSource, LedgerReadError, LedgerReplayer

_HEADER = "timestamp,token,amount,transaction_type\n"


def _write_ledger(tmp_path: Path, rows: list[str], header: str = _HEADER) -> Path:
    ledger_path = tmp_path / "transactions.csv"
    ledger_path.write_text(header + "".join(f"{row}\n" for row in rows), encoding="utf-8")
    return ledger_path


def _replay(ledger_path: Path, cutoff: int, batch_size: int = 500):
    replayer = LedgerReplayer(source=CsvLedgerSource(csv_path=ledger_path, batch_size=batch_size))
    return asyncio.run(replayer.ledger_replay(cutoff))


def test_ledger_replay_applies_cutoff_and_signed_amounts(tmp_path: Path) -> None:
    """Replay the reference scenario at two cutoffs.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate point-in-time balances.

    Raises:
        AssertionError: Raised when balances are incorrect.
    """

    ledger_path = _write_ledger(
        tmp_path,
        [
            "100,BTC,5,DEPOSIT",
            "200,BTC,2,WITHDRAWAL",
            "300,ETH,10,DEPOSIT",
        ],
    )

    assert _replay(ledger_path, cutoff=250).balances == {"BTC": Decimal("3")}
    assert _replay(ledger_path, cutoff=350).balances == {"BTC": Decimal("3"), "ETH": Decimal("10")}
    assert _replay(ledger_path, cutoff=99).balances == {}


def test_ledger_replay_includes_records_exactly_at_cutoff_regardless_of_file_order(tmp_path: Path) -> None:
    """Include records stamped at the cutoff even when the file is not time-ordered.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate inclusive, order-independent filtering.

    Raises:
        AssertionError: Raised when filtering is incorrect.
    """

    ledger_path = _write_ledger(
        tmp_path,
        [
            "500,BTC,1,DEPOSIT",
            "200,BTC,4,DEPOSIT",
            "300,BTC,1.5,WITHDRAWAL",
        ],
    )

    assert _replay(ledger_path, cutoff=300).balances == {"BTC": Decimal("2.5")}


def test_ledger_replay_balance_is_not_monotonic_in_cutoff(tmp_path: Path) -> None:
    """Decrease balance across cutoffs when net flow between them is negative.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate arithmetic rather than monotonic growth.

    Raises:
        AssertionError: Raised when later balances are assumed larger.
    """

    ledger_path = _write_ledger(
        tmp_path,
        [
            "100,ETH,10,DEPOSIT",
            "200,ETH,4,WITHDRAWAL",
            "300,ETH,1,DEPOSIT",
            "400,ETH,9,WITHDRAWAL",
        ],
    )

    assert _replay(ledger_path, cutoff=150).balances["ETH"] == Decimal("10")
    assert _replay(ledger_path, cutoff=250).balances["ETH"] == Decimal("6")
    assert _replay(ledger_path, cutoff=350).balances["ETH"] == Decimal("7")
    assert _replay(ledger_path, cutoff=450).balances["ETH"] == Decimal("-2")


def test_ledger_replay_aggregates_tokens_case_insensitively(tmp_path: Path) -> None:
    """Aggregate `btc`, `BTC` and `Btc` into one uppercase balance.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate token normalization.

    Raises:
        AssertionError: Raised when token keys are not normalized.
    """

    ledger_path = _write_ledger(
        tmp_path,
        [
            "100,btc,1,DEPOSIT",
            "101,BTC,2,DEPOSIT",
            "102,Btc,0.5,WITHDRAWAL",
        ],
    )

    assert _replay(ledger_path, cutoff=1000).balances == {"BTC": Decimal("2.5")}


def test_ledger_replay_skips_malformed_and_ignores_unknown_types(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Skip malformed records with a warning and ignore unknown transaction types.

    Args:
        tmp_path: Pytest temporary directory fixture.
        caplog: Pytest log capture fixture.

    Returns:
        None: Assertions validate recovery from bad records.

    Raises:
        AssertionError: Raised when replay aborts or miscounts records.
    """

    ledger_path = _write_ledger(
        tmp_path,
        [
            "100,BTC,5,DEPOSIT",
            "abc,BTC,5,DEPOSIT",
            "110,BTC,oops,DEPOSIT",
            "120,BTC,100,TRANSFER",
            "130,BTC,1,WITHDRAWAL",
        ],
    )

    with caplog.at_level(logging.WARNING, logger="token_portfolio.ledger.replayer"):
        snapshot = _replay(ledger_path, cutoff=1000)

    assert snapshot.balances == {"BTC": Decimal("4")}
    assert snapshot.included_record_count == 2
    assert snapshot.skipped_record_count == 2
    skipped_messages = [record.getMessage() for record in caplog.records if "Skipping malformed" in record.getMessage()]
    assert len(skipped_messages) == 2
    assert "line=3" in skipped_messages[0]
    assert "line=4" in skipped_messages[1]


def test_ledger_replay_is_deterministic_across_small_batches(tmp_path: Path) -> None:
    """Produce identical output on repeated replays and across batch sizes.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate idempotent replay.

    Raises:
        AssertionError: Raised when replay output differs between runs.
    """

    ledger_path = _write_ledger(
        tmp_path,
        [f"{100 + index},{'BTC' if index % 2 else 'ETH'},{index}.25,DEPOSIT" for index in range(25)],
    )

    first_snapshot = _replay(ledger_path, cutoff=10_000, batch_size=4)
    second_snapshot = _replay(ledger_path, cutoff=10_000, batch_size=4)
    single_batch_snapshot = _replay(ledger_path, cutoff=10_000, batch_size=1000)

    assert first_snapshot == second_snapshot
    assert first_snapshot.balances == single_batch_snapshot.balances
    assert first_snapshot.included_record_count == 25


def test_ledger_replay_accepts_padded_header_columns(tmp_path: Path) -> None:
    """Accept header columns padded with whitespace.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate header normalization.

    Raises:
        AssertionError: Raised when padded headers break parsing.
    """

    ledger_path = _write_ledger(
        tmp_path,
        ["100, eth ,3,DEPOSIT"],
        header="timestamp, token, amount, transaction_type\n",
    )

    assert _replay(ledger_path, cutoff=100).balances == {"ETH": Decimal("3")}


def test_ledger_replay_returns_empty_snapshot_for_empty_file(tmp_path: Path) -> None:
    """Return no balances for an empty ledger file.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate empty-source behavior.

    Raises:
        AssertionError: Raised when an empty file fails replay.
    """

    ledger_path = tmp_path / "transactions.csv"
    ledger_path.write_text("", encoding="utf-8")

    snapshot = _replay(ledger_path, cutoff=100)

    assert snapshot.balances == {}
    assert snapshot.included_record_count == 0


def test_ledger_replay_raises_read_error_for_missing_file(tmp_path: Path) -> None:
    """Fail the replay call when the ledger file does not exist.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate fatal read failures.

    Raises:
        AssertionError: Raised when a missing file does not fail replay.
    """

    with pytest.raises(LedgerReadError, match="could not be opened"):
        _replay(tmp_path / "missing.csv", cutoff=100)


def test_ledger_replay_raises_read_error_for_missing_header_columns(tmp_path: Path) -> None:
    """Fail the replay call when the header lacks required columns.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate header contract enforcement.

    Raises:
        AssertionError: Raised when an invalid header is accepted.
    """

    ledger_path = _write_ledger(tmp_path, ["100,BTC,5"], header="timestamp,token,amount\n")

    with pytest.raises(LedgerReadError, match="transaction_type"):
        _replay(ledger_path, cutoff=100)


def test_ledger_source_health_reports_missing_file(tmp_path: Path) -> None:
    """Raise ConnectionError from health check when the ledger file is missing.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate health-check failure mapping.

    Raises:
        AssertionError: Raised when a missing file reports healthy.
    """

    source = CsvLedgerSource(csv_path=tmp_path / "missing.csv")

    with pytest.raises(ConnectionError, match="ledger source unavailable"):
        source.ledger_check_health()

    ledger_path = _write_ledger(tmp_path, ["100,BTC,5,DEPOSIT"])
    assert CsvLedgerSource(csv_path=ledger_path).ledger_check_health().status == "ok"
