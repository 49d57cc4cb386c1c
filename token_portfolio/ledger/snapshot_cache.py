"""Per-cutoff memoization of ledger replay results."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from token_portfolio.domain import BalanceSnapshot

from .interfaces import LedgerReplayPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedSnapshot:
    """Balance snapshot retained by the snapshot cache.

    Attributes:
        snapshot: Replay result.
        computed_at: Wall-clock time the replay finished.
    """

    snapshot: BalanceSnapshot
    computed_at: float


class PortfolioSnapshotCache:
    """Cache replay results keyed by cutoff with a freshness window.

    Entries are keyed by exact cutoff and expire `ttl_seconds` after the
    replay that produced them finished. When `cutoff_tolerance_seconds` is
    positive, a query may reuse the newest fresh snapshot whose cutoff `C0`
    satisfies `0 <= cutoff - C0 < cutoff_tolerance_seconds`; such a snapshot
    omits any record stamped inside that gap. A tolerance of zero serves
    exact cutoffs only.

    Concurrent queries for one cutoff share a single in-flight replay, and
    only that replay writes its key.
    """

    def __init__(
        self,
        replayer: LedgerReplayPort,
        ttl_seconds: float = 60.0,
        cutoff_tolerance_seconds: int = 0,
        max_entries: int = 64,
        clock: Callable[[], float] | None = None,
    ):
        """Initialize snapshot cache.

        Args:
            replayer: Ledger replay implementation used on cache miss.
            ttl_seconds: Freshness window measured from replay completion.
            cutoff_tolerance_seconds: Max distance back from a query cutoff for reusing a snapshot.
            max_entries: Max retained snapshots; the oldest computed entry is evicted first.
            clock: Optional wall-clock provider returning epoch seconds.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when dependencies or bounds are invalid.
        """

        if replayer is None:
            raise ValueError("replayer must not be None")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        if cutoff_tolerance_seconds < 0:
            raise ValueError("cutoff_tolerance_seconds must be >= 0")
        if cutoff_tolerance_seconds > ttl_seconds:
            raise ValueError("cutoff_tolerance_seconds must be <= ttl_seconds")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._replayer = replayer
        self._ttl_seconds = float(ttl_seconds)
        self._cutoff_tolerance_seconds = int(cutoff_tolerance_seconds)
        self._max_entries = max_entries
        self._clock = clock or time.time
        self._entries: dict[int, CachedSnapshot] = {}
        self._in_flight: dict[int, asyncio.Task[BalanceSnapshot]] = {}

    async def snapshot_get(self, cutoff: int) -> BalanceSnapshot:
        """Return a fresh snapshot for the cutoff, replaying the ledger on miss.

        Args:
            cutoff: Inclusive epoch-seconds cutoff.

        Returns:
            BalanceSnapshot: Cached or freshly replayed balances.

        Raises:
            LedgerReadError: Raised when a required replay cannot read the ledger.
        """

        cached_entry = self._snapshot_lookup(cutoff)
        if cached_entry is not None:
            logger.debug("Snapshot cache hit cutoff=%s cached_cutoff=%s", cutoff, cached_entry.snapshot.cutoff)
            return cached_entry.snapshot

        replay_task = self._in_flight.get(cutoff)
        if replay_task is None:
            logger.debug("Snapshot cache miss cutoff=%s", cutoff)
            replay_task = asyncio.create_task(self._snapshot_replay_and_store(cutoff))
            self._in_flight[cutoff] = replay_task
        return await asyncio.shield(replay_task)

    def snapshot_clear(self) -> None:
        """Drop every cached snapshot; in-flight replays still complete and store."""

        self._entries.clear()

    def snapshot_cached_cutoffs(self) -> list[int]:
        """Return cached cutoffs in ascending order, including expired entries not yet superseded."""

        return sorted(self._entries)

    async def _snapshot_replay_and_store(self, cutoff: int) -> BalanceSnapshot:
        try:
            snapshot = await self._replayer.ledger_replay(cutoff)
            self._entries[cutoff] = CachedSnapshot(snapshot=snapshot, computed_at=self._clock())
            self._snapshot_evict_overflow()
            return snapshot
        finally:
            self._in_flight.pop(cutoff, None)

    def _snapshot_lookup(self, cutoff: int) -> CachedSnapshot | None:
        now = self._clock()
        exact_entry = self._entries.get(cutoff)
        if exact_entry is not None and self._snapshot_is_fresh(exact_entry, now):
            return exact_entry
        if self._cutoff_tolerance_seconds == 0:
            return None

        best_entry: CachedSnapshot | None = None
        for cached_cutoff, cached_entry in self._entries.items():
            cutoff_delta = cutoff - cached_cutoff
            if not 0 <= cutoff_delta < self._cutoff_tolerance_seconds:
                continue
            if not self._snapshot_is_fresh(cached_entry, now):
                continue
            if best_entry is None or cached_cutoff > best_entry.snapshot.cutoff:
                best_entry = cached_entry
        return best_entry

    def _snapshot_is_fresh(self, entry: CachedSnapshot, now: float) -> bool:
        return 0 <= now - entry.computed_at < self._ttl_seconds

    def _snapshot_evict_overflow(self) -> None:
        while len(self._entries) > self._max_entries:
            oldest_cutoff = min(self._entries, key=lambda key: self._entries[key].computed_at)
            del self._entries[oldest_cutoff]


__all__ = ["CachedSnapshot", "PortfolioSnapshotCache"]
