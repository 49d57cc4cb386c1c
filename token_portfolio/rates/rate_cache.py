"""Time-bounded memoization of price-source lookups."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from decimal import Decimal

from token_portfolio.adapters import PriceSourcePort, RateFetchResult
from token_portfolio.domain import RateEntry, domain_normalize_token_set

logger = logging.getLogger(__name__)

RateCacheKey = tuple[tuple[str, ...], int | None]


class RateCache:
    """Cache rate lookups keyed by normalized token set and quote timestamp.

    Freshness is measured from the wall-clock time of the fetch, unlike the
    snapshot cache which measures from replay completion. Results holding
    degraded tokens are returned but never stored. Concurrent misses on one
    key share a single in-flight fetch.
    """

    def __init__(
        self,
        fetcher: PriceSourcePort,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] | None = None,
    ):
        """Initialize rate cache.

        Args:
            fetcher: Price source used on cache miss.
            ttl_seconds: Freshness window measured from fetch time.
            clock: Optional wall-clock provider returning epoch seconds.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when dependencies or bounds are invalid.
        """

        if fetcher is None:
            raise ValueError("fetcher must not be None")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")

        self._fetcher = fetcher
        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock or time.time
        self._entries: dict[RateCacheKey, RateEntry] = {}
        self._in_flight: dict[RateCacheKey, asyncio.Task[RateFetchResult]] = {}

    async def rates_get(self, tokens: Iterable[str], at: int | None = None) -> dict[str, Decimal]:
        """Return rates per token, fetching on miss or stale entry.

        Args:
            tokens: Token symbols; order, case and duplicates do not affect the cache key.
            at: Optional epoch-seconds quote timestamp, None for latest rates.

        Returns:
            dict[str, Decimal]: Rate per normalized token.

        Raises:
            PriceSourceError: Raised when the fetcher raises under its failure policy.
        """

        cache_key = self._rates_build_key(tokens, at)
        normalized_tokens, _ = cache_key
        if not normalized_tokens:
            return {}

        cached_entry = self._entries.get(cache_key)
        if cached_entry is not None and self._rates_is_fresh(cached_entry):
            logger.debug("Rate cache hit tokens=%s at=%s", ",".join(normalized_tokens), at)
            return dict(cached_entry.rates)

        fetch_task = self._in_flight.get(cache_key)
        if fetch_task is None:
            logger.debug("Rate cache miss tokens=%s at=%s", ",".join(normalized_tokens), at)
            fetch_task = asyncio.create_task(self._rates_fetch_and_store(cache_key))
            self._in_flight[cache_key] = fetch_task
        fetch_result = await asyncio.shield(fetch_task)
        return dict(fetch_result.rates)

    def rates_clear(self) -> None:
        """Drop every cached rate entry."""

        self._entries.clear()

    async def _rates_fetch_and_store(self, cache_key: RateCacheKey) -> RateFetchResult:
        normalized_tokens, at = cache_key
        try:
            fetch_result = await self._fetcher.rates_fetch(normalized_tokens, at=at)
            if fetch_result.failed_tokens:
                logger.info(
                    "Rate lookup not cached; degraded tokens=%s at=%s",
                    ",".join(sorted(fetch_result.failed_tokens)),
                    at,
                )
            else:
                self._entries[cache_key] = RateEntry(
                    tokens=normalized_tokens,
                    quote_timestamp=at,
                    rates=dict(fetch_result.rates),
                    fetched_at=self._clock(),
                )
            return fetch_result
        finally:
            self._in_flight.pop(cache_key, None)

    def _rates_is_fresh(self, entry: RateEntry) -> bool:
        return 0 <= self._clock() - entry.fetched_at < self._ttl_seconds

    def _rates_build_key(self, tokens: Iterable[str], at: int | None) -> RateCacheKey:
        return domain_normalize_token_set(tokens), at


__all__ = ["RateCache", "RateCacheKey"]
