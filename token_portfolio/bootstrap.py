"""Application bootstrap wiring for startup validation and dependency assembly."""

from dataclasses import dataclass

from fastapi import FastAPI

from token_portfolio.adapters import CryptoComparePriceAdapter
from token_portfolio.api import create_api_application
from token_portfolio.config import AppSettings, config_load_settings
from token_portfolio.ledger import CsvLedgerSource, LedgerReplayer, PortfolioSnapshotCache
from token_portfolio.rates import RateCache
from token_portfolio.valuation import PortfolioValuationService


@dataclass(frozen=True)
class RuntimeComponents:
    """Process-wide components built once at startup.

    Attributes:
        ledger_source: CSV ledger source, also used for health checks.
        replayer: Streaming ledger replayer.
        snapshot_cache: Per-cutoff snapshot cache wrapping the replayer.
        price_adapter: Price source adapter.
        rate_cache: Rate cache wrapping the price adapter.
        valuation_service: Valuation service combining both caches.
    """

    ledger_source: CsvLedgerSource
    replayer: LedgerReplayer
    snapshot_cache: PortfolioSnapshotCache
    price_adapter: CryptoComparePriceAdapter
    rate_cache: RateCache
    valuation_service: PortfolioValuationService


def bootstrap_create_components(settings: AppSettings) -> RuntimeComponents:
    """Assemble ledger, rate and valuation components from validated settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        RuntimeComponents: Fully wired component set.

    Raises:
        ValueError: Raised when a component rejects its configuration.
    """

    ledger_source = CsvLedgerSource(
        csv_path=settings.ledger_csv_path,
        batch_size=settings.ledger_read_batch_size,
    )
    replayer = LedgerReplayer(source=ledger_source)
    snapshot_cache = PortfolioSnapshotCache(
        replayer=replayer,
        ttl_seconds=settings.snapshot_cache_ttl_seconds,
        cutoff_tolerance_seconds=settings.snapshot_cache_cutoff_tolerance_seconds,
        max_entries=settings.snapshot_cache_max_entries,
    )
    price_adapter = CryptoComparePriceAdapter(
        base_url=settings.price_api_base_url,
        quote_currency=settings.quote_currency,
        api_key=settings.price_api_key,
        failure_policy=settings.rate_failure_policy,
        max_concurrency=settings.historical_fetch_max_concurrency,
        request_timeout_seconds=settings.price_request_timeout_seconds,
    )
    rate_cache = RateCache(fetcher=price_adapter, ttl_seconds=settings.rate_cache_ttl_seconds)
    valuation_service = PortfolioValuationService(snapshot_provider=snapshot_cache, rate_provider=rate_cache)
    return RuntimeComponents(
        ledger_source=ledger_source,
        replayer=replayer,
        snapshot_cache=snapshot_cache,
        price_adapter=price_adapter,
        rate_cache=rate_cache,
        valuation_service=valuation_service,
    )


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when omitted.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    components = bootstrap_create_components(resolved_settings)
    return create_api_application(
        settings=resolved_settings,
        ledger_health_service=components.ledger_source,
        valuation_service=components.valuation_service,
    )
