"""Typed runtime settings with dotenv support and startup validation."""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from token_portfolio.domain import RateFailurePolicy


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for API runtime, ledger source and price source.

    Environment variable names map directly to field names in uppercase.
    Example: `ledger_csv_path` reads from `LEDGER_CSV_PATH`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        log_level: Root log level name for the package logger.
        ledger_csv_path: Filesystem path of the transaction ledger CSV.
        ledger_read_batch_size: Rows read per streaming batch.
        price_api_base_url: Base URL of the CryptoCompare-compatible price API.
        price_api_key: Optional price API key.
        price_request_timeout_seconds: HTTP timeout for one price request.
        quote_currency: Fiat quote symbol used for every valuation.
        rate_cache_ttl_seconds: Freshness window for cached rates.
        rate_failure_policy: Failure policy for price lookups.
        historical_fetch_max_concurrency: Max simultaneous per-token historical requests.
        snapshot_cache_ttl_seconds: Freshness window for cached balance snapshots.
        snapshot_cache_cutoff_tolerance_seconds: Max cutoff distance for reusing an earlier snapshot.
        snapshot_cache_max_entries: Max number of cached balance snapshots.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    ledger_csv_path: str = Field(default="transactions.csv", min_length=1)
    ledger_read_batch_size: int = Field(default=500, ge=1)
    price_api_base_url: str = Field(default="https://min-api.cryptocompare.com/data", min_length=1)
    price_api_key: str | None = Field(default=None)
    price_request_timeout_seconds: float = Field(default=10.0, gt=0)
    quote_currency: str = Field(default="USD", min_length=1)
    rate_cache_ttl_seconds: float = Field(default=60.0, gt=0)
    rate_failure_policy: RateFailurePolicy = Field(default=RateFailurePolicy.STRICT_LATEST)
    historical_fetch_max_concurrency: int = Field(default=8, ge=1)
    snapshot_cache_ttl_seconds: float = Field(default=60.0, gt=0)
    snapshot_cache_cutoff_tolerance_seconds: int = Field(default=0, ge=0)
    snapshot_cache_max_entries: int = Field(default=64, ge=1)

    @field_validator("ledger_csv_path", "price_api_base_url")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("quote_currency")
    @classmethod
    def _validate_quote_currency(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if not normalized_value:
            raise ValueError("quote_currency must not be blank")
        return normalized_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unsupported log_level={value}")
        return normalized_value

    @field_validator("price_api_key")
    @classmethod
    def _validate_optional_api_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("snapshot_cache_cutoff_tolerance_seconds")
    @classmethod
    def _validate_tolerance_bounds(cls, value: int, info) -> int:
        snapshot_ttl_seconds = float(info.data.get("snapshot_cache_ttl_seconds", 60.0))
        if value > snapshot_ttl_seconds:
            raise ValueError(
                "snapshot_cache_cutoff_tolerance_seconds must be less than or equal to snapshot_cache_ttl_seconds"
            )
        return value


def config_load_settings() -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return AppSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
