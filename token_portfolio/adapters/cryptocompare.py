"""CryptoCompare-compatible price adapter for latest and historical rates."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from decimal import Decimal, InvalidOperation
from typing import Any, Final

import httpx

from token_portfolio.domain import RateFailurePolicy, domain_normalize_token_set

from .interfaces import PriceSourcePort, RateFetchResult
from .price_errors import (
    PriceSourceConnectionError,
    PriceSourceError,
    PriceSourceResponseError,
    PriceSourceTimeoutError,
)

logger = logging.getLogger(__name__)


class CryptoComparePriceAdapter(PriceSourcePort):
    """Adapter for the CryptoCompare `pricemulti` and `pricehistorical` endpoints.

    Latest rates use one batch request for every token. Historical rates use
    one request per token, fanned out under a concurrency bound and joined
    before returning. The failure policy decides which failures raise and
    which degrade the affected tokens to a zero rate.
    """

    _USER_AGENT: Final[str] = "token-portfolio-ledger/0.1 (Python/httpx)"
    _LATEST_PATH: Final[str] = "pricemulti"
    _HISTORICAL_PATH: Final[str] = "pricehistorical"

    def __init__(
        self,
        base_url: str = "https://min-api.cryptocompare.com/data",
        quote_currency: str = "USD",
        api_key: str | None = None,
        failure_policy: RateFailurePolicy = RateFailurePolicy.STRICT_LATEST,
        max_concurrency: int = 8,
        request_timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize price adapter.

        Args:
            base_url: Base endpoint URL of the price API.
            quote_currency: Quote symbol requested for every rate.
            api_key: Optional API key sent in the Authorization header.
            failure_policy: Policy deciding fatal versus degraded failures.
            max_concurrency: Max simultaneous historical requests.
            request_timeout_seconds: HTTP request timeout in seconds.
            transport: Optional httpx transport override.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_base_url = base_url.strip()
        normalized_quote_currency = quote_currency.strip().upper()

        if not normalized_base_url:
            raise ValueError("base_url must not be blank")
        if not normalized_quote_currency:
            raise ValueError("quote_currency must not be blank")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._base_url = normalized_base_url.rstrip("/")
        self._quote_currency = normalized_quote_currency
        self._api_key = (api_key or "").strip() or None
        self._failure_policy = RateFailurePolicy(failure_policy)
        self._max_concurrency = max_concurrency
        self._request_timeout_seconds = request_timeout_seconds
        self._transport = transport

    def adapter_source_name(self) -> str:
        """Return stable adapter source label.

        Returns:
            str: Source identifier.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return "cryptocompare"

    async def rates_fetch(self, tokens: Iterable[str], at: int | None = None) -> RateFetchResult:
        """Fetch quote-currency rates for tokens.

        Args:
            tokens: Token symbols to price; normalized to uppercase and deduplicated.
            at: Optional epoch-seconds timestamp for historical rates.

        Returns:
            RateFetchResult: Rates for every requested token and the set of degraded tokens.

        Raises:
            PriceSourceConnectionError: Raised for transport failures the policy treats as fatal.
            PriceSourceTimeoutError: Raised for timeouts the policy treats as fatal.
            PriceSourceResponseError: Raised for status or payload failures the policy treats as fatal.
        """

        normalized_tokens = domain_normalize_token_set(tokens)
        if not normalized_tokens:
            return RateFetchResult(rates={})

        async with self._adapter_create_client() as client:
            if at is None:
                return await self._adapter_fetch_latest(client=client, tokens=normalized_tokens)
            return await self._adapter_fetch_historical(client=client, tokens=normalized_tokens, at=at)

    async def _adapter_fetch_latest(self, client: httpx.AsyncClient, tokens: tuple[str, ...]) -> RateFetchResult:
        """Fetch latest rates for every token with one batch request.

        Args:
            client: Open HTTP client.
            tokens: Normalized token symbols.

        Returns:
            RateFetchResult: Latest rates per token.

        Raises:
            PriceSourceError: Raised on batch failure unless the policy is zero-fill.
        """

        try:
            payload = await self._adapter_http_get_json(
                client=client,
                path=self._LATEST_PATH,
                query_parameters={"fsyms": ",".join(tokens), "tsyms": self._quote_currency},
            )
        except PriceSourceError as error:
            if self._failure_policy is not RateFailurePolicy.ZERO_FILL:
                raise
            logger.warning("Latest rate batch failed; degrading tokens=%s to zero reason=%s", ",".join(tokens), error)
            return RateFetchResult(
                rates={token: Decimal("0") for token in tokens},
                failed_tokens=frozenset(tokens),
            )

        return RateFetchResult(rates={token: self._adapter_extract_rate(payload, token) for token in tokens})

    async def _adapter_fetch_historical(
        self,
        client: httpx.AsyncClient,
        tokens: tuple[str, ...],
        at: int,
    ) -> RateFetchResult:
        """Fetch historical rates with one bounded concurrent request per token.

        Args:
            client: Open HTTP client.
            tokens: Normalized token symbols.
            at: Epoch-seconds quote timestamp.

        Returns:
            RateFetchResult: Historical rates per token with degraded tokens listed.

        Raises:
            PriceSourceError: Raised for the first failed token when the policy is strict.
        """

        semaphore = asyncio.Semaphore(self._max_concurrency)
        outcomes = await asyncio.gather(
            *(
                self._adapter_fetch_historical_token(client=client, semaphore=semaphore, token=token, at=at)
                for token in tokens
            )
        )

        rates: dict[str, Decimal] = {}
        failed_tokens: set[str] = set()
        for token, rate, error in outcomes:
            if error is None:
                rates[token] = rate
                continue
            if self._failure_policy is RateFailurePolicy.STRICT:
                raise error
            rates[token] = Decimal("0")
            failed_tokens.add(token)

        if failed_tokens:
            logger.warning(
                "Historical rate lookup degraded tokens=%s to zero at=%s",
                ",".join(sorted(failed_tokens)),
                at,
            )
        return RateFetchResult(rates=rates, failed_tokens=frozenset(failed_tokens))

    async def _adapter_fetch_historical_token(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore,
        token: str,
        at: int,
    ) -> tuple[str, Decimal, PriceSourceError | None]:
        """Fetch one historical rate and capture its failure instead of raising.

        Args:
            client: Open HTTP client.
            semaphore: Shared concurrency bound.
            token: Normalized token symbol.
            at: Epoch-seconds quote timestamp.

        Returns:
            tuple[str, Decimal, PriceSourceError | None]: Token, rate and optional captured failure.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        async with semaphore:
            try:
                payload = await self._adapter_http_get_json(
                    client=client,
                    path=self._HISTORICAL_PATH,
                    query_parameters={"fsym": token, "tsyms": self._quote_currency, "ts": str(at)},
                    token=token,
                )
            except PriceSourceError as error:
                return token, Decimal("0"), error
        return token, self._adapter_extract_rate(payload, token), None

    async def _adapter_http_get_json(
        self,
        client: httpx.AsyncClient,
        path: str,
        query_parameters: dict[str, str],
        token: str | None = None,
    ) -> dict[str, Any]:
        """Execute one HTTP GET and return the decoded JSON object.

        Args:
            client: Open HTTP client.
            path: Endpoint path relative to the base URL.
            query_parameters: Query string parameters.
            token: Token the request is for, None for batch requests.

        Returns:
            dict[str, Any]: Decoded JSON object payload, empty when the source reports no quotes in-band.

        Raises:
            PriceSourceTimeoutError: Raised when the request times out.
            PriceSourceConnectionError: Raised for network failures.
            PriceSourceResponseError: Raised for non-success status or non-object JSON payloads.
        """

        url = f"{self._base_url}/{path}"
        try:
            response = await client.get(url, params=query_parameters)
        except httpx.TimeoutException as error:
            raise PriceSourceTimeoutError("price source request timed out", token=token) from error
        except httpx.TransportError as error:
            raise PriceSourceConnectionError("price source request failed", token=token) from error

        if not response.is_success:
            raise PriceSourceResponseError(
                f"price source returned HTTP {response.status_code} {response.reason_phrase}".strip(),
                token=token,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as error:
            raise PriceSourceResponseError("price source returned a non-JSON payload", token=token) from error

        if not isinstance(payload, dict):
            raise PriceSourceResponseError("price source returned a non-object payload", token=token)
        if str(payload.get("Response", "")).lower() == "error":
            # Unknown symbols are reported in-band with HTTP 200; every requested token is absent.
            logger.warning(
                "Price source reported no quotes path=%s token=%s message=%s",
                path,
                token,
                payload.get("Message") or "unknown error",
            )
            return {}
        return payload

    def _adapter_extract_rate(self, payload: dict[str, Any], token: str) -> Decimal:
        """Extract one non-negative rate from a `{TOKEN: {QUOTE: rate}}` payload.

        Args:
            payload: Decoded price payload.
            token: Normalized token symbol.

        Returns:
            Decimal: Rate, or zero when absent, non-numeric or negative.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        token_payload = payload.get(token)
        if not isinstance(token_payload, dict):
            return Decimal("0")
        raw_rate = token_payload.get(self._quote_currency)
        if isinstance(raw_rate, bool) or not isinstance(raw_rate, (int, float, str)):
            return Decimal("0")
        try:
            rate = Decimal(str(raw_rate))
        except InvalidOperation:
            return Decimal("0")
        if not rate.is_finite() or rate < Decimal("0"):
            return Decimal("0")
        return rate

    def _adapter_create_client(self) -> httpx.AsyncClient:
        """Build one HTTP client for a single fetch call.

        Returns:
            httpx.AsyncClient: Client configured with timeout, headers and optional transport.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        headers = {"User-Agent": self._USER_AGENT, "Accept": "application/json"}
        if self._api_key is not None:
            headers["Authorization"] = f"Apikey {self._api_key}"
        return httpx.AsyncClient(
            timeout=self._request_timeout_seconds,
            headers=headers,
            transport=self._transport,
        )


__all__ = ["CryptoComparePriceAdapter"]
