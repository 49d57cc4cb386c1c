"""Regression tests for CryptoCompare price adapter requests and failure policies."""

from __future__ import annotations

import asyncio
from decimal import Decimal

import httpx

import pytest

from token_portfolio.adapters import (
    CryptoComparePriceAdapter,
    PriceSourceConnectionError,
    PriceSourceResponseError,
)
from token_portfolio.domain import RateFailurePolicy


def _build_adapter(handler, **kwargs) -> CryptoComparePriceAdapter:
    return CryptoComparePriceAdapter(
        base_url="https://prices.example.test/data",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_adapters_latest_rates_use_one_batch_request() -> None:
    """Request every token in one `pricemulti` call and extract quote rates.

    Returns:
        None: Assertions validate batch request shape and rate extraction.

    Raises:
        AssertionError: Raised when request or extraction is incorrect.
    """

    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"BTC": {"USD": 50000}, "ETH": {"USD": 2500.5}})

    adapter = _build_adapter(_handler)
    result = asyncio.run(adapter.rates_fetch(["eth", "BTC", "btc"]))

    assert result.rates == {"BTC": Decimal("50000"), "ETH": Decimal("2500.5")}
    assert result.failed_tokens == frozenset()
    assert len(requests) == 1
    assert requests[0].url.path == "/data/pricemulti"
    assert requests[0].url.params["fsyms"] == "BTC,ETH"
    assert requests[0].url.params["tsyms"] == "USD"


def test_adapters_latest_rates_default_missing_or_invalid_values_to_zero() -> None:
    """Return zero for tokens absent from the payload or priced with invalid values.

    Returns:
        None: Assertions validate zero defaults.

    Raises:
        AssertionError: Raised when absent tokens are not zero.
    """

    def _handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(200, json={"BTC": {"USD": -5}, "DOGE": {"USD": "n/a"}, "ETH": {"EUR": 1}})

    result = asyncio.run(_build_adapter(_handler).rates_fetch(["BTC", "DOGE", "ETH", "SOL"]))

    assert result.rates == {
        "BTC": Decimal("0"),
        "DOGE": Decimal("0"),
        "ETH": Decimal("0"),
        "SOL": Decimal("0"),
    }


def test_adapters_latest_batch_failure_raises_by_default() -> None:
    """Raise a response error when the latest batch returns a non-success status.

    Returns:
        None: Assertions validate fatal latest failures.

    Raises:
        AssertionError: Raised when the failure is swallowed.
    """

    def _handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(500)

    with pytest.raises(PriceSourceResponseError, match="HTTP 500") as error_info:
        asyncio.run(_build_adapter(_handler).rates_fetch(["BTC"]))

    assert error_info.value.status_code == 500


def test_adapters_in_band_error_payload_maps_every_token_to_zero() -> None:
    """Treat `{"Response": "Error"}` bodies as quotes absent for every requested token.

    Returns:
        None: Assertions validate unknown-symbol handling on latest and historical paths.

    Raises:
        AssertionError: Raised when in-band errors fail the lookup.
    """

    def _handler(request: httpx.Request) -> httpx.Response:
        _ = request
        return httpx.Response(
            200,
            json={
                "Response": "Error",
                "Message": "cccagg_or_exchange market does not exist for this coin pair (FOO-USD)",
            },
        )

    adapter = _build_adapter(_handler, failure_policy=RateFailurePolicy.STRICT)
    latest_result = asyncio.run(adapter.rates_fetch(["foo"]))
    historical_result = asyncio.run(adapter.rates_fetch(["FOO", "BAR"], at=100))

    assert latest_result.rates == {"FOO": Decimal("0")}
    assert latest_result.failed_tokens == frozenset()
    assert historical_result.rates == {"BAR": Decimal("0"), "FOO": Decimal("0")}
    assert historical_result.failed_tokens == frozenset()


def test_adapters_historical_fan_out_respects_max_concurrency() -> None:
    """Keep at most `max_concurrency` historical requests in flight at once.

    Returns:
        None: Assertions validate the concurrency bound and complete results.

    Raises:
        AssertionError: Raised when the fan-out exceeds its bound or drops tokens.
    """

    in_flight = 0
    peak_in_flight = 0

    async def _handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak_in_flight
        in_flight += 1
        peak_in_flight = max(peak_in_flight, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        token = request.url.params["fsym"]
        return httpx.Response(200, json={token: {"USD": 2}})

    adapter = _build_adapter(_handler, max_concurrency=2)
    result = asyncio.run(adapter.rates_fetch(["A", "B", "C", "D", "E"], at=100))

    assert 0 < peak_in_flight <= 2
    assert result.rates == {token: Decimal("2") for token in ("A", "B", "C", "D", "E")}
    assert result.failed_tokens == frozenset()


def test_adapters_latest_transport_failure_zero_fills_under_zero_fill_policy() -> None:
    """Degrade every token to zero when the latest batch fails under zero-fill.

    Returns:
        None: Assertions validate zero-fill degradation.

    Raises:
        AssertionError: Raised when zero-fill is not applied.
    """

    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    adapter = _build_adapter(_handler, failure_policy=RateFailurePolicy.ZERO_FILL)
    result = asyncio.run(adapter.rates_fetch(["BTC", "ETH"]))

    assert result.rates == {"BTC": Decimal("0"), "ETH": Decimal("0")}
    assert result.failed_tokens == frozenset({"BTC", "ETH"})

    strict_adapter = _build_adapter(_handler)
    with pytest.raises(PriceSourceConnectionError):
        asyncio.run(strict_adapter.rates_fetch(["BTC"]))


def test_adapters_historical_rates_degrade_failed_token_only() -> None:
    """Query one token per request and degrade only the failing token.

    Returns:
        None: Assertions validate per-token historical isolation.

    Raises:
        AssertionError: Raised when one failure affects other tokens.
    """

    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        token = request.url.params["fsym"]
        if token == "ETH":
            return httpx.Response(503)
        return httpx.Response(200, json={token: {"USD": 40000}})

    result = asyncio.run(_build_adapter(_handler).rates_fetch(["BTC", "ETH"], at=1704067200))

    assert result.rates == {"BTC": Decimal("40000"), "ETH": Decimal("0")}
    assert result.failed_tokens == frozenset({"ETH"})
    assert sorted(request.url.params["fsym"] for request in requests) == ["BTC", "ETH"]
    assert all(request.url.path == "/data/pricehistorical" for request in requests)
    assert all(request.url.params["ts"] == "1704067200" for request in requests)


def test_adapters_historical_failure_raises_under_strict_policy() -> None:
    """Raise the per-token failure after the fan-out joins under the strict policy.

    Returns:
        None: Assertions validate strict historical failures.

    Raises:
        AssertionError: Raised when strict failures are degraded.
    """

    def _handler(request: httpx.Request) -> httpx.Response:
        token = request.url.params["fsym"]
        if token == "ETH":
            return httpx.Response(404)
        return httpx.Response(200, json={token: {"USD": 1}})

    adapter = _build_adapter(_handler, failure_policy=RateFailurePolicy.STRICT)

    with pytest.raises(PriceSourceResponseError, match="HTTP 404") as error_info:
        asyncio.run(adapter.rates_fetch(["BTC", "ETH"], at=100))

    assert error_info.value.token == "ETH"


def test_adapters_sends_api_key_header_and_skips_empty_token_sets() -> None:
    """Send the configured API key and make no request for an empty token set.

    Returns:
        None: Assertions validate auth header and empty-input short-circuit.

    Raises:
        AssertionError: Raised when headers or request counts are incorrect.
    """

    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"BTC": {"EUR": 3}})

    adapter = _build_adapter(_handler, api_key=" secret ", quote_currency="eur")

    assert asyncio.run(adapter.rates_fetch([])).rates == {}
    assert requests == []

    result = asyncio.run(adapter.rates_fetch(["BTC"]))

    assert result.rates == {"BTC": Decimal("3")}
    assert requests[0].headers["Authorization"] == "Apikey secret"
    assert requests[0].url.params["tsyms"] == "EUR"
