"""Portfolio API router composition for latest and date-bounded valuations."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from decimal import Decimal

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from token_portfolio.domain import TokenValuation, cutoff_parse_date, domain_normalize_token
from token_portfolio.valuation import PortfolioValuationPort

logger = logging.getLogger(__name__)


def api_create_portfolio_router(valuation_service: PortfolioValuationPort) -> APIRouter:
    """Create portfolio router exposing the four valuation query endpoints.

    Args:
        valuation_service: Valuation service combining balances and rates.

    Returns:
        APIRouter: Router exposing portfolio endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if valuation_service is None:
        raise ValueError("valuation_service must not be None")

    router = APIRouter(prefix="/portfolio", tags=["portfolio"])

    @router.get("")
    async def api_portfolio_latest() -> JSONResponse:
        """Return every token balance valued at latest rates.

        Returns:
            JSONResponse: Mapping of token to balance and quote value.

        Raises:
            RuntimeError: Failures are rendered as error payloads.
        """

        return await _api_run_query(
            lambda: _api_portfolio_payload(valuation_service.valuation_portfolio(cutoff=None)),
        )

    @router.get("/date/{date_value}")
    async def api_portfolio_at_date(date_value: str) -> JSONResponse:
        """Return every token balance at a date valued at that date's rates.

        Args:
            date_value: ISO-8601 date or datetime.

        Returns:
            JSONResponse: Mapping of token to balance and quote value.

        Raises:
            RuntimeError: Failures are rendered as error payloads.
        """

        try:
            cutoff = cutoff_parse_date(date_value)
        except ValueError as error:
            return api_error_response("INVALID_DATE", str(error), status.HTTP_400_BAD_REQUEST)

        return await _api_run_query(
            lambda: _api_portfolio_payload(valuation_service.valuation_portfolio(cutoff=cutoff)),
        )

    @router.get("/date/{date_value}/{token}")
    async def api_portfolio_token_at_date(date_value: str, token: str) -> JSONResponse:
        """Return one token balance at a date valued at that date's rate.

        Args:
            date_value: ISO-8601 date or datetime.
            token: Token symbol, case-insensitive.

        Returns:
            JSONResponse: Token, balance and quote value.

        Raises:
            RuntimeError: Failures are rendered as error payloads.
        """

        try:
            cutoff = cutoff_parse_date(date_value)
        except ValueError as error:
            return api_error_response("INVALID_DATE", str(error), status.HTTP_400_BAD_REQUEST)
        try:
            normalized_token = domain_normalize_token(token)
        except ValueError as error:
            return api_error_response("INVALID_TOKEN", str(error), status.HTTP_400_BAD_REQUEST)

        return await _api_run_query(
            lambda: _api_token_payload(valuation_service.valuation_token(normalized_token, cutoff=cutoff)),
        )

    @router.get("/{token}")
    async def api_portfolio_token_latest(token: str) -> JSONResponse:
        """Return one token balance valued at the latest rate.

        Args:
            token: Token symbol, case-insensitive.

        Returns:
            JSONResponse: Token, balance and quote value.

        Raises:
            RuntimeError: Failures are rendered as error payloads.
        """

        try:
            normalized_token = domain_normalize_token(token)
        except ValueError as error:
            return api_error_response("INVALID_TOKEN", str(error), status.HTTP_400_BAD_REQUEST)

        return await _api_run_query(
            lambda: _api_token_payload(valuation_service.valuation_token(normalized_token, cutoff=None)),
        )

    return router


def api_serialize_token_valuation(valuation: TokenValuation) -> dict[str, object]:
    """Serialize one valuation to the `{balance, usdValue}` payload.

    Args:
        valuation: Typed token valuation.

    Returns:
        dict[str, object]: JSON-serializable valuation payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "balance": _api_decimal_to_number(valuation.balance),
        "usdValue": _api_decimal_to_number(valuation.usd_value),
    }


def api_error_response(code: str, message: str, status_code: int) -> JSONResponse:
    """Build the error envelope shared by portfolio endpoints.

    Args:
        code: Stable machine-readable error code.
        message: Human-readable failure message.
        status_code: HTTP status code.

    Returns:
        JSONResponse: Error payload response.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    payload = {
        "status": "error",
        "code": code,
        "message": message,
    }
    return JSONResponse(content=payload, status_code=status_code)


async def _api_run_query(build_payload: Callable[[], Awaitable[dict[str, object]]]) -> JSONResponse:
    try:
        payload = await build_payload()
    except Exception as error:  # pylint: disable=broad-exception-caught
        logger.exception("Portfolio query failed")
        return api_error_response("PORTFOLIO_QUERY_FAILED", str(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(content=payload, status_code=status.HTTP_200_OK)


async def _api_portfolio_payload(valuations: Awaitable[dict[str, TokenValuation]]) -> dict[str, object]:
    resolved_valuations = await valuations
    return {token: api_serialize_token_valuation(valuation) for token, valuation in resolved_valuations.items()}


async def _api_token_payload(valuation: Awaitable[TokenValuation]) -> dict[str, object]:
    resolved_valuation = await valuation
    return {"token": resolved_valuation.token, **api_serialize_token_valuation(resolved_valuation)}


def _api_decimal_to_number(value: Decimal) -> float:
    return float(value)


__all__ = ["api_create_portfolio_router", "api_error_response", "api_serialize_token_valuation"]
