"""FastAPI application factory for the portfolio query service."""

from fastapi import FastAPI

from token_portfolio.config import AppSettings
from token_portfolio.ledger import LedgerHealthPort
from token_portfolio.valuation import PortfolioValuationPort

from .routers import api_create_health_router, api_create_portfolio_router


def create_api_application(
    settings: AppSettings,
    ledger_health_service: LedgerHealthPort,
    valuation_service: PortfolioValuationPort,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        ledger_health_service: Ledger source health service used by health endpoints.
        valuation_service: Valuation service used by portfolio endpoints.

    Returns:
        FastAPI: Framework application instance with all routers mounted.

    Raises:
        ValueError: Raised when a router dependency is invalid.
    """
    application = FastAPI(title="Token Portfolio Ledger")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service metadata for bootstrap verification.

        Returns:
            dict[str, str]: Service name, status, environment and quote currency.

        Raises:
            RuntimeError: Raised if route handler cannot produce a response.
        """

        return {
            "service": "token-portfolio-ledger",
            "status": "ready",
            "environment": settings.environment_name,
            "quote_currency": settings.quote_currency,
        }

    application.include_router(api_create_health_router(ledger_health_service=ledger_health_service))
    application.include_router(api_create_portfolio_router(valuation_service=valuation_service))

    return application
