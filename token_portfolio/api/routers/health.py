"""Health endpoint router composition for app and ledger source checks."""

import asyncio

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from token_portfolio.ledger import LedgerHealthPort


def api_create_health_router(ledger_health_service: LedgerHealthPort) -> APIRouter:
    """Create health-check router reporting whether the ledger can be replayed.

    Args:
        ledger_health_service: Ledger-layer health service interface.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when ledger_health_service is invalid.
    """

    if ledger_health_service is None:
        raise ValueError("ledger_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    async def api_health_status() -> JSONResponse:
        """Return application and ledger source health state.

        The ledger check touches the filesystem, so it runs off the event loop.

        Returns:
            JSONResponse: 200 with ledger status, or 503 when the ledger is unreadable.

        Raises:
            RuntimeError: Ledger failures are rendered as degraded payloads.
        """

        target = ledger_health_service.ledger_source_label()
        try:
            ledger_health = await asyncio.to_thread(ledger_health_service.ledger_check_health)
        except ConnectionError as error:
            return JSONResponse(
                content=_api_health_payload("degraded", "down", str(error), target),
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return JSONResponse(
            content=_api_health_payload("ok", ledger_health.status, ledger_health.detail, target),
            status_code=status.HTTP_200_OK,
        )

    return router


def _api_health_payload(overall_status: str, ledger_status: str, detail: str, target: str) -> dict[str, str]:
    return {
        "status": overall_status,
        "app": "up",
        "ledger": ledger_status,
        "detail": detail,
        "target": target,
    }
