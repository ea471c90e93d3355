"""Health endpoint router composition for app and ledger database checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from verifier.db import DatabaseHealthPort


def api_create_health_router(db_health_service: DatabaseHealthPort, api_base_url: str | None = None) -> APIRouter:
    """Create health-check router with app and ledger connectivity status.

    Args:
        db_health_service: DB-layer health service interface.
        api_base_url: Resolved verification API base URL, if configured.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when db_health_service is invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application and ledger health state.

        Returns:
            JSONResponse: 200 when the ledger is reachable, 503 otherwise.
        """

        try:
            db_health = db_health_service.db_check_health()
        except ConnectionError as error:
            payload = {
                "status": "degraded",
                "app": "up",
                "ledger": "down",
                "detail": str(error),
                "target": db_health_service.db_connection_label(),
                "verifier_api": api_base_url,
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        payload = {
            "status": "ok",
            "app": "up",
            "ledger": db_health.status,
            "detail": db_health.detail,
            "target": db_health_service.db_connection_label(),
            "verifier_api": api_base_url,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
