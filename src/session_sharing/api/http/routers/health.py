"""Health check endpoints."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.session_sharing.api.http.app_data import ApplicationDependencies

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe, does not check dependencies."""
    return {"status": "healthy"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe.

    Returns 503 when the database is unreachable or session sharing has no
    valid configuration.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies

    checks: dict[str, Any] = {}
    all_healthy = True

    db_healthy = app_deps.database_service.health_check()
    checks["database"] = {"status": "healthy" if db_healthy else "unhealthy"}
    all_healthy = all_healthy and db_healthy

    checks["storage"] = {
        "status": "healthy" if app_deps.storage.is_available() else "degraded",
        "type": type(app_deps.storage).__name__,
    }

    sharing_ready = app_deps.session_sharing_service.ready
    checks["session_sharing"] = {"status": "ready" if sharing_ready else "not_configured"}
    all_healthy = all_healthy and sharing_ready

    body = {"status": "ready" if all_healthy else "not_ready", "checks": checks}
    if not all_healthy:
        return JSONResponse(status_code=503, content=body)
    return body
