"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from loguru import logger
from starlette.responses import JSONResponse

from src.session_sharing.api.http.app_data import ApplicationDependencies
from src.session_sharing.api.http.middleware.session_gate import SessionGateMiddleware
from src.session_sharing.api.http.routers import admin, auth, health
from src.session_sharing.api.utils.app_startup import configure_logging
from src.session_sharing.core.errors import ConfigurationError
from src.session_sharing.core.services import (
    AccountService,
    DbSessionService,
    SessionSharingService,
    UserSessionService,
)
from src.session_sharing.core.storage import KeyValueStorage, RedisStorage, create_storage
from src.session_sharing.runtime.config.config_data import ConfigData
from src.session_sharing.runtime.context import get_config

PROBE_PATHS = ("/health", "/ready")
# Paths on which the session gate never starts a session
GATE_EXEMPT_PATHS = (*PROBE_PATHS, "/auth/logout")


async def build_dependencies(
    config: ConfigData, storage: KeyValueStorage | None = None
) -> ApplicationDependencies:
    """Wire the services for ``config``.

    A missing secret leaves session sharing not ready instead of failing
    startup, so the rest of the application keeps serving.
    """
    if storage is None:
        storage = await create_storage(config)
    database_service = DbSessionService(config.database)
    database_service.create_all()

    account_service = AccountService(database_service)
    session_sharing_service = SessionSharingService(storage, account_service)
    try:
        session_sharing_service.reload_settings(config)
    except ConfigurationError as e:
        logger.warning("Session sharing not ready: {}", e.message)

    return ApplicationDependencies(
        storage=storage,
        database_service=database_service,
        account_service=account_service,
        session_sharing_service=session_sharing_service,
        user_session_service=UserSessionService(storage, config.app.session_max_age),
    )


def create_app(
    config: ConfigData | None = None, storage: KeyValueStorage | None = None
) -> FastAPI:
    """Create the application.

    Args:
        config: Configuration to run with, defaults to the process configuration.
        storage: Storage backend to use instead of the configured one.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config)
        logger.info("Starting up application in {} environment", config.app.environment)
        app.state.app_dependencies = await build_dependencies(config, storage)
        try:
            yield
        finally:
            await shutdown(app.state.app_dependencies)

    production = config.app.environment == "production"
    app = FastAPI(
        title="Session Sharing",
        lifespan=lifespan,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
    )
    app.state.config = config

    app.add_middleware(SessionGateMiddleware, exempt_paths=GATE_EXEMPT_PATHS)
    # Added last so it wraps the gate and its logs carry the request id
    app.middleware("http")(log_requests)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(admin.router)
    return app


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except HTTPException as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=exc.status_code,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail, "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )


async def shutdown(app_dependencies: ApplicationDependencies) -> None:
    logger.info("Shutting down application")
    await app_dependencies.user_session_service.purge_expired()
    if isinstance(app_dependencies.storage, RedisStorage):
        await app_dependencies.storage.close()
    app_dependencies.database_service.dispose()


app = create_app()


if __name__ == "__main__":
    import uvicorn

    main_config = get_config()
    uvicorn.run(
        app,
        host=main_config.app.host,
        port=main_config.app.port,
        access_log=False,  # We handle access logging in middleware
    )
