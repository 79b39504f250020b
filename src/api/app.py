"""FastAPI application factory."""

import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.config.settings import Settings
from src.database.postgres import PostgresClient
from src.handlers.status_handler import StatusHandler
from src.logger.logger import get_logger
from src.logger.types import Category, duration_ms, param

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(
    settings: Settings,
    postgres_client: PostgresClient | None = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        settings: Loaded settings (the configuration snapshot is settings.app)
        postgres_client: Client to use instead of one built from settings.postgres

    Returns:
        FastAPI instance; the Postgres pool is opened in its lifespan
    """
    logger = get_logger().with_category(Category.LIFECYCLE)
    postgres = postgres_client or PostgresClient(settings.postgres)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await postgres.connect()
        except ConnectionError as e:
            logger.error("Failed to initialize PostgreSQL pool", e)
            raise

        logger.info(
            "Service started",
            param("environment", settings.environment),
            param("version", settings.service_version),
            param("configuration_source", settings.app.configuration_source()),
            param("vault_integration", settings.app.vault_integration_enabled),
            param("database_enabled", settings.app.database_enabled),
        )
        try:
            yield
        finally:
            await postgres.close()
            logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.service_name,
        version=settings.service_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.postgres = postgres
    app.state.status_handler = StatusHandler(settings.app, postgres)

    http_logger = get_logger().with_category(Category.HTTP)

    @app.middleware("http")
    async def log_requests(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_logger = http_logger.with_request_id(request_id).with_fields(
            param("method", request.method),
            param("path", request.url.path),
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            request_logger.error(
                f"{request.method} {request.url.path}",
                e,
                param("status", 500),
                duration_ms((time.perf_counter() - started) * 1000),
            )
            response = JSONResponse(
                status_code=500,
                content={"status": "error", "detail": "Internal server error"},
            )
        else:
            request_logger.info(
                f"{request.method} {request.url.path}",
                param("status", response.status_code),
                duration_ms((time.perf_counter() - started) * 1000),
            )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    app.include_router(router)
    return app
