"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI

from nutrition_mcp.api.dashboard import router as dashboard_router
from nutrition_mcp.api.discovery import router as discovery_router
from nutrition_mcp.api.gateway import router as gateway_router
from nutrition_mcp.app_logging import configure_logging
from nutrition_mcp.config import SessionMode
from nutrition_mcp.containers import AppContainer
from nutrition_mcp.gateway.protocol import SERVER_VERSION
from nutrition_mcp.gateway.sessions import SessionGateway

_MAX_SWEEP_INTERVAL_SECONDS = 60.0

_logger = logging.getLogger(__name__)


async def sweep_idle_sessions(gateway: SessionGateway, max_idle_seconds: float) -> None:
    """Periodically close sessions that have been idle too long."""
    interval = min(max_idle_seconds, _MAX_SWEEP_INTERVAL_SECONDS)
    while True:
        await asyncio.sleep(interval)
        try:
            gateway.close_idle(max_idle_seconds)
        except Exception:
            _logger.exception("Idle session sweep failed")


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    settings = container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        sweeper: asyncio.Task[None] | None = None
        idle_timeout = settings.session_idle_timeout_seconds
        if settings.session_mode is SessionMode.STATEFUL and idle_timeout:
            sweeper = asyncio.create_task(
                sweep_idle_sessions(state_container.gateway, idle_timeout)
            )
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with suppress(asyncio.CancelledError):
                    await sweeper
            state_container.gateway.close_all()
            await state_container.close_resources()

    app = FastAPI(lifespan=lifespan, title="nutrition-mcp", version=SERVER_VERSION)
    app.state.container = container

    app.include_router(discovery_router)
    app.include_router(gateway_router)
    app.include_router(dashboard_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/api")
    async def service_info() -> dict[str, str]:
        """Identify the service."""
        return {"service": "nutrition-mcp", "version": SERVER_VERSION}

    _logger.info(
        "Tool gateway enabled at /api/mcp in %s mode", settings.session_mode.value
    )
    return app
