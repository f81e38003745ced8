from __future__ import annotations

from typing import Any, Callable

import structlog
from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from issue_monitor.config import MonitorConfig, get_config
from issue_monitor.logging_config import configure_logging
from issue_monitor.scheduler.coordinator import MonitorCoordinator


logger = structlog.get_logger(__name__)

LIVENESS_MESSAGE = "GSoC Hunter Bot is running! 🚀"


def create_app(
    config: MonitorConfig | None = None,
    coordinator_factory: Callable[[MonitorConfig], MonitorCoordinator] | None = MonitorCoordinator,
) -> FastAPI:
    """Build the web app that keeps the monitor alive.

    The monitor itself starts on app startup. Pass ``coordinator_factory=None``
    to serve the endpoints without starting any jobs.
    """
    app = FastAPI(title="Issue Monitor", version="0.1.0")
    app.state.config = config
    app.state.coordinator = None

    @app.on_event("startup")
    async def _startup() -> None:
        if app.state.config is None:
            app.state.config = get_config()
            configure_logging(app.state.config.log_level, app.state.config.log_file)
        if coordinator_factory is None:
            return
        app.state.coordinator = coordinator_factory(app.state.config)
        await app.state.coordinator.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        if app.state.coordinator is not None:
            await app.state.coordinator.stop()

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        """Liveness endpoint for uptime pingers."""
        return LIVENESS_MESSAGE

    @app.get("/status")
    async def status() -> Any:
        coordinator: MonitorCoordinator | None = app.state.coordinator
        if coordinator is None:
            return JSONResponse(content={"error": "Monitor not initialized"}, status_code=503)
        return coordinator.get_status()

    return app
