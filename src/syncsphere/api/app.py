"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from syncsphere.api.admin import router as admin_router
from syncsphere.api.advanced import router as advanced_router
from syncsphere.app_logging import configure_logging
from syncsphere.containers import AppContainer
from syncsphere.services.errors import SessionError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            app.state.container.session_service.recover_interrupted()
        except Exception:
            logger.exception("Failed to recover interrupted sessions")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)
    app.include_router(advanced_router)

    @app.exception_handler(SessionError)
    async def session_error_handler(
        request: Request, exc: SessionError
    ) -> JSONResponse:
        if exc.status_code >= 500:  # noqa: PLR2004
            logger.error("Session operation failed: %s", exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": {"code": exc.code, "message": exc.message},
            },
        )

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Simple health check endpoint."""
        return {"status": "ok", "active_drivers": container.driver.active_count()}

    return app
