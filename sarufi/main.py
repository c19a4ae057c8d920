"""
FastAPI application factory.

Serve with any ASGI server, e.g.: uvicorn sarufi.main:app
"""

from contextlib import asynccontextmanager
from typing import Optional
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from sarufi import __version__
from sarufi.api.exception_handlers import setup_exception_handlers
from sarufi.api.routes import health, sessions, stats, strategies
from sarufi.core.config import settings
from sarufi.core.logging import bind_context, clear_context, configure_logging, get_logger
from sarufi.services.builder import create_builder
from sarufi.services.orchestrator import SessionOrchestrator

# Configure logging before anything else
configure_logging()
log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique correlation ID to each request.

    - Generates a UUID4 request_id for each incoming request
    - Binds it to structlog context for all logs in that request
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            # Clear context after request completes
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Sessions live in memory; they are dropped on shutdown.
    """
    orchestrator: SessionOrchestrator = app.state.orchestrator
    log.info(
        "application_started",
        debug=settings.debug,
        strategies=[s.name for s in orchestrator.list_strategies()],
    )

    yield

    log.info("application_shutting_down", sessions=len(orchestrator.store))
    orchestrator.store.clear()


def create_app(orchestrator: Optional[SessionOrchestrator] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        orchestrator: Orchestrator to serve. Defaults to one built from the
            strategy files in settings.strategies_dir.
    """
    if orchestrator is None:
        orchestrator = create_builder().with_strategies_from_dir().build()

    app = FastAPI(
        title="Sarufi",
        description="Strategy-driven conversation orchestrator",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.orchestrator = orchestrator

    # CORS middleware for development
    if settings.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(CorrelationIDMiddleware)
    setup_exception_handlers(app)

    app.include_router(health.router, tags=["system"])
    app.include_router(strategies.router)
    app.include_router(sessions.router)
    app.include_router(stats.router)

    return app


app = create_app()
