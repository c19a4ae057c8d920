"""Dependency injection for API routes."""

from typing import Annotated

from fastapi import Depends, Request

from sarufi.services.orchestrator import SessionOrchestrator


def get_orchestrator(request: Request) -> SessionOrchestrator:
    """FastAPI dependency injection for the SessionOrchestrator.

    The orchestrator is created once by create_app() and kept on app.state,
    so every request shares the same registry, store and stats.
    """
    return request.app.state.orchestrator


# Type aliases for dependency injection
OrchestratorDep = Annotated[SessionOrchestrator, Depends(get_orchestrator)]
