from __future__ import annotations

from fastapi import HTTPException, Request

from studio.app.domain.generation import Session
from studio.app.services.generation_orchestrator import OrchestratorRegistry
from studio.app.services.session import get_server_session


def get_orchestrators(request: Request) -> OrchestratorRegistry:
    return request.app.state.orchestrators


def get_optional_session(request: Request) -> Session | None:
    return get_server_session(request)


def require_session(request: Request) -> Session:
    session = get_server_session(request)
    if session is None:
        raise HTTPException(status_code=401, detail="Sign in required")
    return session
