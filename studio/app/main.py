from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from studio.app.config import _env_int, get_settings
from studio.app.middleware.route_guard import RouteGuardMiddleware
from studio.app.ports.generation_api import GenerationApi
from studio.app.providers.generation_api import build_default_api
from studio.app.routers import auth as auth_router
from studio.app.routers import studio as studio_router
from studio.app.services.generation_orchestrator import OrchestratorRegistry

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def create_app(api_factory: Optional[Callable[[], GenerationApi]] = None) -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if not settings.auth_secret:
        raise RuntimeError("AUTH_SECRET (or BETTER_AUTH_SECRET) must be set to sign session cookies")

    app = FastAPI(title="Video Studio")
    app.state.orchestrators = OrchestratorRegistry(api_factory or build_default_api)

    # Added first so it runs inside SessionMiddleware and can read request.session.
    app.add_middleware(RouteGuardMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.auth_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_expires_in_sec,
        https_only=settings.session_https_only,
        same_site="lax",
    )

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(auth_router.pages_router)
    app.include_router(auth_router.router)
    app.include_router(studio_router.pages_router)
    app.include_router(studio_router.api_router)

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    logger.info("[System] studio app ready generation_api=%s", settings.generation_api_url)
    return app


def run() -> None:
    uvicorn.run("studio.app.main:create_app", factory=True, host="0.0.0.0", port=_env_int("PORT", 3000))
