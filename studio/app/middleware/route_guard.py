from __future__ import annotations

import logging
from typing import Iterable, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp

from studio.app.config import AUTH_BASE_PATH, SIGN_IN_PATH
from studio.app.services.session import get_server_session

logger = logging.getLogger(__name__)

# Anything but a safe method is redirected with 303 so the browser follows with GET.
REPLAYABLE_METHODS: Tuple[str, ...] = ("GET", "HEAD")
PUBLIC_PATHS: Tuple[str, ...] = ("/", "/healthz")
PUBLIC_PREFIXES: Tuple[str, ...] = ("/auth/", f"{AUTH_BASE_PATH.rstrip('/')}/")
# Static assets and framework internals never hit the session check.
EXCLUDED_PREFIXES: Tuple[str, ...] = ("/static/", "/favicon.ico")


def is_excluded_path(path: str) -> bool:
    return any(path.startswith(prefix) for prefix in EXCLUDED_PREFIXES)


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES)


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Redirect unauthenticated requests for protected paths to the sign-in page."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        sign_in_path: str = SIGN_IN_PATH,
        extra_public_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.sign_in_path = sign_in_path
        self.extra_public_paths = tuple(extra_public_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if is_excluded_path(path) or is_public_path(path) or path in self.extra_public_paths:
            return await call_next(request)

        if get_server_session(request) is None:
            status_code = 307 if request.method in REPLAYABLE_METHODS else 303
            logger.info("[RouteGuard] redirect unauthenticated method=%s path=%s", request.method, path)
            return RedirectResponse(url=self.sign_in_path, status_code=status_code)
        return await call_next(request)
