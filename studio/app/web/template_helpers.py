from __future__ import annotations

from typing import Dict
from starlette.requests import Request

from studio.app.config import AUTH_BASE_PATH, SIGN_IN_PATH
from studio.app.services.cost_estimator import format_currency
from studio.app.services.session import get_server_session


def get_template_globals(request: Request) -> Dict[str, object]:
    return {
        "session": get_server_session(request),
        "auth_base_path": AUTH_BASE_PATH,
        "sign_in_path": SIGN_IN_PATH,
        "format_currency": format_currency,
    }
