from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from starlette.requests import Request
from starlette.templating import Jinja2Templates

from studio.app.web.template_helpers import get_template_globals

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_templates: Jinja2Templates | None = None


def get_templates() -> Jinja2Templates:
    """
    Lazy accessor for templates to avoid import-time initialization.
    """
    global _templates
    if _templates is None:
        _templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    return _templates


def render_template(
    *,
    request: Request,
    name: str,
    ctx: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
):
    """
    Render a template with per-request session globals injected.
    """
    data: Dict[str, Any] = {}
    data.update(get_template_globals(request))
    if ctx:
        data.update(ctx)
    return get_templates().TemplateResponse(request, name, data, status_code=status_code)
