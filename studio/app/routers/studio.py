"""Studio pages and JSON API for the video generation form."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.datastructures import UploadFile

from studio.app.config import MAX_REFERENCE_IMAGE_BYTES
from studio.app.deps import get_optional_session, get_orchestrators, require_session
from studio.app.domain.generation import FormState, ReferenceImage, Session
from studio.app.domain.providers import ProviderDescriptor
from studio.app.services.cost_estimator import price_tier
from studio.app.services.form_state import form_from_values, reconcile
from studio.app.services.generation_orchestrator import (
    GenerationOrchestrator,
    OrchestratorRegistry,
)
from studio.app.services.provider_catalog import get_all_providers, get_provider, resolve_provider
from studio.app.services.studio_view import derive_form_view, form_to_dict
from studio.app.web.templates import render_template

pages_router = APIRouter()
api_router = APIRouter(prefix="/api", tags=["studio"])
logger = logging.getLogger(__name__)


def _reconciled(values: Any, reference_image: Optional[ReferenceImage] = None):
    provider = resolve_provider(values.get("provider"))
    form = form_from_values(values, provider_id=provider.id, reference_image=reference_image)
    return reconcile(form, provider), provider


def _render_studio(
    request: Request,
    *,
    session: Session,
    form: FormState,
    provider: ProviderDescriptor,
    orchestrator: Optional[GenerationOrchestrator],
):
    return render_template(
        request=request,
        name="studio.html",
        ctx={
            "providers": get_all_providers(),
            "provider": provider,
            "price_tier": price_tier(provider),
            "form": form,
            "view": derive_form_view(form, provider),
            "run": orchestrator.snapshot() if orchestrator else None,
            "user": session.user,
        },
    )


async def _read_reference_image(upload: Any) -> Optional[ReferenceImage]:
    if not isinstance(upload, UploadFile) or not upload.filename:
        return None
    data = await upload.read(MAX_REFERENCE_IMAGE_BYTES + 1)
    if not data:
        return None
    if len(data) > MAX_REFERENCE_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="reference image too large")
    return ReferenceImage(
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        data=data,
    )


async def _posted_form(request: Request, registry: OrchestratorRegistry, user_id: str):
    """
    Reconcile a posted studio form. A new upload replaces the attached image,
    otherwise the one attached earlier is carried over unless the user
    removed it; a provider without image support clears it.
    """
    values = await request.form()
    image = await _read_reference_image(values.get("conditioning_image"))
    if image is None and values.get("clear_reference_image") not in ("1", "true", "on"):
        image = registry.attached_image(user_id)
    form, provider = _reconciled(values, reference_image=image)
    registry.attach_image(user_id, form.reference_image)
    return form, provider


@pages_router.get("/", response_class=HTMLResponse)
async def studio_page(
    request: Request,
    session: Session | None = Depends(get_optional_session),
    registry: OrchestratorRegistry = Depends(get_orchestrators),
) -> HTMLResponse:
    if session is None:
        return render_template(request=request, name="signin.html", ctx={"callback_url": "/"})
    form, provider = _reconciled(
        request.query_params,
        reference_image=registry.attached_image(session.user.id),
    )
    return _render_studio(
        request,
        session=session,
        form=form,
        provider=provider,
        orchestrator=registry.peek(session.user.id),
    )


@pages_router.post("/refresh", response_class=HTMLResponse)
async def refresh_page(
    request: Request,
    session: Session = Depends(require_session),
    registry: OrchestratorRegistry = Depends(get_orchestrators),
) -> HTMLResponse:
    form, provider = await _posted_form(request, registry, session.user.id)
    return _render_studio(
        request,
        session=session,
        form=form,
        provider=provider,
        orchestrator=registry.peek(session.user.id),
    )


@pages_router.post("/generate", response_class=HTMLResponse)
async def generate_page(
    request: Request,
    session: Session = Depends(require_session),
    registry: OrchestratorRegistry = Depends(get_orchestrators),
) -> HTMLResponse:
    form, provider = await _posted_form(request, registry, session.user.id)

    orchestrator = registry.get(session.user.id)
    status = await orchestrator.submit(form)
    logger.info(
        "[Studio] generate finished user_id=%s provider=%s status=%s",
        session.user.id,
        provider.id,
        status.value,
    )
    return _render_studio(
        request,
        session=session,
        form=form,
        provider=provider,
        orchestrator=orchestrator,
    )


@api_router.get("/providers")
def list_providers_api():
    providers = get_all_providers()
    return {"items": [p.to_dict() for p in providers], "total": len(providers)}


@api_router.get("/providers/{provider_id}")
def get_provider_api(provider_id: str):
    provider = get_provider(provider_id)
    if not provider:
        raise HTTPException(status_code=404, detail="provider not found")
    return provider.to_dict()


@api_router.post("/form/reconcile")
def reconcile_form_api(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    session: Session = Depends(require_session),
    registry: OrchestratorRegistry = Depends(get_orchestrators),
):
    try:
        form, provider = _reconciled(
            payload or {},
            reference_image=registry.attached_image(session.user.id),
        )
        return {
            "form": form_to_dict(form),
            **derive_form_view(form, provider),
        }
    except Exception as exc:
        logger.exception("reconcile_form_api failed")
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "reconcile_failed", "message": str(exc)},
        )


@api_router.get("/generation")
def generation_snapshot_api(
    session: Session = Depends(require_session),
    registry: OrchestratorRegistry = Depends(get_orchestrators),
):
    orchestrator = registry.peek(session.user.id)
    if orchestrator is None:
        return {"status": "idle", "message": "", "videos": [], "meta": None}
    return orchestrator.snapshot()
