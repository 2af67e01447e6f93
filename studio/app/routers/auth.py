from __future__ import annotations

import logging

from authlib.integrations.base_client import OAuthError
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from studio.app.auth import get_oauth
from studio.app.config import AUTH_BASE_PATH, SIGN_IN_PATH, get_settings
from studio.app.services.session import (
    create_session,
    destroy_session,
    get_server_session,
    release_user_state,
)
from studio.app.web.templates import render_template

router = APIRouter(prefix=AUTH_BASE_PATH, tags=["auth"])
pages_router = APIRouter()
logger = logging.getLogger(__name__)

SUPPORTED_SOCIAL_PROVIDERS = ("google",)
CALLBACK_KEY = "auth_callback_url"


def _safe_callback(url: str | None) -> str:
    # Only same-site relative paths; anything else lands on the studio.
    if not url or not url.startswith("/") or url.startswith("//"):
        return "/"
    return url


@pages_router.get(SIGN_IN_PATH, response_class=HTMLResponse)
async def sign_in_page(request: Request, callbackURL: str | None = Query(default=None)) -> HTMLResponse:
    if get_server_session(request) is not None:
        return RedirectResponse(url=_safe_callback(callbackURL), status_code=303)
    return render_template(
        request=request,
        name="signin.html",
        ctx={"callback_url": _safe_callback(callbackURL)},
    )


@router.get("/signin/{provider}")
async def sign_in_social(
    provider: str,
    request: Request,
    callbackURL: str | None = Query(default=None),
):
    if provider not in SUPPORTED_SOCIAL_PROVIDERS:
        raise HTTPException(status_code=404, detail="unknown sign-in provider")
    request.session[CALLBACK_KEY] = _safe_callback(callbackURL)
    settings = get_settings()
    redirect_uri = f"{settings.app_url.rstrip('/')}{AUTH_BASE_PATH}/callback/{provider}"
    client = get_oauth().create_client(provider)
    return await client.authorize_redirect(request, redirect_uri)


@router.get("/callback/{provider}")
async def sign_in_callback(provider: str, request: Request):
    if provider not in SUPPORTED_SOCIAL_PROVIDERS:
        raise HTTPException(status_code=404, detail="unknown sign-in provider")
    client = get_oauth().create_client(provider)
    try:
        token = await client.authorize_access_token(request)
    except OAuthError as exc:
        logger.warning("[Auth] oauth callback failed provider=%s err=%s", provider, exc.error)
        return RedirectResponse(url=f"{SIGN_IN_PATH}?error=oauth_failed", status_code=303)

    userinfo = token.get("userinfo") or {}
    if not userinfo:
        userinfo = await client.userinfo(token=token)
    try:
        create_session(request, dict(userinfo))
    except ValueError:
        logger.warning("[Auth] userinfo without subject provider=%s", provider)
        return RedirectResponse(url=f"{SIGN_IN_PATH}?error=oauth_failed", status_code=303)

    callback = request.session.pop(CALLBACK_KEY, "/")
    return RedirectResponse(url=_safe_callback(callback), status_code=303)


@router.api_route("/sign-out", methods=["GET", "POST"])
async def sign_out(request: Request):
    session = get_server_session(request)
    destroy_session(request)
    if session is not None:
        release_user_state(request, session.user.id)
    if request.method == "GET":
        return RedirectResponse(url="/", status_code=303)
    return {"ok": True}


@router.get("/get-session")
async def get_session_api(request: Request):
    session = get_server_session(request)
    if session is None:
        return JSONResponse(content=None)
    return session.model_dump(mode="json")
