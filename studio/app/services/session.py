from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from starlette.requests import HTTPConnection

from studio.app.config import get_settings
from studio.app.domain.generation import Session, SessionUser

log = logging.getLogger(__name__)

SESSION_KEY = "auth"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _session_store(conn: HTTPConnection) -> Dict[str, Any]:
    # Raises AssertionError when SessionMiddleware is not installed.
    return conn.session


def get_server_session(conn: HTTPConnection) -> Optional[Session]:
    """
    Current session or None. A session that cannot be read is treated as
    absent, never as an error.
    """
    try:
        raw = _session_store(conn).get(SESSION_KEY)
        if not raw:
            return None
        session = Session.model_validate(raw)
        now = utc_now()
        expired = session.expires_at <= now
    except Exception as exc:
        log.warning("[Session] unreadable session path=%s err=%s", conn.url.path, exc)
        _clear_quietly(conn)
        return None

    if expired:
        log.info("[Session] expired user_id=%s", session.user.id)
        _clear_quietly(conn)
        release_user_state(conn, session.user.id)
        return None

    settings = get_settings()
    if (now - session.updated_at).total_seconds() >= settings.session_update_age_sec:
        session = session.model_copy(
            update={
                "expires_at": now + timedelta(seconds=settings.session_expires_in_sec),
                "updated_at": now,
            }
        )
        _session_store(conn)[SESSION_KEY] = session.model_dump(mode="json")
    return session


def create_session(conn: HTTPConnection, userinfo: Dict[str, Any]) -> Session:
    settings = get_settings()
    now = utc_now()
    user_id = str(userinfo.get("sub") or userinfo.get("id") or userinfo.get("email") or "")
    if not user_id:
        raise ValueError("userinfo missing subject")
    session = Session(
        user=SessionUser(
            id=user_id,
            name=userinfo.get("name"),
            email=userinfo.get("email"),
            image=userinfo.get("picture") or userinfo.get("image"),
        ),
        expires_at=now + timedelta(seconds=settings.session_expires_in_sec),
        updated_at=now,
    )
    _session_store(conn)[SESSION_KEY] = session.model_dump(mode="json")
    log.info("[Session] created user_id=%s", session.user.id)
    return session


def destroy_session(conn: HTTPConnection) -> None:
    _session_store(conn).clear()


def release_user_state(conn: HTTPConnection, user_id: str) -> None:
    """Drop the per-user studio state (run, attached image) held by the app."""
    app = conn.scope.get("app")
    registry = getattr(getattr(app, "state", None), "orchestrators", None)
    if registry is not None:
        registry.discard(user_id)


def _clear_quietly(conn: HTTPConnection) -> None:
    try:
        _session_store(conn).pop(SESSION_KEY, None)
    except AssertionError:
        pass
