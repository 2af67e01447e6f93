from __future__ import annotations

from authlib.integrations.starlette_client import OAuth

from studio.app.config import get_settings

_oauth: OAuth | None = None


def get_oauth() -> OAuth:
    """
    Lazy OAuth registry; Google is the only social provider.
    """
    global _oauth
    if _oauth is None:
        settings = get_settings()
        oauth = OAuth()
        oauth.register(
            name="google",
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            server_metadata_url=settings.google_metadata_url,
            client_kwargs={"scope": "openid email profile"},
        )
        _oauth = oauth
    return _oauth
