import json
from base64 import b64encode
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from itsdangerous import TimestampSigner

from studio.app.config import get_settings
from studio.app.main import create_app
from studio.app.providers.generation_api import HttpGenerationApi
from studio.app.services.session import SESSION_KEY

GENERATION_ENDPOINT = "https://gen.example.test/api/generate-video"
TEST_AUTH_SECRET = "test-session-secret"


def session_payload(*, expires_in=timedelta(days=30), updated_ago=timedelta(0), user_id="u-1"):
    now = datetime.now(timezone.utc)
    return {
        SESSION_KEY: {
            "user": {"id": user_id, "name": "Ada Lovelace", "email": "ada@example.test", "image": None},
            "expires_at": (now + expires_in).isoformat(),
            "updated_at": (now - updated_ago).isoformat(),
        }
    }


def signed_session_cookie(data, secret=None) -> str:
    # Same encoding as starlette.middleware.sessions.SessionMiddleware
    signer = TimestampSigner(get_settings().auth_secret if secret is None else secret)
    raw = b64encode(json.dumps(data).encode("utf-8"))
    return signer.sign(raw).decode("utf-8")


class GenerationBackend:
    """Scripted stand-in for the external generation endpoint."""

    def __init__(self):
        self.status_code = 200
        self.body = {"videos": ["https://cdn.example.test/a.mp4", "https://cdn.example.test/b.mp4"], "cost": 1.50}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture(autouse=True)
def auth_secret(monkeypatch):
    monkeypatch.delenv("BETTER_AUTH_SECRET", raising=False)
    monkeypatch.setenv("AUTH_SECRET", TEST_AUTH_SECRET)
    get_settings.cache_clear()
    yield TEST_AUTH_SECRET
    get_settings.cache_clear()


@pytest.fixture()
def backend():
    return GenerationBackend()


@pytest.fixture()
def app(backend):
    return create_app(
        api_factory=lambda: HttpGenerationApi(GENERATION_ENDPOINT, transport=httpx.MockTransport(backend))
    )


@pytest.fixture()
def anon_client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def client_for(app):
    def _make(cookie):
        client = TestClient(app)
        # host-only cookies for "testserver" are stored under "testserver.local";
        # matching it lets Set-Cookie from the app replace this one.
        client.cookies.set(get_settings().session_cookie, cookie, domain="testserver.local")
        return client

    return _make


@pytest.fixture()
def client(client_for):
    return client_for(signed_session_cookie(session_payload()))


@pytest.fixture()
def make_session_cookie():
    def _make(data=None, secret=None, **kwargs):
        return signed_session_cookie(data if data is not None else session_payload(**kwargs), secret=secret)

    return _make
