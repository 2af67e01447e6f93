from urllib.parse import parse_qs, urlparse

from studio.app.routers.auth import _safe_callback


def test_safe_callback_only_allows_relative_paths():
    assert _safe_callback("/studio") == "/studio"
    assert _safe_callback(None) == "/"
    assert _safe_callback("https://evil.test/") == "/"
    assert _safe_callback("//evil.test") == "/"


def test_get_session_returns_user(client):
    data = client.get("/api/auth/get-session").json()
    assert data["user"]["id"] == "u-1"
    assert data["user"]["email"] == "ada@example.test"


def test_sign_out_clears_session(client):
    r = client.post("/api/auth/sign-out")
    assert r.json() == {"ok": True}
    assert client.get("/api/auth/get-session").json() is None
    r = client.get("/api/providers", follow_redirects=False)
    assert r.status_code == 307


def test_sign_out_link_redirects_home(client):
    r = client.get("/api/auth/sign-out", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_sign_in_page_redirects_when_signed_in(client):
    r = client.get("/auth/signin", params={"callbackURL": "/"}, follow_redirects=False)
    assert r.status_code == 303


def test_unknown_social_provider_is_404(anon_client):
    assert anon_client.get("/api/auth/signin/myspace", follow_redirects=False).status_code == 404


def test_google_sign_in_redirects_to_authorization_endpoint(anon_client, monkeypatch):
    from studio.app import auth

    class FakeClient:
        async def authorize_redirect(self, request, redirect_uri):
            from starlette.responses import RedirectResponse

            return RedirectResponse(f"https://accounts.example.test/o/auth?redirect_uri={redirect_uri}")

    class FakeOAuth:
        def create_client(self, name):
            assert name == "google"
            return FakeClient()

    monkeypatch.setattr(auth, "_oauth", FakeOAuth())
    r = anon_client.get("/api/auth/signin/google", params={"callbackURL": "/"}, follow_redirects=False)
    assert r.status_code == 307
    query = parse_qs(urlparse(r.headers["location"]).query)
    assert query["redirect_uri"][0].endswith("/api/auth/callback/google")


def test_callback_creates_session(anon_client, monkeypatch):
    from studio.app import auth

    class FakeClient:
        async def authorize_access_token(self, request):
            return {"userinfo": {"sub": "g-42", "name": "Grace", "email": "grace@example.test"}}

    class FakeOAuth:
        def create_client(self, name):
            return FakeClient()

    monkeypatch.setattr(auth, "_oauth", FakeOAuth())
    r = anon_client.get("/api/auth/callback/google", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    data = anon_client.get("/api/auth/get-session").json()
    assert data["user"]["id"] == "g-42"
    assert anon_client.get("/api/providers", follow_redirects=False).status_code == 200
