import json
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from teamauth.core.config import settings
from teamauth.core.exceptions import OAuthError
from teamauth.models.user import User
from teamauth.services.google_oauth import GoogleOAuthClient


def _start_login(client):
    resp = client.get("/api/auth/google", follow_redirects=False)
    assert resp.status_code == 302
    state = parse_qs(urlparse(resp.headers["location"]).query)["state"][0]
    return resp, state


def _query(resp):
    return parse_qs(urlparse(resp.headers["location"]).query)


# ---------- ROUTES ----------

def test_google_redirects_with_state_cookie(client):
    resp, state = _start_login(client)
    assert resp.headers["location"].startswith("https://accounts.google.test/")
    assert resp.cookies.get("oauth_state") == state


def test_google_unavailable_when_not_configured(client, google):
    google.configured = False
    resp = client.get("/api/auth/google", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "http://frontend.test/login?error=google_auth_unavailable"


def test_callback_creates_verified_account(client, db):
    _, state = _start_login(client)

    resp = client.get(f"/api/auth/google/callback?code=good-code&state={state}", follow_redirects=False)
    assert resp.status_code == 302
    location = resp.headers["location"]
    assert location.startswith("http://frontend.test/auth/callback?")

    params = _query(resp)
    assert params["accessToken"][0]
    user_data = json.loads(params["user"][0])
    assert user_data["email"] == "gina@example.com"
    assert user_data["name"] == "Gina Google"
    assert user_data["role"] == "user"
    assert resp.cookies.get("refreshToken")

    user = db.query(User).filter(User.email == "gina@example.com").one()
    assert user.google_id == "g-123"
    assert user.is_verified is True
    assert user.password_hash is None
    assert user.profile_pic == "https://lh3.googleusercontent.test/gina.png"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {params['accessToken'][0]}"})
    assert me.status_code == 200
    assert me.json()["id"] == user.id


def test_callback_links_existing_email_account(client, db, make_user, google):
    existing = make_user(email="gina@example.com", name="Gina", verified=False)
    _, state = _start_login(client)

    resp = client.get(f"/api/auth/google/callback?code=good-code&state={state}", follow_redirects=False)
    assert resp.headers["location"].startswith("http://frontend.test/auth/callback?")

    db.refresh(existing)
    assert existing.google_id == "g-123"
    assert existing.is_verified is True
    assert existing.password_hash is not None
    assert db.query(User).count() == 1

    # a second login finds the account by google id
    _, state = _start_login(client)
    client.get(f"/api/auth/google/callback?code=good-code&state={state}", follow_redirects=False)
    assert db.query(User).count() == 1


def test_callback_state_mismatch(client, db):
    _start_login(client)
    resp = client.get("/api/auth/google/callback?code=good-code&state=forged", follow_redirects=False)
    assert resp.headers["location"] == "http://frontend.test/login?error=google_auth_error"
    assert db.query(User).count() == 0


def test_callback_without_state_cookie(client):
    resp = client.get("/api/auth/google/callback?code=good-code&state=anything", follow_redirects=False)
    assert resp.headers["location"] == "http://frontend.test/login?error=google_auth_error"


def test_callback_token_exchange_failure(client):
    _, state = _start_login(client)
    resp = client.get(f"/api/auth/google/callback?code=bad-code&state={state}", follow_redirects=False)
    assert resp.headers["location"] == "http://frontend.test/login?error=google_auth_failed"
    assert "refreshToken" not in resp.cookies


@pytest.mark.parametrize("query", ["error=access_denied", "state=abc"])
def test_callback_provider_error_or_missing_code(client, query):
    resp = client.get(f"/api/auth/google/callback?{query}", follow_redirects=False)
    assert resp.headers["location"] == "http://frontend.test/login?error=google_auth_failed"


# ---------- CLIENT ----------

class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, token_resp, userinfo_resp=None, raise_on_post=False):
        self.token_resp = token_resp
        self.userinfo_resp = userinfo_resp
        self.raise_on_post = raise_on_post
        self.posted = []

    def post(self, url, data=None, timeout=None):
        if self.raise_on_post:
            raise requests.ConnectionError("unreachable")
        self.posted.append((url, data))
        return self.token_resp

    def get(self, url, headers=None, timeout=None):
        return self.userinfo_resp


@pytest.fixture
def google_config():
    return settings.model_copy(update={"google_client_id": "cid", "google_client_secret": "csecret"})


def test_authorization_url_carries_client_and_state(google_config):
    url = GoogleOAuthClient(google_config, session=FakeSession(None)).authorization_url("xyz")
    params = parse_qs(urlparse(url).query)
    assert params["client_id"] == ["cid"]
    assert params["state"] == ["xyz"]
    assert params["scope"] == ["openid profile email"]


def test_fetch_profile(google_config):
    session = FakeSession(
        FakeResponse(200, {"access_token": "at"}),
        FakeResponse(200, {"sub": 42, "email": " Gina@Example.com ", "name": "Gina", "email_verified": True}),
    )
    profile = GoogleOAuthClient(google_config, session=session).fetch_profile("the-code")

    assert profile.google_id == "42"
    assert profile.email == "gina@example.com"
    assert profile.name == "Gina"
    assert session.posted[0][1]["code"] == "the-code"
    assert session.posted[0][1]["client_secret"] == "csecret"


@pytest.mark.parametrize(
    "session,reason",
    [
        (FakeSession(None, raise_on_post=True), "google_auth_error"),
        (FakeSession(FakeResponse(400, {})), "google_auth_failed"),
        (FakeSession(FakeResponse(200, {})), "google_auth_failed"),
        (
            FakeSession(FakeResponse(200, {"access_token": "at"}), FakeResponse(200, {"sub": "1"})),
            "google_profile_incomplete",
        ),
        (
            FakeSession(
                FakeResponse(200, {"access_token": "at"}),
                FakeResponse(200, {"sub": "1", "email": "a@b.c", "email_verified": False}),
            ),
            "google_email_not_verified",
        ),
    ],
)
def test_fetch_profile_failures(google_config, session, reason):
    with pytest.raises(OAuthError) as exc:
        GoogleOAuthClient(google_config, session=session).fetch_profile("code")
    assert exc.value.reason == reason


def test_not_configured_without_credentials():
    config = settings.model_copy(update={"google_client_id": "", "google_client_secret": ""})
    assert GoogleOAuthClient(config, session=FakeSession(None)).configured is False
