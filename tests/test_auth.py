import re

import pytest
from sqlalchemy import select

from threaddate.models.profile import Profile
from threaddate.models.user import User
from threaddate.routers import auth as auth_router
from threaddate.services.oauth import OAuthError, OAuthIdentity
from conftest import PASSWORD


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    async def fake_send_email(to, subject, html):
        sent.append({"to": to, "subject": subject, "html": html})
        return {"id": "test"}

    monkeypatch.setattr(auth_router, "send_email", fake_send_email)
    return sent


def _token(mail):
    return re.search(r"token=([A-Za-z0-9_\-]+)", mail["html"]).group(1)


def test_register_verify_login_flow(client, db, outbox):
    resp = client.post(
        "/auth/register",
        json={"email": "Ana@ThreadDate.app", "password": "vintage-tees", "username": "ana_v"},
    )
    assert resp.status_code == 200

    user = db.execute(select(User).where(User.email == "ana@threaddate.app")).scalar_one()
    assert db.get(Profile, user.id).username == "ana_v"
    assert outbox[0]["to"] == "ana@threaddate.app"

    # unverified accounts cannot sign in yet
    resp = client.post("/auth/login", json={"email": "ana@threaddate.app", "password": "vintage-tees"})
    assert resp.status_code == 403

    assert client.get("/auth/verify-email", params={"token": _token(outbox[0])}).json() == {"ok": True}
    assert client.get("/auth/verify-email", params={"token": _token(outbox[0])}).status_code == 400

    resp = client.post("/auth/login", json={"email": "ana@threaddate.app", "password": "vintage-tees"})
    assert resp.status_code == 200

    me = client.get("/auth/me").json()
    assert me["email"] == "ana@threaddate.app"
    assert me["username"] == "ana_v"
    assert me["role"] == "user"

    client.post("/auth/logout")
    client.cookies.clear()
    assert client.get("/auth/me").status_code == 401


def test_register_rejects_duplicates(client, make_user, outbox):
    make_user("ana@threaddate.app", username="ana")

    resp = client.post("/auth/register", json={"email": "ana@threaddate.app", "password": "long-enough"})
    assert resp.json()["error"] == "Email already registered"

    resp = client.post("/auth/register", json={"email": "bo@threaddate.app", "password": "long-enough", "username": "ana"})
    assert resp.json()["error"] == "Username already taken"


def test_register_validation(client, outbox):
    resp = client.post("/auth/register", json={"email": "bo@threaddate.app", "password": "short"})
    assert resp.status_code == 422
    assert resp.json()["success"] is False
    assert outbox == []


def test_wrong_password(client, make_user):
    make_user()
    resp = client.post("/auth/login", json={"email": "ana@threaddate.app", "password": "nope-nope"})
    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Invalid credentials"}


def test_password_reset(client, make_user, outbox):
    make_user()

    assert client.post("/auth/password-reset/request", json={"email": "ghost@threaddate.app"}).json() == {"ok": True}
    assert outbox == []

    client.post("/auth/password-reset/request", json={"email": "ana@threaddate.app"})
    token = _token(outbox[0])

    resp = client.post("/auth/password-reset/confirm", json={"token": token, "new_password": "brand-new-pass"})
    assert resp.json() == {"ok": True}

    assert client.post("/auth/login", json={"email": "ana@threaddate.app", "password": PASSWORD}).status_code == 401
    assert client.post("/auth/login", json={"email": "ana@threaddate.app", "password": "brand-new-pass"}).status_code == 200


def test_reset_revokes_sessions(client, make_user, login, outbox):
    login(make_user())
    client.post("/auth/password-reset/request", json={"email": "ana@threaddate.app"})
    client.post("/auth/password-reset/confirm", json={"token": _token(outbox[0]), "new_password": "brand-new-pass"})

    assert client.get("/auth/me").status_code == 401


def test_change_password(client, make_user, login):
    login(make_user())

    resp = client.post("/auth/change-password", json={"current_password": "wrong", "new_password": "whatever-123"})
    assert resp.json()["error"] == "Current password is incorrect"

    resp = client.post("/auth/change-password", json={"current_password": PASSWORD, "new_password": PASSWORD})
    assert resp.json()["error"] == "New password must be different"

    resp = client.post("/auth/change-password", json={"current_password": PASSWORD, "new_password": "whatever-123"})
    assert resp.json() == {"ok": True}
    # the session that changed the password survives
    assert client.get("/auth/me").status_code == 200


class TestOAuthCallback:
    def _identity(self, monkeypatch, identity=None, error=None):
        def fake_exchange(code):
            if error:
                raise error
            return identity

        monkeypatch.setattr(auth_router, "exchange_code_for_identity", fake_exchange)

    def test_success_creates_user_and_redirects(self, client, db, monkeypatch):
        self._identity(monkeypatch, OAuthIdentity(email="cy@threaddate.app", avatar_url="https://img.test/cy.png"))

        resp = client.get("/auth/callback", params={"code": "abc", "next": "/brands/levis"}, follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "http://app.test/brands/levis"
        assert "td_session=" in resp.headers["set-cookie"]

        user = db.execute(select(User).where(User.email == "cy@threaddate.app")).scalar_one()
        assert user.is_email_verified is True
        assert db.get(Profile, user.id).avatar_url == "https://img.test/cy.png"

    def test_existing_user_is_reused(self, client, db, make_user, monkeypatch):
        make_user("ana@threaddate.app", verified=False)
        self._identity(monkeypatch, OAuthIdentity(email="ana@threaddate.app"))

        client.get("/auth/callback", params={"code": "abc"}, follow_redirects=False)
        assert len(db.execute(select(User)).scalars().all()) == 1

    def test_unverified_signup_password_stops_working(self, client, monkeypatch, outbox):
        client.post("/auth/register", json={"email": "victim@threaddate.app", "password": "attacker-pass-1"})
        self._identity(monkeypatch, OAuthIdentity(email="victim@threaddate.app"))

        resp = client.get("/auth/callback", params={"code": "abc"}, follow_redirects=False)
        assert resp.status_code == 302
        client.cookies.clear()

        resp = client.post("/auth/login", json={"email": "victim@threaddate.app", "password": "attacker-pass-1"})
        assert resp.status_code == 401

    def test_verified_account_keeps_its_password(self, client, make_user, monkeypatch):
        make_user("ana@threaddate.app")
        self._identity(monkeypatch, OAuthIdentity(email="ana@threaddate.app"))

        client.get("/auth/callback", params={"code": "abc"}, follow_redirects=False)
        client.cookies.clear()

        resp = client.post("/auth/login", json={"email": "ana@threaddate.app", "password": PASSWORD})
        assert resp.status_code == 200

    @pytest.mark.parametrize("next_path", ["//evil.test", "https://evil.test", "/%2F%2Fevil.test", "/javascript:alert(1)"])
    def test_unsafe_next_falls_back_to_root(self, client, monkeypatch, next_path):
        self._identity(monkeypatch, OAuthIdentity(email="cy@threaddate.app"))

        resp = client.get("/auth/callback", params={"code": "abc", "next": next_path}, follow_redirects=False)
        assert resp.headers["location"] == "http://app.test/"

    def test_missing_code(self, client):
        resp = client.get("/auth/callback", follow_redirects=False)
        assert resp.status_code == 302
        assert resp.headers["location"] == "http://app.test/auth/auth-code-error"

    def test_provider_failure(self, client, db, monkeypatch):
        self._identity(monkeypatch, error=OAuthError("token endpoint returned 400"))

        resp = client.get("/auth/callback", params={"code": "expired"}, follow_redirects=False)
        assert resp.headers["location"] == "http://app.test/auth/auth-code-error"
        assert db.execute(select(User)).scalars().all() == []


def test_tokens_only_work_for_their_purpose(client, make_user, outbox):
    make_user()
    client.post("/auth/password-reset/request", json={"email": "ana@threaddate.app"})

    resp = client.get("/auth/verify-email", params={"token": _token(outbox[0])})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid or used token"
