# tests/test_auth_api.py
"""认证接口：注册 / 登录 / 登出 / me / 改口令，以及口令永不出现在响应里。"""
from conftest import login, register

from dashboard.core.security import get_cookie_name
from dashboard.infra.db import SessionLocal
from dashboard.services import users as user_svc


def _no_password(resp):
    body = resp.text.lower()
    assert "password" not in body
    assert "$2b$" not in resp.text


def test_register_returns_only_id_and_username(client):
    r = client.post("/api/auth/register", json={"username": "alice", "password": "password123"})
    assert r.status_code == 200, r.text
    assert set(r.json()) == {"id", "username"}
    assert r.json()["username"] == "alice"
    _no_password(r)
    # 注册不自动登录
    assert get_cookie_name() not in r.cookies
    assert client.get("/api/auth/me").status_code == 401


def test_register_duplicate_and_invalid_payload(client):
    register(client)
    r = client.post("/api/auth/register", json={"username": "alice", "password": "other"})
    assert r.status_code == 400
    assert r.json() == {"message": "Registration failed"}

    r = client.post("/api/auth/register", json={"username": "bob"})
    assert r.status_code == 400
    assert "message" in r.json()
    assert any(e["field"] == "password" for e in r.json()["errors"])


def test_login_sets_http_only_cookie_and_me_returns_user(client):
    created = register(client)
    r = client.post("/api/auth/login", json={"username": "alice", "password": "password123"})
    assert r.status_code == 200, r.text
    _no_password(r)
    assert r.json()["id"] == created["id"]

    set_cookie = r.headers["set-cookie"].lower()
    assert set_cookie.startswith(get_cookie_name() + "=")
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie
    assert "max-age=2592000" in set_cookie

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    _no_password(me)
    body = me.json()
    assert body["id"] == created["id"]
    assert body["username"] == "alice"
    assert body["role"] == "admin"


def test_login_failures_are_indistinguishable(client):
    register(client)
    wrong_pw = client.post("/api/auth/login", json={"username": "alice", "password": "wrong-password"})
    no_user = client.post("/api/auth/login", json={"username": "mallory", "password": "password123"})
    assert wrong_pw.status_code == no_user.status_code == 401
    assert wrong_pw.json() == no_user.json() == {"message": "Invalid credentials"}
    assert get_cookie_name() not in wrong_pw.cookies


def test_login_payload_rules(client):
    register(client, "al", "x")
    r = client.post("/api/auth/login", json={"username": "al", "password": "password123"})
    assert r.status_code == 400
    r = client.post("/api/auth/login", json={"username": "alice", "password": "short"})
    assert r.status_code == 400


def test_logout_destroys_session(client):
    register(client)
    login(client)
    assert client.get("/api/auth/me").status_code == 200

    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"message": "Logged out successfully"}
    assert client.get("/api/auth/me").status_code == 401


def test_logout_without_session_is_fine(client):
    r = client.post("/api/auth/logout")
    assert r.status_code == 200


def test_relogin_rotates_session_token(client):
    register(client)
    first = client.post("/api/auth/login", json={"username": "alice", "password": "password123"})
    second = client.post("/api/auth/login", json={"username": "alice", "password": "password123"})
    assert first.cookies[get_cookie_name()] != second.cookies[get_cookie_name()]
    assert client.get("/api/auth/me").status_code == 200


def test_me_without_session_and_with_stale_cookie(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"message": "Unauthorized - Please login"}

    client.cookies.set(get_cookie_name(), "forged-token")
    assert client.get("/api/auth/me").status_code == 401


def test_me_when_user_was_deleted(client):
    created = register(client)
    login(client)
    with SessionLocal() as db:
        user_svc.delete_user(db, created["id"])
    r = client.get("/api/auth/me")
    assert r.status_code == 404
    assert r.json() == {"message": "User not found"}


def test_change_password_flow(client):
    register(client)
    login(client)

    r = client.post("/api/auth/change-password",
                    json={"currentPassword": "not-it", "newPassword": "brand-new-pw"})
    assert r.status_code == 400

    r = client.post("/api/auth/change-password",
                    json={"currentPassword": "password123", "newPassword": "123"})
    assert r.status_code == 400

    r = client.post("/api/auth/change-password",
                    json={"currentPassword": "password123", "newPassword": "brand-new-pw"})
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Password updated"}

    client.post("/api/auth/logout")
    bad = client.post("/api/auth/login", json={"username": "alice", "password": "password123"})
    assert bad.status_code == 401
    login(client, "alice", "brand-new-pw")


def test_change_password_requires_session(client):
    r = client.post("/api/auth/change-password",
                    json={"currentPassword": "password123", "newPassword": "brand-new-pw"})
    assert r.status_code == 401


def test_change_password_forbidden_for_viewer(client, monkeypatch):
    monkeypatch.setenv("REGISTRATION_ROLE", "viewer")
    register(client, "victor", "password123")
    me = login(client, "victor", "password123")
    assert me["role"] == "viewer"

    r = client.post("/api/auth/change-password",
                    json={"currentPassword": "password123", "newPassword": "brand-new-pw"})
    assert r.status_code == 403
    assert r.json() == {"message": "Forbidden"}
