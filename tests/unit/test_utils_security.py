import types
import sys
from fastapi import FastAPI, Depends
from fastapi.testclient import TestClient

from storefront.utils.security import get_current_user, require_admin, COOKIE_NAME
from storefront.auth.service import determine_role

def _make_app():
    app = FastAPI()

    @app.get("/me")
    def me(user=Depends(get_current_user)):
        return user

    @app.get("/admin")
    def admin(user=Depends(require_admin)):
        return {"ok": True}

    return app

def test_determine_role():
    assert determine_role({"role": "admin"}) == "admin"
    assert determine_role({"role": "ADMIN"}) == "admin"
    assert determine_role(None) == "user"
    assert determine_role({"role": "scanner"}) == "user"

def test_get_current_user_bearer_success(monkeypatch):
    fake_auth = types.SimpleNamespace(
        get_user_from_token=lambda token: {"id": "u1", "email": "a@b", "role": "user"}
    )
    monkeypatch.setitem(sys.modules, "storefront.auth.service", fake_auth)

    client = TestClient(_make_app())
    r = client.get("/me", headers={"Authorization": "Bearer tok-123"})
    assert r.status_code == 200
    assert r.json() == {"id": "u1", "email": "a@b", "role": "user"}

def test_get_current_user_cookie_success(monkeypatch):
    fake_auth = types.SimpleNamespace(
        get_user_from_token=lambda token: {"id": "u1", "email": "a@b", "role": "admin"}
    )
    monkeypatch.setitem(sys.modules, "storefront.auth.service", fake_auth)

    client = TestClient(_make_app())
    client.cookies.set(COOKIE_NAME, "cookie-token")
    r = client.get("/me")
    assert r.status_code == 200
    assert r.json()["role"] == "admin"

def test_get_current_user_missing_token_401():
    client = TestClient(_make_app())
    r = client.get("/me")
    assert r.status_code == 401
    assert "Non authentifié" in r.text

def test_get_current_user_missing_id_401(monkeypatch):
    fake_auth = types.SimpleNamespace(get_user_from_token=lambda token: {"email": "x@y"})
    monkeypatch.setitem(sys.modules, "storefront.auth.service", fake_auth)

    client = TestClient(_make_app())
    r = client.get("/me", headers={"Authorization": "Bearer tok"})
    assert r.status_code == 401
    assert "Session expirée" in r.text

def test_get_current_user_auth_error_401(monkeypatch):
    def _boom(token):
        raise RuntimeError("invalid JWT")
    monkeypatch.setitem(sys.modules, "storefront.auth.service", types.SimpleNamespace(get_user_from_token=_boom))

    client = TestClient(_make_app())
    r = client.get("/me", headers={"Authorization": "Bearer tok"})
    assert r.status_code == 401

def test_require_admin_forbidden_and_allowed(monkeypatch):
    client = TestClient(_make_app())

    monkeypatch.setitem(sys.modules, "storefront.auth.service", types.SimpleNamespace(
        get_user_from_token=lambda token: {"id": "u1", "role": "user"}
    ))
    assert client.get("/admin", headers={"Authorization": "Bearer tok"}).status_code == 403

    monkeypatch.setitem(sys.modules, "storefront.auth.service", types.SimpleNamespace(
        get_user_from_token=lambda token: {"id": "u1", "role": "admin"}
    ))
    r_ok = client.get("/admin", headers={"Authorization": "Bearer tok"})
    assert r_ok.status_code == 200
    assert r_ok.json() == {"ok": True}
