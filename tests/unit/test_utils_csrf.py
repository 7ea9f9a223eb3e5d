from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from storefront.utils.csrf import (
    register_csrf_middleware,
    get_or_create_csrf_token,
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
)


def _make_app():
    app = FastAPI()
    register_csrf_middleware(app)

    @app.get("/simple")
    def simple_get():
        return {"ok": True}

    @app.post("/simple")
    def simple_post():
        return {"ok": True}

    # Chemin exempté (retour du widget de paiement)
    @app.post("/payment/verify")
    def verify():
        return {"ok": True}

    @app.get("/token")
    def token_route(request: Request):
        return {"token": get_or_create_csrf_token(request)}

    return app


def test_csrf_cookie_set_on_get():
    client = TestClient(_make_app())
    r = client.get("/simple")
    assert r.status_code == 200
    assert CSRF_COOKIE_NAME in client.cookies


def test_post_without_session_is_not_checked():
    client = TestClient(_make_app())
    assert client.post("/simple").status_code == 200


def test_middleware_blocks_post_without_csrf_when_session_cookie_present():
    client = TestClient(_make_app())
    client.cookies.set("sb_access", "dummy-session")
    r = client.post("/simple")
    assert r.status_code == 403
    assert r.json().get("detail") == "CSRF verification failed"


def test_middleware_allows_post_with_valid_csrf_header():
    client = TestClient(_make_app())
    client.get("/simple")
    token = client.cookies.get(CSRF_COOKIE_NAME)
    assert token
    client.cookies.set("sb_access", "dummy-session")
    r = client.post("/simple", headers={CSRF_HEADER_NAME: token})
    assert r.status_code == 200


def test_middleware_allows_post_with_form_token_when_header_missing():
    client = TestClient(_make_app())
    client.get("/simple")
    token = client.cookies.get(CSRF_COOKIE_NAME)
    client.cookies.set("sb_access", "dummy-session")
    r = client.post(
        "/simple",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        content=f"csrf_token={token}",
    )
    assert r.status_code == 200


def test_middleware_rejects_wrong_token():
    client = TestClient(_make_app())
    client.get("/simple")
    client.cookies.set("sb_access", "dummy-session")
    r = client.post("/simple", headers={CSRF_HEADER_NAME: "wrong"})
    assert r.status_code == 403


def test_payment_verify_is_exempt():
    client = TestClient(_make_app())
    client.cookies.set("sb_access", "dummy-session")
    r = client.post("/payment/verify")
    assert r.status_code == 200


def test_get_or_create_csrf_token_returns_existing_or_new():
    client = TestClient(_make_app())
    t1 = client.get("/token").json().get("token")
    assert isinstance(t1, str) and len(t1) > 0

    client.cookies.set(CSRF_COOKIE_NAME, "fixed-token")
    assert client.get("/token").json().get("token") == "fixed-token"
