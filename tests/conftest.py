import os

os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

import pytest
from typing import Generator, Dict, Any
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from storefront.app import app as fastapi_app
from storefront.utils.security import require_user, require_admin
from tests.fakes import FakeGateway, FakeSupabase, TEST_KEY_ID, TEST_SECRET


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture
def fake_user() -> Dict[str, Any]:
    return {
        "id": "test-user",
        "email": "test@example.com",
        "full_name": "Test User",
        "role": "user",
        "metadata": {"full_name": "Test User"},
        "token": "fake-token",
    }

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app, fake_user):
    app.dependency_overrides[require_user] = lambda: fake_user
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

@pytest.fixture
def authenticated_admin_client(app, client):
    def _override_require_admin():
        return {"id": "admin-user-id", "role": "admin", "email": "admin@example.com"}
    app.dependency_overrides[require_admin] = _override_require_admin
    yield client
    app.dependency_overrides.pop(require_admin, None)

# Aucun test ne doit joindre Supabase: client MagicMock par défaut
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: MagicMock())

# Passerelle configurée avec des clés de test (aucun appel réseau: voir fake_gateway)
@pytest.fixture(autouse=True)
def gateway_config(monkeypatch):
    monkeypatch.setattr("storefront.config.PAYMENT_GATEWAY_KEY_ID", TEST_KEY_ID)
    monkeypatch.setattr("storefront.config.PAYMENT_GATEWAY_KEY_SECRET", TEST_SECRET)
    monkeypatch.setattr("storefront.config.PAYMENT_CURRENCY", "INR")
    monkeypatch.setattr("storefront.config.REQUIRE_ADDRESS_AT_CHECKOUT", False)
    return {"key_id": TEST_KEY_ID, "secret": TEST_SECRET}

@pytest.fixture
def fake_db(monkeypatch) -> FakeSupabase:
    """Supabase en mémoire branché sur tous les repositories."""
    db = FakeSupabase()
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: db)
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: db)
    return db

@pytest.fixture
def fake_gateway(monkeypatch) -> FakeGateway:
    gw = FakeGateway()
    monkeypatch.setattr("storefront.payments.gateway_client.create_order", gw.create_order)
    monkeypatch.setattr("storefront.payments.gateway_client.refund_payment", gw.refund_payment)
    return gw
