"""
HTTP-level checks through FastAPI's TestClient against a temporary store.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from referral.app import create_app  # noqa: E402
from referral.core.config import Settings  # noqa: E402
from referral.core.rate_limiter import reset_rate_limits  # noqa: E402
from referral.repositories.json_store import JsonStore, StorageError  # noqa: E402


@pytest.fixture()
def store(tmp_path):
    return JsonStore(tmp_path / "data")


@pytest.fixture()
def client(tmp_path, store):
    reset_rate_limits()
    settings = Settings(
        app_env="test",
        public_base_url="http://testserver",
        data_dir=tmp_path / "data",
        log_level="INFO",
        password_min_length=8,
    )
    with TestClient(create_app(settings, store)) as test_client:
        yield test_client
    reset_rate_limits()


def test_register_login_flow(client):
    resp = client.post("/api/check-account", json={"email": "a@b.com"})
    assert resp.status_code == 200
    assert resp.json() == {"exists": False}

    resp = client.post("/api/register", json={"email": "a@b.com", "password": "secret123"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["ok"] is True
    assert "password" not in body["user"]

    assert client.post("/api/login-check", json={"email": " A@b.com"}).json() == {"exists": True}
    assert client.post("/api/login", json={"email": "a@b.com", "password": "secret123"}).status_code == 200
    assert client.post("/api/login", json={"email": "a@b.com", "password": "wrong-pass"}).status_code == 401
    assert client.post("/api/register", json={"email": "a@b.com", "password": "secret123"}).status_code == 409


def test_register_validation_errors(client):
    resp = client.post("/api/register", json={"password": "secret123"})
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert client.post("/api/register", json={"phone": "555", "password": "short"}).status_code == 400
    assert client.post("/api/check-account", json={}).status_code == 400


def test_register_check_redirects(client, store):
    resp = client.post("/register-check", data={"email": "new@b.com"}, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/register"
    assert store.find_by_alternate_key("users", email="new@b.com")["status"] == "pending"

    resp = client.post("/register-check", data={"email": "new@b.com"}, follow_redirects=False)
    assert resp.headers["location"] == "/login"

    resp = client.post("/register-check", data={}, follow_redirects=False)
    assert resp.headers["location"] == "/?error=missing_contact"


def test_create_pending_then_register(client):
    resp = client.post("/api/create-pending", json={"phone": "555"})
    assert resp.status_code == 201
    assert resp.json()["user"]["status"] == "pending"
    assert client.post("/api/register", json={"phone": "555", "password": "secret123"}).status_code == 201


def test_change_password(client):
    user = client.post("/api/register", json={"email": "a@b.com", "password": "secret123"}).json()["user"]

    resp = client.post("/api/change-password", json={"userId": user["id"], "newPassword": "newsecret9"})
    assert resp.status_code == 200
    resp = client.post("/api/change-password", json={"email": "a@b.com", "old": "bad", "password": "another99"})
    assert resp.status_code == 401
    resp = client.post("/api/change-password", json={"userId": "user_404", "newPassword": "newsecret9"})
    assert resp.status_code == 404


def test_company_endpoints(client, store):
    store.write_collection("users", [{"id": "user_1", "email": "o@acme.test", "status": "active"}])
    store.write_collection("companies", [
        {"id": "company_1", "ownerId": "user_1", "clients": [{"id": "client_1", "status": "new"}]},
    ])
    store.write_collection("partners", [{"id": "partner_1", "companyId": "company_1", "earned": 10, "invited": 1}])

    data = client.get("/api/company/company_1").json()
    assert data["company"]["id"] == "company_1"
    assert client.get("/api/company/company_1/owner").json()["owner"]["email"] == "o@acme.test"

    resp = client.post("/api/company/company_1/sites", json={"name": "Promo"})
    assert resp.status_code == 201
    site = resp.json()["site"]
    resp = client.post("/api/company/company_1/sites", json={"id": site["id"], "description": "hi"})
    assert resp.status_code == 200
    assert client.post("/api/site/get", json={"siteId": site["id"]}).json()["site"]["description"] == "hi"
    assert client.post("/api/company/company_404/sites", json={"name": "x"}).status_code == 404

    resp = client.post("/api/partner/reset", json={"partnerId": "partner_1"})
    assert resp.status_code == 200
    assert store.find_by_id("partners", "partner_1")["earned"] == 0
    assert client.post("/api/partners/partner_404/reset").status_code == 404
    assert client.post("/api/partner/reset", json={}).status_code == 400

    resp = client.post("/api/company/company_1/clients/client_1/status", json={"status": "done"})
    assert resp.json()["client"]["status"] == "done"
    resp = client.post("/api/client/update-status", json={"companyId": "company_1", "clientId": "client_404"})
    assert resp.status_code == 404

    dashboard = client.post("/api/company-owner-data", json={"email": "o@acme.test"}).json()
    assert [c["id"] for c in dashboard["companies"]] == ["company_1"]
    assert client.post("/api/company-owner-data", json={"email": "ghost@acme.test"}).status_code == 404


def test_missing_company_is_404(client):
    resp = client.get("/api/company")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Company not found"}


def test_storage_failure_is_500(client, store, monkeypatch):
    def broken(name):
        raise StorageError(name, "read failed: permission denied")

    monkeypatch.setattr(store, "read_collection", broken)
    resp = client.post("/api/check-account", json={"email": "a@b.com"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}


def test_security_headers(client):
    resp = client.post("/api/check-account", json={"email": "a@b.com"})
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_site_and_client_not_found_messages(client, store):
    store.write_collection("companies", [{"id": "company_1", "name": "Acme"}])
    before = store.path_for("companies").read_bytes()

    resp = client.post("/api/company/company_404/sites", json={"name": "x"})
    assert resp.json() == {"error": "Company not found"}
    resp = client.post("/api/company/company_1/sites", json={"id": "site_404", "description": "x"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Site not found"}
    resp = client.post("/api/company/company_404/clients/client_1/status", json={"status": "done"})
    assert resp.json() == {"error": "Company not found"}
    resp = client.post("/api/company/company_1/clients/client_1/status", json={"status": "done"})
    assert resp.json() == {"error": "Client not found"}

    assert store.path_for("companies").read_bytes() == before
