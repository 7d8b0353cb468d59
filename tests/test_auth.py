import pytest

from auth import create_access_token, get_password_hash


@pytest.fixture()
def admin_password(monkeypatch):
    monkeypatch.setenv("ADMIN_USERNAME", "admin")
    monkeypatch.setenv("ADMIN_PASSWORD_HASH", get_password_hash("poulet-braise"))
    return "poulet-braise"


class TestLogin:
    def test_login_returns_token(self, client, admin_password):
        response = client.post("/api/admin/login", json={"username": "admin", "password": admin_password})
        assert response.status_code == 200
        token = response.json()["data"]
        assert token["token_type"] == "bearer"

        me = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token['access_token']}"})
        assert me.json()["data"] == {"username": "admin", "is_active": True}

    def test_wrong_password(self, client, admin_password):
        response = client.post("/api/admin/login", json={"username": "admin", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_unknown_user(self, client, admin_password):
        response = client.post("/api/admin/login", json={"username": "root", "password": admin_password})
        assert response.status_code == 401

    def test_no_password_configured(self, client, monkeypatch):
        monkeypatch.delenv("ADMIN_PASSWORD_HASH", raising=False)
        response = client.post("/api/admin/login", json={"username": "admin", "password": "anything"})
        assert response.status_code == 401


class TestProtectedRoutes:
    def test_token_grants_admin_routes(self, client, admin_password):
        token = create_access_token({"sub": "admin"})
        response = client.get("/api/admin/dashboard-stats", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["data"]["total_orders"] == 0

    def test_token_for_other_user(self, client, admin_password):
        token = create_access_token({"sub": "someone-else"})
        response = client.get("/api/admin/orders", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
