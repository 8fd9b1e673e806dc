"""
Tests for the Authentication API endpoints.
"""
from fastapi.testclient import TestClient

from tests.api.helpers import admin_headers, login, provision_teacher
from tests.constants import TEST_ADMIN_EMAIL, TEST_TEACHER_PASSWORD


class TestHealthCheck:

    def test_health_check(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestLogin:

    def test_bootstrap_admin_can_login(self, client: TestClient):
        headers = admin_headers(client)

        response = client.get("/auth/me", headers=headers)

        assert response.status_code == 200
        me = response.json()
        assert me["email"] == TEST_ADMIN_EMAIL
        assert me["roles"] == ["Admin"]

    def test_login_wrong_password(self, client: TestClient):
        response = client.post("/auth/login", data={"username": TEST_ADMIN_EMAIL, "password": "wrong-password"})

        assert response.status_code == 401

    def test_login_unknown_user(self, client: TestClient):
        response = client.post("/auth/login", data={"username": "nobody@example.com", "password": "whatever"})

        assert response.status_code == 401

    def test_me_requires_token(self, client: TestClient):
        response = client.get("/auth/me")

        assert response.status_code == 401

    def test_me_rejects_garbage_token(self, client: TestClient):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    def test_provisioned_teacher_can_login(self, client: TestClient):
        teacher = provision_teacher(client, admin_headers(client), "ahmad@example.com", "Ustadz Ahmad")

        headers = login(client, "ahmad@example.com", TEST_TEACHER_PASSWORD)
        me = client.get("/auth/me", headers=headers).json()

        assert me["id"] == teacher["id"]
        assert me["roles"] == ["Asatidz"]

    def test_deactivated_teacher_is_locked_out(self, client: TestClient):
        admin = admin_headers(client)
        teacher = provision_teacher(client, admin, "ahmad@example.com", "Ustadz Ahmad")
        teacher_headers = login(client, "ahmad@example.com", TEST_TEACHER_PASSWORD)

        assert client.delete(f"/teachers/{teacher['id']}", headers=admin).status_code == 204

        # an existing token stops working
        assert client.get("/auth/me", headers=teacher_headers).status_code == 401
        # and a new login is refused
        response = client.post(
            "/auth/login", data={"username": "ahmad@example.com", "password": TEST_TEACHER_PASSWORD}
        )
        assert response.status_code == 400
