"""
Shared helpers for the endpoint tests.
"""
from fastapi.testclient import TestClient

from tests.constants import TEST_ADMIN_EMAIL, TEST_ADMIN_PASSWORD, TEST_TEACHER_PASSWORD


def login(client: TestClient, email: str, password: str) -> dict[str, str]:
    """Logs in through the real endpoint and returns the auth headers."""
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def admin_headers(client: TestClient) -> dict[str, str]:
    return login(client, TEST_ADMIN_EMAIL, TEST_ADMIN_PASSWORD)


def provision_teacher(client: TestClient, headers: dict[str, str], email: str, full_name: str) -> dict:
    payload = {
        "full_name": full_name,
        "username": email.split("@")[0],
        "email": email,
        "password": TEST_TEACHER_PASSWORD,
    }
    response = client.post("/teachers/", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()
