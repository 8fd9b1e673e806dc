"""
Tests for the circle, student, recitation and attendance endpoints.
"""
import datetime
import pytest
from uuid import uuid4
from fastapi.testclient import TestClient

from tests.api.helpers import admin_headers, login, provision_teacher
from tests.constants import TEST_TEACHER_PASSWORD, PLACEHOLDER

TODAY = datetime.date.today()


@pytest.fixture(scope="function")
def roster(client: TestClient) -> dict:
    """One teacher with one circle and one student, created through the API."""
    admin = admin_headers(client)
    teacher = provision_teacher(client, admin, "ahmad@example.com", "Ustadz Ahmad")
    teacher_headers = login(client, "ahmad@example.com", TEST_TEACHER_PASSWORD)

    circle = client.post(
        "/circles/",
        json={"name": "Halaqoh Umar bin Khattab", "teacher_id": teacher["id"], "level": "Pemula"},
        headers=admin
    ).json()
    student = client.post(
        "/students/",
        json={"name": "Muhammad Rizki", "student_number": "S001", "circle_id": circle["id"]},
        headers=admin
    ).json()
    return {
        "admin": admin,
        "teacher": teacher,
        "teacher_headers": teacher_headers,
        "circle": circle,
        "student": student,
    }


class TestCirclesAPI:

    def test_list_circles(self, client: TestClient, roster: dict):
        response = client.get("/circles/", headers=roster["teacher_headers"])

        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["teacher_display_name"] == "Ustadz Ahmad"
        assert rows[0]["student_count"] == 1

    def test_teacher_cannot_create_circle(self, client: TestClient, roster: dict):
        response = client.post("/circles/", json={"name": "Halaqoh X"}, headers=roster["teacher_headers"])

        assert response.status_code == 403

    def test_assign_unknown_teacher(self, client: TestClient, roster: dict):
        response = client.patch(
            f"/circles/{roster['circle']['id']}", json={"teacher_id": str(uuid4())}, headers=roster["admin"]
        )

        assert response.status_code == 404

    def test_delete_circle_unassigns_students(self, client: TestClient, roster: dict):
        response = client.delete(f"/circles/{roster['circle']['id']}", headers=roster["admin"])
        assert response.status_code == 204

        student = client.get(f"/students/{roster['student']['id']}", headers=roster["admin"]).json()
        assert student["circle_id"] is None
        assert client.get(f"/circles/{roster['circle']['id']}", headers=roster["admin"]).status_code == 404


class TestStudentsAPI:

    def test_list_active_students(self, client: TestClient, roster: dict):
        client.post("/students/", json={"name": "Zahra", "status": "Inactive"}, headers=roster["admin"])

        every = client.get("/students/", headers=roster["teacher_headers"]).json()
        active = client.get("/students/", params={"status": "Active"}, headers=roster["teacher_headers"]).json()

        assert len(every) == 2
        assert [s["name"] for s in active] == ["Muhammad Rizki"]

    def test_student_summary(self, client: TestClient, roster: dict):
        client.post(
            "/recitations/",
            json={"student_id": roster["student"]["id"], "recited_on": TODAY.isoformat(),
                  "juz": 30, "verse_from": 1, "verse_to": 10, "fluency_score": 70},
            headers=roster["teacher_headers"]
        )

        response = client.get(f"/students/{roster['student']['id']}/summary", headers=roster["admin"])

        assert response.status_code == 200
        summary = response.json()
        assert summary["recitation_count"] == 1
        assert summary["average_fluency_score"] == 70
        assert summary["recitations_by_status"]["Fluent"] == 1

    def test_invalid_status_rejected(self, client: TestClient, roster: dict):
        response = client.post("/students/", json={"name": "X", "status": "Graduated"}, headers=roster["admin"])

        assert response.status_code == 422


class TestRecitationsAPI:

    def test_record_and_list_recitation(self, client: TestClient, roster: dict):
        response = client.post(
            "/recitations/",
            json={"student_id": roster["student"]["id"], "recited_on": TODAY.isoformat(),
                  "juz": 30, "verse_from": 1, "verse_to": 40, "status": "Fluent"},
            headers=roster["teacher_headers"]
        )
        assert response.status_code == 201
        assert response.json()["evaluator_id"] == roster["teacher"]["id"]

        rows = client.get("/recitations/", headers=roster["admin"]).json()

        assert len(rows) == 1
        assert rows[0]["student_name"] == "Muhammad Rizki"
        assert rows[0]["student_number"] == "S001"
        assert rows[0]["evaluator_name"] == "Ustadz Ahmad"

    def test_reversed_verse_range_rejected(self, client: TestClient, roster: dict):
        response = client.post(
            "/recitations/",
            json={"student_id": roster["student"]["id"], "recited_on": TODAY.isoformat(),
                  "juz": 30, "verse_from": 10, "verse_to": 1},
            headers=roster["teacher_headers"]
        )

        assert response.status_code == 422

    def test_correction_with_null_verse_rejected(self, client: TestClient, roster: dict):
        recitation = client.post(
            "/recitations/",
            json={"student_id": roster["student"]["id"], "recited_on": TODAY.isoformat(),
                  "juz": 30, "verse_from": 1, "verse_to": 40},
            headers=roster["teacher_headers"]
        ).json()

        response = client.patch(
            f"/recitations/{recitation['id']}", json={"verse_from": None}, headers=roster["teacher_headers"]
        )

        assert response.status_code == 422

    def test_admin_without_profile_cannot_evaluate(self, client: TestClient, roster: dict):
        response = client.post(
            "/recitations/",
            json={"student_id": roster["student"]["id"], "recited_on": TODAY.isoformat(),
                  "juz": 30, "verse_from": 1, "verse_to": 5},
            headers=roster["admin"]
        )

        assert response.status_code == 403

    def test_filter_by_student_and_missing_number(self, client: TestClient, roster: dict):
        client.post(
            "/recitations/",
            json={"student_id": roster["student"]["id"], "recited_on": TODAY.isoformat(),
                  "juz": 30, "verse_from": 1, "verse_to": 5},
            headers=roster["teacher_headers"]
        )
        other = client.post("/students/", json={"name": "Ali"}, headers=roster["admin"]).json()
        client.post(
            "/recitations/",
            json={"student_id": other["id"], "recited_on": TODAY.isoformat(),
                  "juz": 1, "verse_from": 1, "verse_to": 7},
            headers=roster["teacher_headers"]
        )

        rows = client.get("/recitations/", params={"student_id": other["id"]}, headers=roster["admin"]).json()

        assert len(rows) == 1
        assert rows[0]["student_name"] == "Ali"
        assert rows[0]["student_number"] == PLACEHOLDER


class TestAttendanceAPI:

    def test_record_update_delete_attendance(self, client: TestClient, roster: dict):
        response = client.post(
            "/attendance/",
            json={"student_id": roster["student"]["id"], "attended_on": TODAY.isoformat(), "status": "Sick"},
            headers=roster["teacher_headers"]
        )
        assert response.status_code == 201
        attendance_id = response.json()["id"]

        response = client.patch(
            f"/attendance/{attendance_id}", json={"status": "Present"}, headers=roster["teacher_headers"]
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Present"

        rows = client.get("/attendance/", headers=roster["admin"]).json()
        assert rows[0]["student_name"] == "Muhammad Rizki"

        response = client.delete(f"/attendance/{attendance_id}", headers=roster["teacher_headers"])
        assert response.status_code == 204
        assert client.get("/attendance/", headers=roster["admin"]).json() == []

    def test_null_required_fields_rejected(self, client: TestClient, roster: dict):
        attendance_id = client.post(
            "/attendance/",
            json={"student_id": roster["student"]["id"], "attended_on": TODAY.isoformat()},
            headers=roster["teacher_headers"]
        ).json()["id"]

        response = client.patch(
            f"/attendance/{attendance_id}", json={"status": None}, headers=roster["teacher_headers"]
        )
        assert response.status_code == 422

        response = client.patch(
            f"/students/{roster['student']['id']}", json={"name": None}, headers=roster["admin"]
        )
        assert response.status_code == 422

        response = client.patch(
            f"/circles/{roster['circle']['id']}", json={"name": None, "teacher_id": None}, headers=roster["admin"]
        )
        assert response.status_code == 422

    def test_attendance_unknown_student(self, client: TestClient, roster: dict):
        response = client.post(
            "/attendance/",
            json={"student_id": str(uuid4()), "attended_on": TODAY.isoformat()},
            headers=roster["teacher_headers"]
        )

        assert response.status_code == 404
