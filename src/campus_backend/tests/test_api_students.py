"""
Tests for the students and departments APIs.
"""

import pytest


@pytest.mark.integration
class TestStudentsAPI:

    def test_admin_lists_with_total(self, client_for, admin_principal, university):
        response = client_for(admin_principal).get("/api/students", params={"limit": 2})

        assert response.status_code == 200
        assert response.headers["X-Total-Count"] == "3"
        assert [student["matricule"] for student in response.json()["data"]] == ["S001", "S002"]

    def test_search_by_matricule(self, client_for, admin_principal, university):
        data = client_for(admin_principal).get("/api/students", params={"search": "s003"}).json()["data"]

        assert [student["name"] for student in data] == ["Emma Roux"]

    def test_teacher_sees_enrolled_students_only(self, client_for, bob_principal, university):
        response = client_for(bob_principal).get("/api/students")

        assert response.headers["X-Total-Count"] == "1"
        assert response.json()["data"][0]["id"] == university.emma.id

    def test_student_cannot_list(self, client_for, chloe_principal, university):
        assert client_for(chloe_principal).get("/api/students").status_code == 403

    def test_student_reads_own_record(self, client_for, chloe_principal, university):
        response = client_for(chloe_principal).get(f"/api/students/{university.chloe.id}")

        assert response.status_code == 200
        assert response.json()["data"]["enrolled_course_ids"] == [university.algorithms.id]

    def test_student_cannot_read_classmate(self, client_for, chloe_principal, university):
        assert client_for(chloe_principal).get(f"/api/students/{university.david.id}").status_code == 404

    def test_create_normalizes_fields(self, client_for, admin_principal, university):
        response = client_for(admin_principal).post("/api/students", json={
            "name": "Farid Benali", "matricule": " s004 ", "email": "Farid@Campus.edu",
            "department_id": university.department.id, "group_id": university.group.id,
            "enrolled_course_ids": [university.algorithms.id],
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["matricule"] == "S004"
        assert data["email"] == "farid@campus.edu"
        assert data["enrolled_course_ids"] == [university.algorithms.id]

    def test_create_with_unknown_course(self, client_for, admin_principal, university):
        response = client_for(admin_principal).post("/api/students", json={
            "name": "Farid Benali", "matricule": "S004", "email": "farid@campus.edu",
            "department_id": university.department.id, "enrolled_course_ids": ["missing"],
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Unknown course ids: missing"

    def test_duplicate_matricule(self, client_for, admin_principal, university):
        response = client_for(admin_principal).post("/api/students", json={
            "name": "Copy", "matricule": "S001", "email": "copy@campus.edu",
            "department_id": university.department.id,
        })

        assert response.status_code == 400

    def test_invalid_year(self, client_for, admin_principal, university):
        response = client_for(admin_principal).put(f"/api/students/{university.chloe.id}", json={"current_year": 9})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_update_enrollment(self, client_for, admin_principal, university):
        response = client_for(admin_principal).put(f"/api/students/{university.emma.id}", json={
            "enrolled_course_ids": [university.algorithms.id, university.databases.id],
        })

        assert response.status_code == 200
        assert set(response.json()["data"]["enrolled_course_ids"]) == {university.algorithms.id, university.databases.id}

    def test_teacher_cannot_delete(self, client_for, alice_principal, university):
        assert client_for(alice_principal).delete(f"/api/students/{university.chloe.id}").status_code == 403

    def test_admin_deletes(self, client_for, admin_principal, university):
        client = client_for(admin_principal)

        assert client.delete(f"/api/students/{university.emma.id}").json()["message"] == "Student deleted"
        assert client.get(f"/api/students/{university.emma.id}").status_code == 404


@pytest.mark.integration
class TestDepartmentsAPI:

    def test_teacher_lists_departments(self, client_for, alice_principal, university):
        response = client_for(alice_principal).get("/api/departments")

        assert response.status_code == 200
        assert [department["code"] for department in response.json()["data"]] == ["CS"]

    def test_student_may_open_one(self, client_for, chloe_principal, university):
        response = client_for(chloe_principal).get(f"/api/departments/{university.department.id}")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Computer Science"

    def test_create_uppercases_code(self, client_for, admin_principal):
        response = client_for(admin_principal).post("/api/departments", json={"name": "Mathematics", "code": "math"})

        assert response.status_code == 201
        assert response.json()["data"]["code"] == "MATH"

    def test_unknown_department(self, client_for, admin_principal):
        response = client_for(admin_principal).put("/api/departments/missing", json={"name": "Physics"})

        assert response.status_code == 404
