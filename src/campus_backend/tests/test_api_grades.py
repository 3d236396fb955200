"""
Tests for the grades API: role guards and per role scoping.
"""

import pytest

from campus_backend.model.grade import Grade
from campus_backend.model.notification import Notification
from campus_backend.permissions.principal import Principal


@pytest.fixture
def grades(test_db, university):
    records = [
        Grade(student_id=university.chloe.id, course_id=university.algorithms.id, grade=92, exam_type="Final",
              submitted_by=university.alice.id),
        Grade(student_id=university.david.id, course_id=university.algorithms.id, grade=58, exam_type="Final",
              submitted_by=university.alice.id),
        Grade(student_id=university.emma.id, course_id=university.databases.id, grade=75, exam_type="Midterm",
              submitted_by=university.bob.id),
    ]
    test_db.add_all(records)
    test_db.commit()
    return records


@pytest.mark.integration
class TestGradeListing:

    def test_student_only_sees_own_grades(self, client_for, chloe_principal, university, grades):
        response = client_for(chloe_principal).get("/api/grades", params={
            "student_id": university.david.id, "course_id": university.databases.id,
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert [grade["student_id"] for grade in data] == [university.chloe.id]

    def test_teacher_sees_own_courses(self, client_for, alice_principal, university, grades):
        data = client_for(alice_principal).get("/api/grades").json()["data"]

        assert {grade["course_id"] for grade in data} == {university.algorithms.id}
        assert len(data) == 2

    def test_teacher_foreign_course_filter_is_dropped(self, client_for, alice_principal, university, grades):
        data = client_for(alice_principal).get("/api/grades", params={"course_id": university.databases.id}).json()["data"]

        assert {grade["course_id"] for grade in data} == {university.algorithms.id}

    def test_admin_filters(self, client_for, admin_principal, university, grades):
        data = client_for(admin_principal).get("/api/grades", params={"course_id": university.databases.id}).json()["data"]

        assert [grade["student_id"] for grade in data] == [university.emma.id]

    def test_anonymous(self, client_for, grades):
        response = client_for(None).get("/api/grades")

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_student_cannot_read_foreign_grade(self, client_for, chloe_principal, grades):
        response = client_for(chloe_principal).get(f"/api/grades/{grades[1].id}")

        assert response.status_code == 404


@pytest.mark.integration
class TestGradeChanges:

    def test_student_cannot_create(self, client_for, chloe_principal, university):
        response = client_for(chloe_principal).post("/api/grades", json={
            "student_id": university.chloe.id, "course_id": university.algorithms.id,
            "grade": 100, "exam_type": "Final",
        })

        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "admin or teacher access required"}

    def test_teacher_creates_grade_and_student_is_notified(self, client_for, alice_principal, university, test_db):
        response = client_for(alice_principal).post("/api/grades", json={
            "student_id": university.chloe.id, "course_id": university.algorithms.id,
            "grade": 81.5, "exam_type": "Quiz",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["submitted_by"] == university.alice.id

        notification = test_db.query(Notification).filter(Notification.recipient_id == university.chloe.id).one()
        assert notification.type == "grade"
        assert notification.meta["grade_id"] == body["data"]["id"]

    def test_teacher_cannot_grade_foreign_course(self, client_for, alice_principal, university):
        response = client_for(alice_principal).post("/api/grades", json={
            "student_id": university.emma.id, "course_id": university.databases.id,
            "grade": 50, "exam_type": "Quiz",
        })

        assert response.status_code == 403

    def test_out_of_range_grade(self, client_for, admin_principal, university):
        response = client_for(admin_principal).post("/api/grades", json={
            "student_id": university.chloe.id, "course_id": university.algorithms.id,
            "grade": 120, "exam_type": "Quiz",
        })

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_duplicate_exam_type_rejected(self, client_for, admin_principal, university, grades):
        response = client_for(admin_principal).post("/api/grades", json={
            "student_id": university.chloe.id, "course_id": university.algorithms.id,
            "grade": 70, "exam_type": "Final",
        })

        assert response.status_code == 400

    def test_teacher_updates_own_submission(self, client_for, alice_principal, grades):
        response = client_for(alice_principal).put(f"/api/grades/{grades[0].id}", json={"grade": 95})

        assert response.status_code == 200
        assert response.json()["data"]["grade"] == 95

    def test_teacher_cannot_touch_foreign_submission(self, client_for, bob_principal, test_db, university, grades):
        # Algorithms is taught by Alice, the grade is outside Bob's scope
        response = client_for(bob_principal).delete(f"/api/grades/{grades[0].id}")

        assert response.status_code == 404
        assert test_db.query(Grade).count() == 3

    def test_teacher_without_related_record(self, client_for, grades):
        response = client_for(Principal(user_id="ghost", role="teacher")).get("/api/grades")

        assert response.status_code == 404
        assert response.json()["error"] == "Teacher ID not found"
