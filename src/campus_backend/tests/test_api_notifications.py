"""
Tests for the notifications API.
"""

import pytest

from campus_backend.model.notification import Notification, NotificationPreferences


@pytest.fixture
def inbox(test_db, university):
    notifications = [
        Notification(recipient_id=university.chloe.id, recipient_type="student", title=f"Note {i}",
                     message="Hello", type="announcement")
        for i in range(3)
    ]
    notifications.append(Notification(recipient_id=university.david.id, recipient_type="student",
                                      title="Not yours", message="Hello", type="announcement"))
    test_db.add_all(notifications)
    test_db.commit()
    return notifications


@pytest.mark.integration
class TestNotificationInbox:

    def test_list_is_scoped_and_paginated(self, client_for, chloe_principal, inbox):
        body = client_for(chloe_principal).get("/api/notifications", params={"limit": 2}).json()["data"]

        assert len(body["notifications"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}
        assert body["unread_count"] == 3
        assert all(n["recipient_id"] != inbox[3].recipient_id for n in body["notifications"])

    def test_mark_one_read(self, client_for, chloe_principal, inbox):
        client = client_for(chloe_principal)

        response = client.put(f"/api/notifications/{inbox[0].id}/read")

        assert response.status_code == 200
        assert response.json()["data"]["is_read"] is True
        assert response.json()["data"]["read_at"] is not None

        unread = client.get("/api/notifications", params={"unread": True}).json()["data"]
        assert unread["pagination"]["total"] == 2

    def test_cannot_read_foreign_notification(self, client_for, chloe_principal, inbox):
        response = client_for(chloe_principal).put(f"/api/notifications/{inbox[3].id}/read")

        assert response.status_code == 404

    def test_mark_all_read_touches_only_own(self, client_for, chloe_principal, inbox, test_db, university):
        response = client_for(chloe_principal).put("/api/notifications/read-all")

        assert response.status_code == 200
        assert response.json()["message"] == "3 notifications marked as read"

        test_db.expire_all()
        other = test_db.query(Notification).filter(Notification.recipient_id == university.david.id).one()
        assert other.is_read is False

    def test_admin_without_related_record(self, client_for, admin_principal, inbox):
        response = client_for(admin_principal).get("/api/notifications")

        assert response.status_code == 404
        assert response.json()["error"] == "Admin ID not found"


@pytest.mark.integration
class TestSendingNotifications:

    def test_student_cannot_send(self, client_for, chloe_principal, university):
        response = client_for(chloe_principal).post("/api/notifications", json={
            "recipient_id": university.david.id, "recipient_type": "student",
            "title": "Hi", "message": "Hello", "type": "announcement",
        })

        assert response.status_code == 403

    def test_single_notification(self, client_for, alice_principal, university):
        response = client_for(alice_principal).post("/api/notifications", json={
            "recipient_id": university.chloe.id, "recipient_type": "student",
            "title": "Homework", "message": "Chapter 3 for Monday", "type": "reminder", "priority": "low",
        })

        assert response.status_code == 201
        assert response.json()["data"]["priority"] == "low"

    def test_broadcast_to_group(self, client_for, admin_principal, university, test_db):
        response = client_for(admin_principal).post("/api/notifications", json={
            "recipient_type": "student", "title": "Room change", "message": "Moved to B12",
            "type": "announcement", "broadcast": True, "group_id": university.group.id,
        })

        assert response.status_code == 201
        assert response.json()["message"] == "2 notifications sent"
        assert test_db.query(Notification).count() == 2

    def test_broadcast_needs_targets(self, client_for, admin_principal, university):
        response = client_for(admin_principal).post("/api/notifications", json={
            "recipient_type": "student", "title": "Empty", "message": "Nobody", "type": "announcement",
            "broadcast": True,
        })

        assert response.status_code == 400


@pytest.mark.integration
class TestPreferences:

    def test_defaults_created_lazily(self, client_for, chloe_principal, university, test_db):
        response = client_for(chloe_principal).get("/api/notifications/preferences")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user_key"] == university.chloe.id
        assert data["language"] == "fr"
        assert data["channels"]["attendance"]["email"] is False
        assert data["quiet_hours"] == {"enabled": False, "start": "22:00", "end": "07:00"}
        assert test_db.query(NotificationPreferences).count() == 1

    def test_update_merges_channels(self, client_for, chloe_principal, university):
        client = client_for(chloe_principal)

        response = client.put("/api/notifications/preferences", json={
            "channels": {"grade": {"enabled": False, "email": False, "push": False}},
            "language": "en",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["channels"]["grade"]["enabled"] is False
        assert data["channels"]["schedule"]["enabled"] is True
        assert data["language"] == "en"

    def test_invalid_quiet_hours(self, client_for, chloe_principal, university):
        response = client_for(chloe_principal).put("/api/notifications/preferences", json={
            "quiet_hours": {"enabled": True, "start": "25:00", "end": "07:00"},
        })

        assert response.status_code == 400
