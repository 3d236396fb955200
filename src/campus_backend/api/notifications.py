import logging
import math
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campus_backend.api.crud import commit_new, commit_or_400, get_or_404
from campus_backend.api.responses import ok
from campus_backend.database import get_db
from campus_backend.interface.notifications import (
    NotificationCreate,
    NotificationGet,
    NotificationPage,
    NotificationPreferencesGet,
    NotificationPreferencesUpdate,
    Pagination,
)
from campus_backend.model.notification import Notification, NotificationPreferences
from campus_backend.permissions.guards import Authorized, RequireAdminOrTeacher, RequireAuth
from campus_backend.permissions.scoping import NotificationScope
from campus_backend.services.notifications import NotificationService, default_preferences, preferences_for

notification_router = APIRouter()
logger = logging.getLogger(__name__)


def mark_all_read(auth: Authorized, db: Session) -> int:
    """Mark the caller's unread notifications as read and return how many changed."""
    updated = (
        NotificationScope.query(auth, db)
        .filter(Notification.is_read == False)
        .update({Notification.is_read: True, Notification.read_at: datetime.now(timezone.utc)}, synchronize_session=False)
    )
    commit_or_400(db, Notification, "update")
    return updated


def preference_key(auth: Authorized) -> str:
    return auth.principal.related_id or auth.principal.user_id


@notification_router.get("")
def list_notifications(auth: RequireAuth,
                       unread: bool = False,
                       limit: int = Query(20, ge=1, le=100),
                       page: int = Query(1, ge=1),
                       db: Session = Depends(get_db)):

    query = NotificationScope.query(auth, db)
    unread_count = query.filter(Notification.is_read == False).count()

    if unread:
        query = query.filter(Notification.is_read == False)

    total = query.count()
    notifications = (
        query.order_by(Notification.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return ok(NotificationPage(
        notifications=[NotificationGet.model_validate(notification, from_attributes=True) for notification in notifications],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
        unread_count=unread_count,
    ))


@notification_router.post("", status_code=201)
def create_notification(notification: NotificationCreate, auth: RequireAdminOrTeacher, db: Session = Depends(get_db)):

    values = notification.model_dump(exclude={"broadcast", "recipients", "group_id", "department_id", "recipient_id", "meta"})
    values["meta"] = notification.meta.model_dump(exclude_none=True) if notification.meta is not None else None

    if not notification.broadcast:
        db_notification = commit_new(db, Notification(recipient_id=notification.recipient_id, **values))
        return ok(NotificationGet.model_validate(db_notification, from_attributes=True))

    sent = 0
    if notification.recipients:
        for recipient_id in dict.fromkeys(notification.recipients):
            db.add(Notification(recipient_id=recipient_id, **values))
            sent += 1
        commit_or_400(db, Notification, "create")

    service = NotificationService(db)
    if notification.group_id is not None:
        sent += service.notify_group_students(notification.group_id, notification.title, notification.message, notification.type, notification.link)
    if notification.department_id is not None:
        sent += service.notify_department_teachers(notification.department_id, notification.title, notification.message, notification.type, notification.link)

    logger.info(f"Broadcast of {sent} notifications by {auth.principal.user_id}")

    return ok({"sent": sent}, message=f"{sent} notifications sent")


@notification_router.put("/read-all")
def read_all(auth: RequireAuth, db: Session = Depends(get_db)):

    updated = mark_all_read(auth, db)

    return ok({"updated": updated}, message=f"{updated} notifications marked as read")


@notification_router.get("/preferences")
def get_preferences(auth: RequireAuth, db: Session = Depends(get_db)):

    key = preference_key(auth)
    preferences = preferences_for(db, key)

    if preferences is None:
        preferences = commit_new(db, default_preferences(key, auth.role.value))

    return ok(NotificationPreferencesGet.model_validate(preferences, from_attributes=True))


@notification_router.put("/preferences")
def update_preferences(update: NotificationPreferencesUpdate, auth: RequireAuth, db: Session = Depends(get_db)):

    key = preference_key(auth)
    preferences = preferences_for(db, key)

    if preferences is None:
        preferences = default_preferences(key, auth.role.value)
        db.add(preferences)

    if update.channels is not None:
        channels = dict(preferences.channels or {})
        channels.update({kind: pref.model_dump() for kind, pref in update.channels.items()})
        preferences.channels = channels
    if update.quiet_hours is not None:
        preferences.quiet_hours = update.quiet_hours.model_dump()
    if update.daily_digest is not None:
        preferences.daily_digest = update.daily_digest.model_dump()
    if update.language is not None:
        preferences.language = update.language

    commit_or_400(db, NotificationPreferences, "update")
    db.refresh(preferences)

    return ok(NotificationPreferencesGet.model_validate(preferences, from_attributes=True), message="Preferences saved")


@notification_router.put("/{notification_id}/read")
def read_notification(notification_id: str, auth: RequireAuth, db: Session = Depends(get_db)):

    notification = get_or_404(NotificationScope.query(auth, db), Notification, notification_id)

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        commit_or_400(db, Notification, "update")
        db.refresh(notification)

    return ok(NotificationGet.model_validate(notification, from_attributes=True))
