"""Notifications service layer."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from . import repository as notifications_repository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal API used through core.notifications
# ---------------------------------------------------------------------------


def notify(
    db: Session,
    *,
    user_id: int,
    notification_type: str,
    title: str,
    message: str,
    link: Optional[str] = None,
    related_request_type: Optional[str] = None,
    related_request_id=None,
):
    """Queue a notification in the caller's transaction. No commit."""
    notification = notifications_repository.create_notification(
        db,
        user_id=user_id,
        notification_type=notification_type,
        title=title,
        message=message,
        link=link,
        related_request_type=related_request_type,
        related_request_id=str(related_request_id) if related_request_id is not None else None,
    )
    logger.debug("NOTIFICATION_QUEUED | user=%s | type=%s", user_id, notification_type)
    return notification


# ---------------------------------------------------------------------------
# Inbox
# ---------------------------------------------------------------------------


def list_notifications(db: Session, *, user_id: int, unread_only: bool, limit: int, offset: int):
    total, unread = notifications_repository.get_notification_counts(db, user_id=user_id)
    notifications = notifications_repository.list_notifications(
        db, user_id=user_id, unread_only=unread_only, limit=limit, offset=offset
    )
    return {"notifications": notifications, "total": total, "unread_count": unread}


def unread_count(db: Session, *, user_id: int):
    _, unread = notifications_repository.get_notification_counts(db, user_id=user_id)
    return {"unread_count": unread}


def _get_or_404(db: Session, *, user_id: int, notification_id: int):
    notification = notifications_repository.get_notification(
        db, user_id=user_id, notification_id=notification_id
    )
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification


def mark_read(db: Session, *, user_id: int, notification_id: int):
    notification = _get_or_404(db, user_id=user_id, notification_id=notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, *, user_id: int):
    updated = notifications_repository.mark_all_read(db, user_id=user_id, now=datetime.utcnow())
    db.commit()
    return {"success": True, "marked_count": updated}


def delete_notification(db: Session, *, user_id: int, notification_id: int):
    notification = _get_or_404(db, user_id=user_id, notification_id=notification_id)
    db.delete(notification)
    db.commit()
    return {"success": True, "notification_id": notification_id}
