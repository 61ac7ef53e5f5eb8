"""Notifications repository layer."""

from sqlalchemy import case, func
from sqlalchemy.orm import Session


def get_notification_counts(db: Session, *, user_id: int):
    from models import Notification

    total, unread = (
        db.query(
            func.count(Notification.id),
            func.sum(case((Notification.is_read.is_(False), 1), else_=0)),
        )
        .filter(Notification.user_id == user_id)
        .one()
    )
    return total or 0, unread or 0


def list_notifications(db: Session, *, user_id: int, unread_only: bool, limit: int, offset: int):
    from models import Notification

    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_notification(db: Session, *, user_id: int, notification_id: int):
    from models import Notification

    return (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )


def mark_all_read(db: Session, *, user_id: int, now) -> int:
    from models import Notification

    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True, Notification.read_at: now}, synchronize_session=False)
    )


def create_notification(db: Session, **fields):
    from models import Notification

    notification = Notification(**fields)
    db.add(notification)
    return notification
