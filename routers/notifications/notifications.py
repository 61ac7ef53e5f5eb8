from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .schemas import NotificationListResponse, NotificationResponse
from .service import delete_notification as service_delete_notification
from .service import list_notifications as service_list_notifications
from .service import mark_all_read as service_mark_all_read
from .service import mark_read as service_mark_read
from .service import unread_count as service_unread_count

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Newest first, with the total and unread counts for the badge."""
    return service_list_notifications(
        db, user_id=current_user.account_id, unread_only=unread_only, limit=limit, offset=offset
    )


@router.get("/unread-count")
def unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_unread_count(db, user_id=current_user.account_id)


@router.patch("/read-all")
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_mark_all_read(db, user_id=current_user.account_id)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_mark_read(db, user_id=current_user.account_id, notification_id=notification_id)


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_delete_notification(db, user_id=current_user.account_id, notification_id=notification_id)
