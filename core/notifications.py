"""Notifications facade.

Review workflows in other domains drop a message in the affected user's inbox
through `notify`. The row joins the caller's transaction and is committed (or
rolled back) with it.
"""

from typing import Optional

from sqlalchemy.orm import Session

from config import DEFAULT_CURRENCY


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
    from routers.notifications import service as notifications_service

    return notifications_service.notify(
        db,
        user_id=user_id,
        notification_type=notification_type,
        title=title,
        message=message,
        link=link,
        related_request_type=related_request_type,
        related_request_id=related_request_id,
    )


def format_amount(amount) -> str:
    return f"{DEFAULT_CURRENCY} {float(amount):,.2f}"
