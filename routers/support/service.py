"""Support service layer."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status

from . import repository as support_repository

logger = logging.getLogger(__name__)


def list_my_tickets(db, *, user_id: int):
    return {"tickets": support_repository.list_tickets(db, user_id=user_id)}


def list_all_tickets(db, *, status_filter: Optional[str], limit: int, offset: int):
    return {
        "tickets": support_repository.list_tickets(db, status=status_filter, limit=limit, offset=offset)
    }


def create_ticket(db, *, user_id: int, category: str, subject: str, message: str):
    ticket = support_repository.create_ticket(
        db, user_id=user_id, category=category, subject=subject.strip(), message=message.strip()
    )
    db.commit()
    db.refresh(ticket)
    logger.info("TICKET_CREATED | ticket=%s | user=%s | category=%s", ticket.id, user_id, category)
    return ticket


def update_ticket(db, *, ticket_id: int, new_status: Optional[str], admin_reply: Optional[str], actor_id: int):
    ticket = support_repository.get_ticket(db, ticket_id=ticket_id)
    if not ticket:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticket not found")
    if new_status is None and admin_reply is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")

    if admin_reply is not None:
        ticket.admin_reply = admin_reply
        ticket.replied_by = actor_id
        ticket.replied_at = datetime.utcnow()
        # a reply picks the ticket up unless the caller sets a status explicitly
        if new_status is None and ticket.status == "open":
            ticket.status = "in_progress"
    if new_status is not None:
        ticket.status = new_status

    db.commit()
    db.refresh(ticket)
    return ticket
