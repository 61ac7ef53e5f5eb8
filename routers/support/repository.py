"""Support repository layer."""

from typing import Optional

from sqlalchemy.orm import Session


def list_tickets(db: Session, *, user_id: Optional[int] = None, status: Optional[str] = None, limit: int = 100, offset: int = 0):
    from models import SupportTicket

    query = db.query(SupportTicket)
    if user_id is not None:
        query = query.filter(SupportTicket.user_id == user_id)
    if status:
        query = query.filter(SupportTicket.status == status)
    return (
        query.order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_ticket(db: Session, *, ticket_id: int):
    from models import SupportTicket

    return db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()


def create_ticket(db: Session, *, user_id: int, category: str, subject: str, message: str):
    from models import SupportTicket

    ticket = SupportTicket(user_id=user_id, category=category, subject=subject, message=message)
    db.add(ticket)
    return ticket
