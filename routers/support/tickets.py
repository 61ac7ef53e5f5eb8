from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config import TICKET_MAX_PER_HOUR
from core.db import get_db
from core.rate_limit import enforce_rate_limit
from models import User
from routers.dependencies import get_current_user, require_capability

from .schemas import TicketCreateRequest, TicketListResponse, TicketResponse, TicketUpdateRequest
from .service import create_ticket as service_create_ticket
from .service import list_all_tickets as service_list_all_tickets
from .service import list_my_tickets as service_list_my_tickets
from .service import update_ticket as service_update_ticket

router = APIRouter(prefix="/api")


@router.post("/tickets", response_model=TicketResponse, status_code=201, tags=["Support"])
def create_ticket(
    payload: TicketCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    enforce_rate_limit(
        key=f"tickets:{current_user.account_id}",
        limit=TICKET_MAX_PER_HOUR,
        window_seconds=3600,
        detail="Too many support tickets. Please try again later.",
    )
    return service_create_ticket(
        db,
        user_id=current_user.account_id,
        category=payload.category,
        subject=payload.subject,
        message=payload.message,
    )


@router.get("/tickets/my", response_model=TicketListResponse, tags=["Support"])
def list_my_tickets(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return service_list_my_tickets(db, user_id=current_user.account_id)


@router.get("/admin/tickets", response_model=TicketListResponse, tags=["Admin"])
def list_all_tickets(
    status: Optional[str] = Query(None, pattern="^(open|in_progress|resolved|closed)$"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("settings.view")),
):
    return service_list_all_tickets(db, status_filter=status, limit=limit, offset=offset)


@router.patch("/admin/tickets/{ticket_id}", response_model=TicketResponse, tags=["Admin"])
def update_ticket(
    ticket_id: int,
    payload: TicketUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("settings.edit")),
):
    return service_update_ticket(
        db,
        ticket_id=ticket_id,
        new_status=payload.status,
        admin_reply=payload.admin_reply,
        actor_id=current_user.account_id,
    )
