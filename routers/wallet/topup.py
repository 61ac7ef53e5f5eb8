from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config import TOPUP_REQUEST_MAX_PER_HOUR
from core.db import get_db
from core.rate_limit import enforce_rate_limit
from models import User
from routers.dependencies import get_current_user, require_capability

from .schemas import (
    TopupCreateRequest,
    TopupCreateResponse,
    TopupRequestListResponse,
    TopupReviewRequest,
    TopupReviewResponse,
)
from .service import (
    create_topup_request,
    list_my_topup_requests,
    list_platform_accounts,
    list_topup_requests,
    review_topup_request,
)

router = APIRouter(prefix="/api")


@router.get("/topup/accounts", tags=["Top-up"])
def list_platform_accounts_endpoint(current_user: User = Depends(get_current_user)):
    return list_platform_accounts()


@router.post("/topup/request", response_model=TopupCreateResponse, status_code=201, tags=["Top-up"])
def create_topup_request_endpoint(
    payload: TopupCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    enforce_rate_limit(
        key=f"topup:{current_user.account_id}",
        limit=TOPUP_REQUEST_MAX_PER_HOUR,
        window_seconds=3600,
        detail="Too many top-up requests. Please try again later.",
    )
    return create_topup_request(db, user_id=current_user.account_id, fields=payload.model_dump())


@router.get("/topup/my-requests", response_model=TopupRequestListResponse, tags=["Top-up"])
def list_my_topup_requests_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_my_topup_requests(db, user_id=current_user.account_id)


@router.get("/admin/topup-requests", tags=["Admin"])
def list_topup_requests_endpoint(
    status: Optional[str] = Query(None, pattern="^(pending|approved|rejected)$"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("topup.view")),
):
    return list_topup_requests(db, status_filter=status, limit=limit, offset=offset)


@router.post("/admin/topup-requests/{request_id}/review", response_model=TopupReviewResponse, tags=["Admin"])
def review_topup_request_endpoint(
    request_id: int,
    payload: TopupReviewRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("topup.approve")),
):
    return review_topup_request(
        db,
        request_id=request_id,
        action=payload.action,
        admin_notes=payload.admin_notes,
        reviewer_id=current_user.account_id,
    )
