from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config import INVESTMENT_SUBMIT_MAX_PER_MINUTE
from core.db import get_db
from core.rate_limit import enforce_rate_limit
from models import User
from routers.dependencies import get_current_user, require_capability

from .investment_service import (
    list_investment_requests,
    list_user_investments,
    review_investment,
    submit_investment,
)
from .schemas import (
    InvestmentRequestListResponse,
    InvestmentReviewRequest,
    InvestmentReviewResponse,
    InvestRequest,
    InvestResponse,
)

router = APIRouter(prefix="/api", tags=["Investments"])


@router.post("/projects/{project_id}/invest", response_model=InvestResponse, status_code=201)
def submit_investment_endpoint(
    project_id: int,
    payload: InvestRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    enforce_rate_limit(
        key=f"invest:{current_user.account_id}",
        limit=INVESTMENT_SUBMIT_MAX_PER_MINUTE,
        window_seconds=60,
        detail="Too many investment requests. Please slow down.",
    )
    return submit_investment(
        db,
        project_id=project_id,
        investor_id=current_user.account_id,
        amount=payload.amount,
    )


@router.get("/user/investments", response_model=InvestmentRequestListResponse)
def list_user_investments_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_user_investments(db, investor_id=current_user.account_id)


@router.get("/admin/investment-requests", response_model=InvestmentRequestListResponse, tags=["Admin"])
def list_investment_requests_endpoint(
    status: Optional[str] = Query(None, pattern="^(pending|approved|rejected)$"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("investments.view")),
):
    return list_investment_requests(db, status_filter=status, limit=limit, offset=offset)


@router.post(
    "/admin/projects/{project_id}/investments/{investor_id}/review",
    response_model=InvestmentReviewResponse,
    response_model_exclude_none=True,
    tags=["Admin"],
)
def review_investment_endpoint(
    project_id: int,
    investor_id: int,
    payload: InvestmentReviewRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("investments.manage")),
):
    return review_investment(
        db,
        project_id=project_id,
        investor_id=investor_id,
        action=payload.action,
        comment=payload.comment,
        reviewer_id=current_user.account_id,
    )
