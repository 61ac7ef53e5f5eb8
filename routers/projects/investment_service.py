"""
Investment request workflow.

An investor files one request per project. It starts ``pending`` and is
resolved exactly once by a back-office reviewer. Money moves only on approval,
inside the same transaction that marks the request approved and records the
funding.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from core import notifications as notifications_facade
from core import users as users_facade
from core import wallet as wallet_facade
from core.wallet import InsufficientBalance, WalletNotFound
from models import InvestmentStatus

from . import repository as projects_repository
from .eligibility import compute_limit, limit_exceeded_detail, resolve_investor_financials
from .service import project_title

logger = logging.getLogger(__name__)


def _to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _title(project) -> str:
    if not project:
        return "a project"
    return project_title(project) or f"project #{project.id}"


def submit_investment(db: Session, *, project_id: int, investor_id: int, amount):
    amount = _to_money(amount)

    project = projects_repository.get_project(db, project_id=project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    if project.owner_id == investor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "You cannot invest in your own project"},
        )

    existing = projects_repository.get_investment_request(db, project_id=project_id, investor_id=investor_id)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "You already have an investment request for this project",
                "status": existing.status.value,
            },
        )

    balance = wallet_facade.get_balance(db, user_id=investor_id)
    if amount > balance:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=wallet_facade.insufficient_balance_detail(balance=balance, amount=amount),
        )

    profile = users_facade.get_investor_profile(db, user_id=investor_id)
    financials = resolve_investor_financials(profile)
    limit = compute_limit(financials.annual_income)
    if amount > limit.max_amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=limit_exceeded_detail(limit, amount),
        )

    projects_repository.create_investment_request(
        db,
        project_id=project_id,
        investor_id=investor_id,
        amount=amount,
        annual_income=financials.annual_income,
        verification_status=financials.verification_status,
        max_percentage=limit.max_percentage,
        max_amount=limit.max_amount,
        used_default_income=financials.used_defaults,
    )
    notifications_facade.notify(
        db,
        user_id=project.owner_id,
        notification_type="investment_submitted",
        title="New Investment Request",
        message=f"An investor requested to invest {notifications_facade.format_amount(amount)} in {_title(project)}.",
        link=f"/projects/{project_id}",
        related_request_type="investment",
        related_request_id=project_id,
    )
    try:
        db.commit()
    except IntegrityError:
        # a concurrent submission for the same (project, investor) won the race
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "You already have an investment request for this project"},
        )

    logger.info(
        "INVESTMENT_SUBMITTED | project=%s | investor=%s | amount=%s | max=%s",
        project_id,
        investor_id,
        amount,
        limit.max_amount,
    )
    return {
        "success": True,
        "project_id": project_id,
        "amount": float(amount),
        "status": InvestmentStatus.PENDING.value,
        "max_percentage": limit.max_percentage,
        "max_amount": float(limit.max_amount),
    }


def review_investment(
    db: Session,
    *,
    project_id: int,
    investor_id: int,
    action: str,
    comment: Optional[str],
    reviewer_id: int,
):
    request = projects_repository.get_investment_request_for_update(
        db, project_id=project_id, investor_id=investor_id
    )
    if not request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Investment request not found")
    if reviewer_id == investor_id:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot review your own investment request",
        )
    if request.status != InvestmentStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Investment request has already been reviewed",
                "status": request.status.value,
            },
        )

    now = datetime.utcnow()

    if action == "reject":
        request.status = InvestmentStatus.REJECTED
        request.admin_comment = comment
        request.reviewed_by = reviewer_id
        request.reviewed_at = now
        project = projects_repository.get_project(db, project_id=project_id)
        notifications_facade.notify(
            db,
            user_id=investor_id,
            notification_type="investment_rejected",
            title="Investment Request Declined",
            message=f"Your request to invest {notifications_facade.format_amount(request.amount)} in "
            f"{_title(project)} was declined." + (f" Reason: {comment}" if comment else ""),
            link=f"/projects/{project_id}",
            related_request_type="investment",
            related_request_id=project_id,
        )
        db.commit()
        logger.info(
            "INVESTMENT_REJECTED | project=%s | investor=%s | by=%s", project_id, investor_id, reviewer_id
        )
        return {
            "success": True,
            "project_id": project_id,
            "investor_id": investor_id,
            "status": InvestmentStatus.REJECTED.value,
        }

    project = projects_repository.get_project_for_update(db, project_id=project_id)
    if not project:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    amount = request.amount
    try:
        new_balance = wallet_facade.debit(
            db,
            user_id=investor_id,
            amount=amount,
            kind="investment",
            reference_type="project",
            reference_id=str(project_id),
        )
    except InsufficientBalance as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=wallet_facade.insufficient_balance_detail(balance=exc.balance, amount=exc.amount),
        )
    except WalletNotFound:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=wallet_facade.insufficient_balance_detail(balance=0, amount=amount),
        )

    funding = projects_repository.get_funding_for_update(db, project_id=project_id, investor_id=investor_id)
    if funding:
        funding.amount = funding.amount + amount
        funding.updated_at = now
    else:
        projects_repository.create_funding(db, project_id=project_id, investor_id=investor_id, amount=amount)

    project.total_funded = (project.total_funded or 0) + amount
    users_facade.add_to_portfolio(db, user_id=investor_id, amount=amount)

    request.status = InvestmentStatus.APPROVED
    request.admin_comment = comment
    request.reviewed_by = reviewer_id
    request.reviewed_at = now

    notifications_facade.notify(
        db,
        user_id=investor_id,
        notification_type="investment_approved",
        title="Investment Approved",
        message=f"Your investment of {notifications_facade.format_amount(amount)} in {_title(project)} was approved.",
        link=f"/projects/{project_id}",
        related_request_type="investment",
        related_request_id=project_id,
    )
    notifications_facade.notify(
        db,
        user_id=project.owner_id,
        notification_type="investment_received",
        title="New Investment Received",
        message=f"You received an investment of {notifications_facade.format_amount(amount)} in {_title(project)}.",
        link=f"/projects/{project_id}",
        related_request_type="investment",
        related_request_id=project_id,
    )

    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Project was modified concurrently. Please retry.",
        )

    logger.info(
        "INVESTMENT_APPROVED | project=%s | investor=%s | amount=%s | by=%s | balance=%s",
        project_id,
        investor_id,
        amount,
        reviewer_id,
        new_balance,
    )
    return {
        "success": True,
        "project_id": project_id,
        "investor_id": investor_id,
        "status": InvestmentStatus.APPROVED.value,
        "new_balance": float(new_balance),
        "total_funded": float(project.total_funded),
    }


def _request_item(req) -> dict:
    project = req.project
    return {
        "project_id": req.project_id,
        "project_title": project_title(project) if project else None,
        "borrower_id": project.owner_id if project else None,
        "borrower_name": users_facade.display_name(project.owner) if project else None,
        "investor_id": req.investor_id,
        "investor_name": users_facade.display_name(req.investor),
        "amount": float(req.amount),
        "status": req.status.value,
        "max_percentage": req.max_percentage,
        "max_amount": float(req.max_amount),
        "admin_comment": req.admin_comment,
        "reviewed_at": req.reviewed_at,
        "created_at": req.created_at,
    }


def list_investment_requests(db: Session, *, status_filter: Optional[str], limit: int, offset: int):
    requests = projects_repository.list_investment_requests(
        db, status=status_filter, limit=limit, offset=offset
    )
    return {"requests": [_request_item(req) for req in requests]}


def list_user_investments(db: Session, *, investor_id: int):
    requests = projects_repository.list_investment_requests(db, investor_id=investor_id, limit=500)
    return {"requests": [_request_item(req) for req in requests]}
