"""Projects repository layer."""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from models import (
    ApprovalStatus,
    InterestRequest,
    InvestmentRequest,
    InvestmentStatus,
    Project,
    ProjectFunding,
    ProjectStatus,
)


def _with_children(query):
    return query.options(
        selectinload(Project.fundings),
        selectinload(Project.investment_requests),
        selectinload(Project.interest_requests),
    )


def get_project(db: Session, *, project_id: int, include_deleted: bool = False):
    query = _with_children(db.query(Project)).filter(Project.id == project_id)
    if not include_deleted:
        query = query.filter(Project.status != ProjectStatus.DELETED)
    return query.first()


def get_project_for_update(db: Session, *, project_id: int):
    return (
        db.query(Project)
        .filter(Project.id == project_id, Project.status != ProjectStatus.DELETED)
        .with_for_update()
        .first()
    )


def list_projects(
    db: Session,
    *,
    status: Optional[str] = None,
    approval_statuses: Optional[list] = None,
    owner_id: Optional[int] = None,
    include_deleted: bool = False,
    limit: int = 100,
    offset: int = 0,
):
    query = _with_children(db.query(Project))
    if status:
        query = query.filter(Project.status == status)
    elif not include_deleted:
        query = query.filter(Project.status != ProjectStatus.DELETED)
    if approval_statuses:
        query = query.filter(Project.approval_status.in_(approval_statuses))
    if owner_id is not None:
        query = query.filter(Project.owner_id == owner_id)
    return query.order_by(Project.created_at.desc(), Project.id.desc()).offset(offset).limit(limit).all()


def create_project(db: Session, *, owner_id: int, details: dict, status: ProjectStatus):
    project = Project(
        owner_id=owner_id,
        details=details,
        status=status,
        approval_status=ApprovalStatus.PENDING,
    )
    db.add(project)
    return project


def count_projects_by_approval(db: Session) -> dict:
    rows = (
        db.query(Project.approval_status, func.count(Project.id))
        .filter(Project.status != ProjectStatus.DELETED)
        .group_by(Project.approval_status)
        .all()
    )
    return {
        (status.value if isinstance(status, ApprovalStatus) else status): count
        for status, count in rows
    }


def total_funded(db: Session):
    return db.query(func.coalesce(func.sum(Project.total_funded), 0)).scalar()


# Investment requests


def get_investment_request(db: Session, *, project_id: int, investor_id: int):
    return (
        db.query(InvestmentRequest)
        .filter(
            InvestmentRequest.project_id == project_id,
            InvestmentRequest.investor_id == investor_id,
        )
        .first()
    )


def get_investment_request_for_update(db: Session, *, project_id: int, investor_id: int):
    return (
        db.query(InvestmentRequest)
        .filter(
            InvestmentRequest.project_id == project_id,
            InvestmentRequest.investor_id == investor_id,
        )
        .with_for_update()
        .first()
    )


def create_investment_request(db: Session, **fields):
    investment_request = InvestmentRequest(status=InvestmentStatus.PENDING, **fields)
    db.add(investment_request)
    return investment_request


def list_investment_requests(
    db: Session,
    *,
    status: Optional[str] = None,
    investor_id: Optional[int] = None,
    limit: int = 100,
    offset: int = 0,
):
    query = db.query(InvestmentRequest).options(
        selectinload(InvestmentRequest.project).selectinload(Project.owner),
        selectinload(InvestmentRequest.investor),
    )
    if status:
        query = query.filter(InvestmentRequest.status == status)
    if investor_id is not None:
        query = query.filter(InvestmentRequest.investor_id == investor_id)
    return (
        query.order_by(InvestmentRequest.created_at.desc(), InvestmentRequest.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def count_investment_requests(db: Session, *, status: Optional[str] = None) -> int:
    query = db.query(func.count(InvestmentRequest.id))
    if status:
        query = query.filter(InvestmentRequest.status == status)
    return query.scalar() or 0


# Funding ledger


def get_funding_for_update(db: Session, *, project_id: int, investor_id: int):
    return (
        db.query(ProjectFunding)
        .filter(
            ProjectFunding.project_id == project_id,
            ProjectFunding.investor_id == investor_id,
        )
        .with_for_update()
        .first()
    )


def create_funding(db: Session, *, project_id: int, investor_id: int, amount):
    funding = ProjectFunding(project_id=project_id, investor_id=investor_id, amount=amount)
    db.add(funding)
    return funding


# Interest requests


def get_interest_request(db: Session, *, project_id: int, investor_id: int):
    return (
        db.query(InterestRequest)
        .filter(
            InterestRequest.project_id == project_id,
            InterestRequest.investor_id == investor_id,
        )
        .first()
    )


def create_interest_request(db: Session, *, project_id: int, investor_id: int, message: Optional[str]):
    interest = InterestRequest(project_id=project_id, investor_id=investor_id, message=message)
    db.add(interest)
    return interest
