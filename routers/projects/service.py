"""Projects service layer."""

import copy
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from core import notifications as notifications_facade
from core.users import display_name
from models import ApprovalStatus, ProjectStatus

from . import repository as projects_repository

logger = logging.getLogger(__name__)

# Statuses the calendar shows investors
CALENDAR_STATUSES = (ProjectStatus.PUBLISHED, ProjectStatus.DRAFT, ProjectStatus.PENDING)

# Owners move their own projects between these; "deleted" goes through DELETE
OWNER_SETTABLE_STATUSES = {"draft", "pending", "published", "closed", "completed"}


def deep_merge(base: dict, updates: dict) -> dict:
    """Return a new dict with ``updates`` merged into ``base``; nested dicts merge key by key."""
    merged = copy.deepcopy(base) if base else {}
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _enum_value(value) -> str:
    return value.value if hasattr(value, "value") else value


def project_title(project) -> Optional[str]:
    details = project.details or {}
    return details.get("product") or details.get("title")


def serialize_project(project, *, include_requests: bool) -> dict:
    payload = {
        "id": project.id,
        "owner_id": project.owner_id,
        "owner_name": display_name(project.owner),
        "status": _enum_value(project.status),
        "approval_status": _enum_value(project.approval_status),
        "admin_feedback": project.admin_feedback,
        "details": project.details or {},
        "funding": {
            "total_funded": float(project.total_funded or 0),
            "investors": [
                {
                    "investor_id": funding.investor_id,
                    "investor_name": display_name(funding.investor),
                    "amount": float(funding.amount),
                    "updated_at": funding.updated_at,
                }
                for funding in project.fundings
            ],
        },
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }
    if include_requests:
        payload["investment_requests"] = [
            {
                "investor_id": req.investor_id,
                "investor_name": display_name(req.investor),
                "amount": float(req.amount),
                "status": _enum_value(req.status),
                "annual_income": float(req.annual_income),
                "verification_status": req.verification_status,
                "max_percentage": req.max_percentage,
                "max_amount": float(req.max_amount),
                "used_default_income": bool(req.used_default_income),
                "admin_comment": req.admin_comment,
                "reviewed_at": req.reviewed_at,
                "created_at": req.created_at,
            }
            for req in project.investment_requests
        ]
        payload["interest_requests"] = [
            {
                "investor_id": interest.investor_id,
                "investor_name": display_name(interest.investor),
                "message": interest.message,
                "status": interest.status,
                "decided_at": interest.decided_at,
                "created_at": interest.created_at,
            }
            for interest in project.interest_requests
        ]
    return payload


def _get_project_or_404(db: Session, project_id: int):
    project = projects_repository.get_project(db, project_id=project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def _commit_project_change(db: Session):
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Project was modified concurrently. Please retry.",
        )


def create_project(db: Session, *, owner_id: int, details: dict, status_value: str):
    project = projects_repository.create_project(
        db,
        owner_id=owner_id,
        details=details,
        status=ProjectStatus(status_value),
    )
    db.commit()
    db.refresh(project)
    logger.info("PROJECT_CREATED | project=%s | owner=%s", project.id, owner_id)
    return {"success": True, "project_id": project.id}


def list_projects(db: Session, *, status_filter: Optional[str], approved_only: bool, viewer_id: int):
    if approved_only:
        # published projects that were not rejected by review
        projects = projects_repository.list_projects(
            db,
            status=ProjectStatus.PUBLISHED.value,
            approval_statuses=[ApprovalStatus.APPROVED, ApprovalStatus.PENDING],
        )
    else:
        projects = projects_repository.list_projects(db, status=status_filter)
    return {
        "projects": [
            serialize_project(p, include_requests=p.owner_id == viewer_id) for p in projects
        ]
    }


def list_my_projects(db: Session, *, owner_id: int):
    projects = projects_repository.list_projects(db, owner_id=owner_id)
    return {"projects": [serialize_project(p, include_requests=True) for p in projects]}


def list_calendar_projects(db: Session):
    projects = projects_repository.list_projects(
        db,
        approval_statuses=[ApprovalStatus.APPROVED, ApprovalStatus.PENDING],
        limit=500,
    )
    entries = []
    for project in projects:
        if project.status not in CALENDAR_STATUSES:
            continue
        details = project.details or {}
        entries.append(
            {
                "id": project.id,
                "title": project_title(project),
                "owner_name": display_name(project.owner),
                "status": _enum_value(project.status),
                "approval_status": _enum_value(project.approval_status),
                "start_date": details.get("date"),
                "end_date": details.get("timeDuration"),
                "created_at": project.created_at,
            }
        )
    return entries


def get_project(db: Session, *, project_id: int, viewer_id: int, edit_mode: bool, is_staff: bool):
    project = _get_project_or_404(db, project_id)
    is_owner = project.owner_id == viewer_id
    if edit_mode and not is_owner:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit your own projects",
        )
    return serialize_project(project, include_requests=is_owner or is_staff)


def update_project(
    db: Session,
    *,
    project_id: int,
    actor_id: int,
    can_edit_any: bool,
    details: Optional[dict],
    status_value: Optional[str],
):
    project = projects_repository.get_project_for_update(db, project_id=project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    if project.owner_id != actor_id and not can_edit_any:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own projects",
        )

    if details:
        project.details = deep_merge(project.details or {}, details)
    if status_value is not None:
        if status_value not in OWNER_SETTABLE_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid project status")
        project.status = ProjectStatus(status_value)

    _commit_project_change(db)
    project = _get_project_or_404(db, project_id)
    return serialize_project(project, include_requests=True)


def delete_project(db: Session, *, project_id: int, actor_id: int, can_delete_any: bool):
    project = projects_repository.get_project_for_update(db, project_id=project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    if project.owner_id != actor_id and not can_delete_any:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own projects",
        )
    project.status = ProjectStatus.DELETED
    _commit_project_change(db)
    logger.info("PROJECT_DELETED | project=%s | by=%s", project_id, actor_id)
    return {"success": True, "project_id": project_id, "status": ProjectStatus.DELETED.value}


# ---------------------------------------------------------------------------
# Interest
# ---------------------------------------------------------------------------


def show_interest(db: Session, *, project_id: int, investor_id: int, message: Optional[str]):
    project = _get_project_or_404(db, project_id)
    if project.owner_id == investor_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot show interest in your own project",
        )
    if projects_repository.get_interest_request(db, project_id=project_id, investor_id=investor_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Interest already shown")
    projects_repository.create_interest_request(
        db, project_id=project_id, investor_id=investor_id, message=message
    )
    db.commit()
    return {"success": True, "project_id": project_id, "status": "pending"}


def decide_interest(db: Session, *, project_id: int, investor_id: int, owner_id: int, approve: bool):
    project = _get_project_or_404(db, project_id)
    if project.owner_id != owner_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the project owner can respond to interest requests",
        )
    interest = projects_repository.get_interest_request(db, project_id=project_id, investor_id=investor_id)
    if not interest:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Interest request not found")
    if interest.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Interest request has already been answered",
        )
    interest.status = "approved" if approve else "rejected"
    interest.decided_at = datetime.utcnow()
    db.commit()
    return {"success": True, "project_id": project_id, "investor_id": investor_id, "status": interest.status}


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------


def list_admin_projects(db: Session, *, approval_status: Optional[str], limit: int, offset: int):
    projects = projects_repository.list_projects(
        db,
        approval_statuses=[approval_status] if approval_status else None,
        limit=limit,
        offset=offset,
    )
    return {"projects": [serialize_project(p, include_requests=True) for p in projects]}


def get_admin_project(db: Session, *, project_id: int):
    project = _get_project_or_404(db, project_id)
    return serialize_project(project, include_requests=True)


def review_project(db: Session, *, project_id: int, action: str, feedback: Optional[str], reviewer_id: int):
    project = projects_repository.get_project_for_update(db, project_id=project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    if action == "approve":
        project.approval_status = ApprovalStatus.APPROVED
        if project.status == ProjectStatus.PENDING:
            project.status = ProjectStatus.PUBLISHED
    else:
        project.approval_status = ApprovalStatus.REJECTED
    project.admin_feedback = feedback
    project.reviewed_by = reviewer_id
    project.reviewed_at = datetime.utcnow()

    name = project_title(project) or f"project #{project.id}"
    if action == "approve":
        kind, title, message = "project_approved", "Project Approved", f"Your project {name} was approved."
    else:
        kind, title, message = "project_rejected", "Project Rejected", f"Your project {name} was rejected."
    if feedback:
        message += f" Feedback: {feedback}"
    notifications_facade.notify(
        db,
        user_id=project.owner_id,
        notification_type=kind,
        title=title,
        message=message,
        link=f"/projects/{project_id}",
        related_request_type="project",
        related_request_id=project_id,
    )

    _commit_project_change(db)
    logger.info("PROJECT_REVIEWED | project=%s | action=%s | by=%s", project_id, action, reviewer_id)
    return {
        "success": True,
        "project_id": project_id,
        "approval_status": _enum_value(project.approval_status),
        "status": _enum_value(project.status),
    }


def project_stats(db: Session) -> dict:
    counts = projects_repository.count_projects_by_approval(db)
    return {
        "total": sum(counts.values()),
        "pending": counts.get("pending", 0),
        "approved": counts.get("approved", 0),
        "rejected": counts.get("rejected", 0),
        "total_funded": float(projects_repository.total_funded(db) or 0),
        "pending_investments": projects_repository.count_investment_requests(db, status="pending"),
    }


def list_projects_for_owner(db: Session, *, owner_id: int):
    projects = projects_repository.list_projects(db, owner_id=owner_id, include_deleted=True)
    return [serialize_project(p, include_requests=True) for p in projects]
