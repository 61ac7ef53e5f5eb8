from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import require_capability

from .schemas import ProjectListResponse, ProjectResponse, ProjectReviewRequest
from .service import get_admin_project, list_admin_projects, review_project

router = APIRouter(prefix="/api/admin/projects", tags=["Admin"])


@router.get("", response_model=ProjectListResponse)
def list_admin_projects_endpoint(
    approval_status: Optional[str] = Query(None, pattern="^(pending|approved|rejected)$"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("projects.view")),
):
    return list_admin_projects(db, approval_status=approval_status, limit=limit, offset=offset)


@router.get("/{project_id}", response_model=ProjectResponse)
def get_admin_project_endpoint(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("projects.view")),
):
    return get_admin_project(db, project_id=project_id)


@router.post("/{project_id}/review")
def review_project_endpoint(
    project_id: int,
    payload: ProjectReviewRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("projects.approve")),
):
    return review_project(
        db,
        project_id=project_id,
        action=payload.action,
        feedback=payload.feedback,
        reviewer_id=current_user.account_id,
    )
