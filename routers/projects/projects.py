from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user, has_capability

from .schemas import (
    CalendarEntry,
    InterestCreateRequest,
    ProjectCreateRequest,
    ProjectCreateResponse,
    ProjectListResponse,
    ProjectResponse,
    ProjectUpdateRequest,
)
from .service import (
    create_project,
    decide_interest,
    delete_project,
    get_project,
    list_calendar_projects,
    list_my_projects,
    list_projects,
    show_interest,
    update_project,
)

router = APIRouter(prefix="/api", tags=["Projects"])

STATUS_PATTERN = "^(draft|pending|published|closed|completed|deleted)$"


@router.post("/projects", response_model=ProjectCreateResponse, status_code=201)
def create_project_endpoint(
    payload: ProjectCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return create_project(
        db,
        owner_id=current_user.account_id,
        details=payload.details,
        status_value=payload.status,
    )


@router.get("/projects", response_model=ProjectListResponse, response_model_exclude_none=True)
def list_projects_endpoint(
    status: Optional[str] = Query(None, pattern=STATUS_PATTERN),
    approved: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_projects(
        db,
        status_filter=status,
        approved_only=approved,
        viewer_id=current_user.account_id,
    )


@router.get("/projects/my-projects", response_model=ProjectListResponse)
def list_my_projects_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_my_projects(db, owner_id=current_user.account_id)


@router.get("/calendar/projects", response_model=List[CalendarEntry], tags=["Calendar"])
def list_calendar_projects_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return list_calendar_projects(db)


@router.get("/projects/{project_id}", response_model=ProjectResponse, response_model_exclude_none=True)
def get_project_endpoint(
    project_id: int,
    edit: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_project(
        db,
        project_id=project_id,
        viewer_id=current_user.account_id,
        edit_mode=edit,
        is_staff=has_capability(db, current_user, "projects.view"),
    )


@router.put("/projects/{project_id}", response_model=ProjectResponse)
def update_project_endpoint(
    project_id: int,
    payload: ProjectUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return update_project(
        db,
        project_id=project_id,
        actor_id=current_user.account_id,
        can_edit_any=has_capability(db, current_user, "projects.edit"),
        details=payload.details,
        status_value=payload.status,
    )


@router.delete("/projects/{project_id}")
def delete_project_endpoint(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return delete_project(
        db,
        project_id=project_id,
        actor_id=current_user.account_id,
        can_delete_any=has_capability(db, current_user, "projects.delete"),
    )


@router.post("/projects/{project_id}/interest", status_code=201, tags=["Interest"])
def show_interest_endpoint(
    project_id: int,
    payload: InterestCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return show_interest(
        db,
        project_id=project_id,
        investor_id=current_user.account_id,
        message=payload.message,
    )


@router.post("/projects/{project_id}/interest/{investor_id}/approve", tags=["Interest"])
def approve_interest_endpoint(
    project_id: int,
    investor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return decide_interest(
        db,
        project_id=project_id,
        investor_id=investor_id,
        owner_id=current_user.account_id,
        approve=True,
    )


@router.post("/projects/{project_id}/interest/{investor_id}/reject", tags=["Interest"])
def reject_interest_endpoint(
    project_id: int,
    investor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return decide_interest(
        db,
        project_id=project_id,
        investor_id=investor_id,
        owner_id=current_user.account_id,
        approve=False,
    )
