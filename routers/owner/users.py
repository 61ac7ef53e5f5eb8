from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import require_capability

from .schemas import SuspendRequest, UserUpdateRequest
from .service import (
    get_stats,
    get_user,
    list_user_projects,
    list_users,
    reactivate_user,
    suspend_user,
    update_user,
)

router = APIRouter(prefix="/api/owner", tags=["Owner"])


@router.get("/stats")
def get_stats_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("users.view")),
):
    return get_stats(db)


@router.get("/users")
def list_users_endpoint(
    search: Optional[str] = Query(None, max_length=200),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("users.view")),
):
    return list_users(db, search=search, limit=limit, offset=offset)


@router.get("/users/{account_id}")
def get_user_endpoint(
    account_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("users.view")),
):
    return get_user(db, account_id=account_id)


@router.put("/users/{account_id}")
def update_user_endpoint(
    account_id: int,
    payload: UserUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("users.edit")),
):
    return update_user(db, account_id=account_id, updates=payload.model_dump(exclude_unset=True))


@router.post("/users/{account_id}/suspend")
def suspend_user_endpoint(
    account_id: int,
    payload: SuspendRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("users.suspend")),
):
    return suspend_user(db, account_id=account_id, reason=payload.reason, actor_id=current_user.account_id)


@router.post("/users/{account_id}/reactivate")
def reactivate_user_endpoint(
    account_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("users.suspend")),
):
    return reactivate_user(db, account_id=account_id, actor_id=current_user.account_id)


@router.get("/users/{account_id}/projects")
def list_user_projects_endpoint(
    account_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("users.view")),
):
    return list_user_projects(db, account_id=account_id)
