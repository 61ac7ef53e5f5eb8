from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_claims, get_current_user

from .schemas import (
    ProfileResponse,
    ProfileUpsertRequest,
    ProfileUpsertResponse,
    SetRoleRequest,
    SettingsResponse,
    SettingsUpdateRequest,
)
from .service import (
    complete_registration,
    get_profile,
    get_settings,
    set_role,
    update_settings,
    upsert_profile,
)

router = APIRouter(prefix="/api", tags=["Profile"])


@router.get("/profile", response_model=ProfileResponse)
def get_profile_endpoint(
    claims: dict = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    return get_profile(db, claims)


@router.post("/profile", response_model=ProfileUpsertResponse)
def upsert_profile_endpoint(
    payload: ProfileUpsertRequest,
    claims: dict = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    return upsert_profile(
        db,
        claims,
        full_name=payload.full_name,
        role=payload.role,
        username=payload.username,
    )


@router.post("/profile/set-role")
def set_role_endpoint(
    payload: SetRoleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return set_role(db, current_user, role=payload.role)


@router.post("/profile/complete-registration")
def complete_registration_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return complete_registration(db, current_user)


@router.get("/settings", response_model=SettingsResponse, tags=["Settings"])
def get_settings_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_settings(db, current_user)


@router.put("/settings", response_model=SettingsResponse, tags=["Settings"])
def update_settings_endpoint(
    payload: SettingsUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return update_settings(db, current_user, payload.model_dump(exclude_unset=True, exclude_none=True))
