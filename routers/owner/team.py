from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user, require_capability

from .schemas import TeamInviteRequest, TeamPermissionsUpdate, TeamRoleUpdate
from .service import (
    accept_invitation,
    invite_member,
    list_team,
    my_permissions,
    remove_member,
    resend_invite,
    update_permissions,
    update_role,
)

router = APIRouter(prefix="/api", tags=["Team"])


@router.get("/owner/team")
def list_team_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("team.view")),
):
    return list_team(db)


@router.post("/owner/team/invite", status_code=201)
def invite_member_endpoint(
    payload: TeamInviteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("team.manage")),
):
    return invite_member(
        db,
        actor=current_user,
        email=payload.email,
        role=payload.role,
        permissions=payload.permissions,
    )


@router.put("/owner/team/{member_id}/permissions")
def update_permissions_endpoint(
    member_id: int,
    payload: TeamPermissionsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("team.manage")),
):
    return update_permissions(db, actor=current_user, member_id=member_id, permissions=payload.permissions)


@router.put("/owner/team/{member_id}/role")
def update_role_endpoint(
    member_id: int,
    payload: TeamRoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("team.manage")),
):
    return update_role(
        db, actor=current_user, member_id=member_id, role=payload.role, apply_preset=payload.apply_preset
    )


@router.delete("/owner/team/{member_id}")
def remove_member_endpoint(
    member_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("team.manage")),
):
    return remove_member(db, actor=current_user, member_id=member_id)


@router.post("/owner/team/{member_id}/resend-invite")
def resend_invite_endpoint(
    member_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability("team.manage")),
):
    return resend_invite(db, member_id=member_id, owner_id=current_user.account_id)


@router.get("/team/my-permissions")
def my_permissions_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return my_permissions(db, current_user)


@router.post("/team/accept-invitation/{token}")
def accept_invitation_endpoint(
    token: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return accept_invitation(db, token=token, user=current_user)
