"""Owner back-office service layer."""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from config import CORS_ALLOW_ORIGINS, TEAM_INVITE_EXPIRY_HOURS
from core import projects as projects_facade
from core import users as users_facade
from core import wallet as wallet_facade
from routers.dependencies import (
    PERMISSION_KEYS,
    ROLE_PRESETS,
    get_active_team_membership,
    get_capabilities,
    verify_admin,
)

from . import repository as owner_repository

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _user_summary(user) -> dict:
    return {
        "account_id": user.account_id,
        "email": user.email,
        "username": user.username,
        "full_name": user.full_name,
        "role": user.role,
        "current_account_type": user.current_account_type,
        "has_borrower_account": bool(user.has_borrower_account),
        "has_investor_account": bool(user.has_investor_account),
        "is_admin": bool(user.is_admin),
        "status": user.status,
        "suspension_reason": user.suspension_reason,
        "created_at": user.created_at,
    }


def list_users(db: Session, *, search: Optional[str], limit: int, offset: int):
    users, total = users_facade.list_users(db, search=search, limit=limit, offset=offset)
    return {"users": [_user_summary(u) for u in users], "total": total}


def get_user(db: Session, *, account_id: int):
    user = users_facade.get_user_by_id(db, account_id=account_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    summary = _user_summary(user)
    summary["wallet_balance"] = float(wallet_facade.get_balance(db, user_id=account_id))
    return summary


def update_user(db: Session, *, account_id: int, updates: dict):
    user = users_facade.update_user_fields(db, account_id=account_id, updates=updates)
    return _user_summary(user)


def suspend_user(db: Session, *, account_id: int, reason: Optional[str], actor_id: int):
    if account_id == actor_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot suspend yourself")
    user = users_facade.set_suspension(
        db, account_id=account_id, suspended=True, reason=reason, actor_id=actor_id
    )
    return {"success": True, "user": _user_summary(user)}


def reactivate_user(db: Session, *, account_id: int, actor_id: int):
    user = users_facade.set_suspension(
        db, account_id=account_id, suspended=False, reason=None, actor_id=actor_id
    )
    return {"success": True, "user": _user_summary(user)}


def list_user_projects(db: Session, *, account_id: int):
    if not users_facade.get_user_by_id(db, account_id=account_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {"projects": projects_facade.list_projects_for_owner(db, owner_id=account_id)}


def get_stats(db: Session):
    projects = projects_facade.project_stats(db)
    return {
        "users": {
            "total": users_facade.count_users(db),
            "suspended": users_facade.count_users(db, status="suspended"),
        },
        "projects": {
            "total": projects["total"],
            "pending": projects["pending"],
            "approved": projects["approved"],
            "rejected": projects["rejected"],
        },
        "pending_topups": wallet_facade.count_pending_topups(db),
        "pending_investments": projects["pending_investments"],
        "total_wallet_balance": float(wallet_facade.total_wallet_balance(db)),
        "total_funded": projects["total_funded"],
    }


# ---------------------------------------------------------------------------
# Team
# ---------------------------------------------------------------------------


def _permission_map(member) -> dict:
    granted = {p.permission_key: bool(p.can_access) for p in member.permissions}
    return {key: granted.get(key, False) for key in PERMISSION_KEYS}


def _member_summary(member) -> dict:
    return {
        "id": member.id,
        "email": member.email,
        "member_id": member.member_id,
        "role": member.role,
        "status": member.status,
        "invited_at": member.invited_at,
        "joined_at": member.joined_at,
        "permissions": _permission_map(member),
    }


def _invite_link(token: str) -> str:
    base = CORS_ALLOW_ORIGINS[0] if CORS_ALLOW_ORIGINS else ""
    return f"{base.rstrip('/')}/team/accept-invitation/{token}"


def _issue_invitation(db: Session, *, member, owner_id: int):
    owner_repository.revoke_invitations(db, team_member_id=member.id)
    invitation = owner_repository.create_invitation(
        db,
        owner_id=owner_id,
        team_member_id=member.id,
        email=member.email,
        token=secrets.token_urlsafe(32),
        role=member.role,
        expires_at=datetime.utcnow() + timedelta(hours=TEAM_INVITE_EXPIRY_HOURS),
    )
    # delivery is out of band; the link is returned to the inviting owner
    logger.info("TEAM_INVITE_ISSUED | member=%s | email=%s", member.id, member.email)
    return invitation


def _get_member_or_404(db: Session, member_id: int):
    member = owner_repository.get_team_member(db, member_id=member_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")
    return member


def _check_target(member, actor):
    if member.member_id is not None and member.member_id == actor.account_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot change your own team membership",
        )
    if member.role == "admin":
        verify_admin(actor)


def _check_grant(db: Session, *, actor, role: Optional[str], keys):
    """
    Staff may only hand out capabilities they hold themselves. The admin role
    is reserved for administrators.
    """
    if role == "admin":
        verify_admin(actor)
    beyond = sorted(set(keys) - get_capabilities(db, actor))
    if beyond:
        logger.warning("TEAM_GRANT_REFUSED | actor=%s | keys=%s", actor.account_id, ",".join(beyond))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "You cannot grant permissions you do not hold", "permissions": beyond},
        )


def list_team(db: Session):
    return {"members": [_member_summary(m) for m in owner_repository.list_team_members(db)]}


def invite_member(db: Session, *, actor, email: str, role: str, permissions: Optional[list]):
    granted = permissions if permissions is not None else ROLE_PRESETS[role]
    _check_grant(db, actor=actor, role=role, keys=granted)
    if owner_repository.get_team_member_by_email(db, email=email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This email is already on the team",
        )
    member = owner_repository.create_team_member(db, owner_id=actor.account_id, email=email, role=role)
    owner_repository.replace_permissions(
        db, member=member, permissions={key: True for key in granted}
    )
    invitation = _issue_invitation(db, member=member, owner_id=actor.account_id)
    db.commit()
    db.refresh(member)
    return {
        "success": True,
        "member": _member_summary(member),
        "invite_link": _invite_link(invitation.token),
        "expires_at": invitation.expires_at,
    }


def update_permissions(db: Session, *, actor, member_id: int, permissions: dict):
    member = _get_member_or_404(db, member_id)
    _check_target(member, actor)
    _check_grant(db, actor=actor, role=None, keys=[key for key, allowed in permissions.items() if allowed])
    owner_repository.replace_permissions(db, member=member, permissions=permissions)
    db.commit()
    db.refresh(member)
    return {"success": True, "member": _member_summary(member)}


def update_role(db: Session, *, actor, member_id: int, role: str, apply_preset: bool):
    member = _get_member_or_404(db, member_id)
    _check_target(member, actor)
    _check_grant(db, actor=actor, role=role, keys=ROLE_PRESETS[role] if apply_preset else [])
    member.role = role
    if apply_preset:
        owner_repository.replace_permissions(
            db, member=member, permissions={key: True for key in ROLE_PRESETS[role]}
        )
    db.commit()
    db.refresh(member)
    return {"success": True, "member": _member_summary(member)}


def remove_member(db: Session, *, actor, member_id: int):
    member = _get_member_or_404(db, member_id)
    _check_target(member, actor)
    member.status = "removed"
    owner_repository.revoke_invitations(db, team_member_id=member.id)
    db.commit()
    logger.info("TEAM_MEMBER_REMOVED | member=%s", member_id)
    return {"success": True, "member_id": member_id}


def resend_invite(db: Session, *, member_id: int, owner_id: int):
    member = _get_member_or_404(db, member_id)
    if member.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invitation has already been accepted",
        )
    invitation = _issue_invitation(db, member=member, owner_id=owner_id)
    db.commit()
    return {
        "success": True,
        "invite_link": _invite_link(invitation.token),
        "expires_at": invitation.expires_at,
    }


def accept_invitation(db: Session, *, token: str, user):
    invitation = owner_repository.get_invitation_by_token(db, token=token)
    if not invitation or invitation.status != "pending":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitation not found")
    if invitation.expires_at < datetime.utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invitation has expired")
    if not user.email or user.email.lower() != invitation.email.lower():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This invitation was sent to a different email address",
        )

    member = _get_member_or_404(db, invitation.team_member_id)
    now = datetime.utcnow()
    member.member_id = user.account_id
    member.status = "active"
    member.joined_at = now
    invitation.status = "accepted"
    invitation.accepted_at = now
    db.commit()
    logger.info("TEAM_INVITE_ACCEPTED | member=%s | account_id=%s", member.id, user.account_id)
    return {"success": True, "role": member.role, "permissions": sorted(get_capabilities(db, user))}


def my_permissions(db: Session, user):
    membership = get_active_team_membership(db, user)
    return {
        "is_admin": bool(user.is_admin),
        "is_team_member": membership is not None,
        "role": "admin" if user.is_admin else (membership.role if membership else None),
        "permissions": sorted(get_capabilities(db, user)),
    }
