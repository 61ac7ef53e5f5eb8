import logging
from typing import Set

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from auth import validate_descope_jwt
from core.db import get_db
from models import TeamMember, TeamMemberPermission, User

logger = logging.getLogger(__name__)

# Capability tags understood by the back-office gate.
PERMISSION_KEYS = (
    "projects.view",
    "projects.edit",
    "projects.approve",
    "projects.delete",
    "users.view",
    "users.edit",
    "users.suspend",
    "topup.view",
    "topup.approve",
    "investments.view",
    "investments.manage",
    "settings.view",
    "settings.edit",
    "team.view",
    "team.manage",
)

ROLE_PRESETS = {
    "admin": list(PERMISSION_KEYS),
    "editor": [
        "projects.view",
        "projects.edit",
        "users.view",
        "topup.view",
        "investments.view",
        "team.view",
    ],
    "viewer": ["projects.view", "users.view", "topup.view", "investments.view"],
    "member": ["projects.view", "users.view"],
}


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("authorization") or request.headers.get("Authorization")
    if not auth_header or not auth_header.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization token missing.")
    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization token missing.")
    return token


def get_current_claims(request: Request) -> dict:
    """
    Validates the Descope session in the Authorization header and returns the
    verified identity (``userId``, ``email``, ``name``). Does not touch the DB, so
    it is usable before the caller has a profile row.
    """
    claims = validate_descope_jwt(_bearer_token(request))
    request.state.subject_id = claims["userId"]
    return claims


def get_current_user(claims: dict = Depends(get_current_claims), db: Session = Depends(get_db)) -> User:
    """Resolve the verified subject to its user row. Suspended accounts are refused."""
    user = db.query(User).filter(User.descope_user_id == claims["userId"]).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User profile not found. Complete your profile first.",
        )
    if user.status == "suspended":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account suspended")
    return user


def is_admin(user: User) -> bool:
    return bool(user.is_admin)


def verify_admin(user: User):
    if not is_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required for this endpoint",
        )


def get_active_team_membership(db: Session, user: User):
    return (
        db.query(TeamMember)
        .filter(TeamMember.member_id == user.account_id, TeamMember.status == "active")
        .order_by(TeamMember.id.desc())
        .first()
    )


def get_capabilities(db: Session, user: User) -> Set[str]:
    """Administrators hold every capability; team members hold what they were granted."""
    if is_admin(user):
        return set(PERMISSION_KEYS)
    membership = get_active_team_membership(db, user)
    if not membership:
        return set()
    rows = (
        db.query(TeamMemberPermission.permission_key)
        .filter(
            TeamMemberPermission.team_member_id == membership.id,
            TeamMemberPermission.can_access.is_(True),
        )
        .all()
    )
    return {row[0] for row in rows}


def has_capability(db: Session, user: User, capability: str) -> bool:
    return capability in get_capabilities(db, user)


def require_capability(capability: str):
    """
    Dependency factory guarding a back-office route::

        current_user: User = Depends(require_capability("investments.manage"))
    """
    if capability not in PERMISSION_KEYS:
        raise ValueError(f"Unknown capability: {capability}")

    def _dependency(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
        if not has_capability(db, user, capability):
            logger.warning(
                "CAPABILITY_DENIED | user=%s | capability=%s", user.account_id, capability
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {capability}",
            )
        return user

    _dependency.__name__ = f"require_{capability.replace('.', '_')}"
    return _dependency
