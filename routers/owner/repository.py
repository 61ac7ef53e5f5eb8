"""Owner repository layer (team membership and invitations)."""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from models import TeamInvitation, TeamMember, TeamMemberPermission


def list_team_members(db: Session, *, owner_id: Optional[int] = None):
    query = (
        db.query(TeamMember)
        .options(selectinload(TeamMember.permissions))
        .filter(TeamMember.status != "removed")
    )
    if owner_id is not None:
        query = query.filter(TeamMember.owner_id == owner_id)
    return query.order_by(TeamMember.invited_at.desc(), TeamMember.id.desc()).all()


def get_team_member(db: Session, *, member_id: int):
    return (
        db.query(TeamMember)
        .options(selectinload(TeamMember.permissions))
        .filter(TeamMember.id == member_id, TeamMember.status != "removed")
        .first()
    )


def get_team_member_by_email(db: Session, *, email: str):
    return (
        db.query(TeamMember)
        .filter(func.lower(TeamMember.email) == email.lower(), TeamMember.status != "removed")
        .first()
    )


def create_team_member(db: Session, *, owner_id: int, email: str, role: str):
    member = TeamMember(owner_id=owner_id, email=email, role=role, status="pending")
    db.add(member)
    db.flush()
    return member


def replace_permissions(db: Session, *, member: TeamMember, permissions: dict):
    member.permissions.clear()
    db.flush()
    for key, allowed in sorted(permissions.items()):
        member.permissions.append(TeamMemberPermission(permission_key=key, can_access=bool(allowed)))


def create_invitation(db: Session, **fields):
    invitation = TeamInvitation(**fields)
    db.add(invitation)
    return invitation


def get_invitation_by_token(db: Session, *, token: str):
    return db.query(TeamInvitation).filter(TeamInvitation.token == token).first()


def get_pending_invitation(db: Session, *, team_member_id: int):
    return (
        db.query(TeamInvitation)
        .filter(
            TeamInvitation.team_member_id == team_member_id,
            TeamInvitation.status == "pending",
        )
        .order_by(TeamInvitation.created_at.desc(), TeamInvitation.id.desc())
        .first()
    )


def revoke_invitations(db: Session, *, team_member_id: int):
    (
        db.query(TeamInvitation)
        .filter(
            TeamInvitation.team_member_id == team_member_id,
            TeamInvitation.status == "pending",
        )
        .update({TeamInvitation.status: "revoked"}, synchronize_session=False)
    )
