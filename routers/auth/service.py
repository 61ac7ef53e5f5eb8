"""Domain service layer."""

import logging
import re
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from models import User

from . import repository as auth_repository

logger = logging.getLogger(__name__)

BORROWER_REQUIRED_FIELDS = ("full_name", "occupation", "location", "phone_number")
INVESTOR_REQUIRED_FIELDS = ("full_name", "location", "phone_number", "annual_income")

BORROWER_UPDATABLE_FIELDS = (
    "full_name",
    "occupation",
    "business_type",
    "location",
    "phone_number",
    "date_of_birth",
    "experience",
)
INVESTOR_UPDATABLE_FIELDS = (
    "full_name",
    "location",
    "phone_number",
    "date_of_birth",
    "investment_experience",
    "investment_preference",
    "risk_tolerance",
    "annual_income",
    "verification_status",
)


# ---------------------------------------------------------------------------
# Internal API used through core.users
# ---------------------------------------------------------------------------


def get_user_by_id(db: Session, *, account_id: int):
    return auth_repository.get_user_by_account_id(db, account_id)


def get_investor_profile(db: Session, *, user_id: int):
    return auth_repository.get_investor_profile(db, user_id=user_id)


def add_to_portfolio(db: Session, *, user_id: int, amount):
    """Grow the investor's portfolio value after an approved investment. No commit."""
    profile = auth_repository.get_investor_profile_for_update(db, user_id=user_id)
    if profile is None:
        return None
    profile.portfolio_value = (profile.portfolio_value or 0) + amount
    return profile


def display_name(user: Optional[User]) -> Optional[str]:
    if user is None:
        return None
    return user.full_name or user.username or user.email


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


def _validate_username(username: str):
    if len(username) < 3 or len(username) > 30:
        raise HTTPException(
            status_code=400, detail="Username must be between 3 and 30 characters"
        )
    if not re.match(r"^[A-Za-z0-9_.-]+$", username):
        raise HTTPException(
            status_code=400,
            detail="Username may contain letters, numbers, and . _ - only",
        )


def _default_profile(claims: dict) -> dict:
    return {
        "account_id": None,
        "email": claims.get("email"),
        "username": None,
        "full_name": None,
        "role": None,
        "current_account_type": None,
        "is_admin": False,
        "has_completed_registration": False,
        "status": "active",
        "created_at": None,
    }


def get_profile(db: Session, claims: dict):
    user = auth_repository.get_user_by_descope_id(db, claims["userId"])
    if not user:
        return _default_profile(claims)
    return user


def upsert_profile(db: Session, claims: dict, *, full_name: str, role: Optional[str], username: Optional[str]):
    user = auth_repository.get_user_by_descope_id(db, claims["userId"])

    if username is not None:
        username = username.strip()
        _validate_username(username)
        existing = auth_repository.get_user_by_username_ci(db, username)
        if existing and existing.descope_user_id != claims["userId"]:
            raise HTTPException(status_code=400, detail="Username already taken")

    created = False
    if not user:
        user = auth_repository.create_user(
            db,
            descope_user_id=claims["userId"],
            email=claims.get("email"),
            full_name=full_name,
        )
        created = True

    user.full_name = full_name
    if role is not None:
        user.role = role
    if username is not None:
        user.username = username
    if claims.get("email") and not user.email:
        user.email = claims["email"]

    db.commit()
    db.refresh(user)
    if created:
        logger.info("USER_CREATED | account_id=%s | subject=%s", user.account_id, claims["userId"][:8])
    return {"success": True, "profile": user}


def set_role(db: Session, user: User, *, role: str):
    user.role = role
    user.current_account_type = role
    db.commit()
    return {"success": True, "role": role}


def complete_registration(db: Session, user: User):
    user.has_completed_registration = True
    db.commit()
    return {"success": True, "has_completed_registration": True}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_settings(db: Session, user: User):
    settings = auth_repository.get_settings(db, user_id=user.account_id)
    if not settings:
        settings = auth_repository.create_settings(db, user_id=user.account_id)
        db.commit()
        db.refresh(settings)
    return settings


def update_settings(db: Session, user: User, updates: dict):
    settings = get_settings(db, user)
    for key, value in updates.items():
        setattr(settings, key, value)
    db.commit()
    db.refresh(settings)
    return settings


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def _is_complete(profile, required_fields) -> bool:
    return all(getattr(profile, field, None) not in (None, "") for field in required_fields)


def get_accounts(db: Session, user: User):
    return {
        "current_account_type": user.current_account_type,
        "has_borrower_account": bool(user.has_borrower_account),
        "has_investor_account": bool(user.has_investor_account),
        "borrower": auth_repository.get_borrower_profile(db, user_id=user.account_id),
        "investor": auth_repository.get_investor_profile(db, user_id=user.account_id),
    }


def create_account(db: Session, user: User, *, account_type: str, fields: dict):
    if account_type == "borrower":
        if user.has_borrower_account or auth_repository.get_borrower_profile(db, user_id=user.account_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Borrower account already exists")
        allowed = {k: v for k, v in fields.items() if k in BORROWER_UPDATABLE_FIELDS}
        allowed.setdefault("full_name", user.full_name)
        profile = auth_repository.create_borrower_profile(db, user_id=user.account_id, **allowed)
        profile.is_complete = _is_complete(profile, BORROWER_REQUIRED_FIELDS)
        user.has_borrower_account = True
    else:
        if user.has_investor_account or auth_repository.get_investor_profile(db, user_id=user.account_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Investor account already exists")
        allowed = {k: v for k, v in fields.items() if k in INVESTOR_UPDATABLE_FIELDS}
        allowed.setdefault("full_name", user.full_name)
        profile = auth_repository.create_investor_profile(db, user_id=user.account_id, **allowed)
        profile.is_complete = _is_complete(profile, INVESTOR_REQUIRED_FIELDS)
        user.has_investor_account = True

    if not user.current_account_type:
        user.current_account_type = account_type
    db.commit()
    logger.info("ACCOUNT_CREATED | account_id=%s | type=%s", user.account_id, account_type)
    return {"success": True, "account_type": account_type, "current_account_type": user.current_account_type}


def switch_account(db: Session, user: User, *, account_type: str):
    has_account = user.has_borrower_account if account_type == "borrower" else user.has_investor_account
    if not has_account:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"You do not have a {account_type} account",
        )
    user.current_account_type = account_type
    db.commit()
    return {"success": True, "current_account_type": account_type}


def update_borrower_profile(db: Session, user: User, updates: dict):
    profile = auth_repository.get_borrower_profile(db, user_id=user.account_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Borrower account not found")
    for key, value in updates.items():
        if key in BORROWER_UPDATABLE_FIELDS:
            setattr(profile, key, value)
    profile.is_complete = _is_complete(profile, BORROWER_REQUIRED_FIELDS)
    db.commit()
    db.refresh(profile)
    return profile


def update_investor_profile(db: Session, user: User, updates: dict):
    profile = auth_repository.get_investor_profile(db, user_id=user.account_id)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Investor account not found")
    for key, value in updates.items():
        if key in INVESTOR_UPDATABLE_FIELDS:
            setattr(profile, key, value)
    profile.is_complete = _is_complete(profile, INVESTOR_REQUIRED_FIELDS)
    db.commit()
    db.refresh(profile)
    return profile


def create_borrow_request(db: Session, user: User, fields: dict):
    borrow_request = auth_repository.create_borrow_request(db, user_id=user.account_id, **fields)
    db.commit()
    db.refresh(borrow_request)
    return {"success": True, "id": borrow_request.id, "created_at": borrow_request.created_at}


# ---------------------------------------------------------------------------
# Back-office user management
# ---------------------------------------------------------------------------


def list_users(db: Session, *, search: Optional[str], limit: int, offset: int):
    return auth_repository.list_users(db, search=search, limit=limit, offset=offset)


def count_users(db: Session, *, status: Optional[str] = None) -> int:
    return auth_repository.count_users(db, status=status)


def update_user_fields(db: Session, *, account_id: int, updates: dict):
    user = auth_repository.get_user_by_account_id(db, account_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    for key in ("full_name", "role", "email"):
        if key in updates and updates[key] is not None:
            setattr(user, key, updates[key])
    db.commit()
    db.refresh(user)
    return user


def set_suspension(db: Session, *, account_id: int, suspended: bool, reason: Optional[str], actor_id: int):
    user = auth_repository.get_user_by_account_id_for_update(db, account_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if suspended and user.is_admin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Administrators cannot be suspended")
    if suspended:
        user.status = "suspended"
        user.suspension_reason = reason
        user.suspended_at = datetime.utcnow()
    else:
        user.status = "active"
        user.suspension_reason = None
        user.suspended_at = None
    db.commit()
    db.refresh(user)
    logger.info(
        "USER_%s | account_id=%s | by=%s",
        "SUSPENDED" if suspended else "REACTIVATED",
        account_id,
        actor_id,
    )
    return user
