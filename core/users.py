"""Accounts facade.

Wallet, projects and owner code read and update accounts and investor
profiles through these helpers; only the auth domain touches the `User`
and `InvestorProfile` tables.
"""

from typing import Optional

from sqlalchemy.orm import Session


def _auth_service():
    from routers.auth import service

    return service


def get_user_by_id(db: Session, *, account_id: int):
    return _auth_service().get_user_by_id(db, account_id=account_id)


def list_users(db: Session, *, search: Optional[str], limit: int, offset: int):
    """Return ``(users, total)`` for the back-office user table."""
    return _auth_service().list_users(db, search=search, limit=limit, offset=offset)


def count_users(db: Session, *, status: Optional[str] = None) -> int:
    return _auth_service().count_users(db, status=status)


def update_user_fields(db: Session, *, account_id: int, updates: dict):
    return _auth_service().update_user_fields(db, account_id=account_id, updates=updates)


def set_suspension(db: Session, *, account_id: int, suspended: bool, reason: Optional[str], actor_id: int):
    return _auth_service().set_suspension(
        db, account_id=account_id, suspended=suspended, reason=reason, actor_id=actor_id
    )


def get_investor_profile(db: Session, *, user_id: int):
    return _auth_service().get_investor_profile(db, user_id=user_id)


def add_to_portfolio(db: Session, *, user_id: int, amount):
    """Grow the investor's portfolio value. Flushes nothing; the caller commits."""
    return _auth_service().add_to_portfolio(db, user_id=user_id, amount=amount)


def display_name(user) -> Optional[str]:
    return _auth_service().display_name(user)
