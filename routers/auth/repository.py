"""Domain repository layer."""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from models import BorrowerProfile, BorrowRequest, InvestorProfile, User, UserSettings


def get_user_by_username_ci(db: Session, username: str):
    return db.query(User).filter(func.lower(User.username) == username.lower()).first()


def get_user_by_descope_id(db: Session, descope_user_id: str):
    return db.query(User).filter(User.descope_user_id == descope_user_id).first()


def get_user_by_account_id(db: Session, account_id: int):
    return db.query(User).filter(User.account_id == account_id).first()


def get_user_by_account_id_for_update(db: Session, account_id: int):
    return (
        db.query(User)
        .filter(User.account_id == account_id)
        .with_for_update()
        .first()
    )


def list_users(db: Session, *, search: Optional[str], limit: int, offset: int):
    query = db.query(User)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(User.email).like(pattern),
                func.lower(User.full_name).like(pattern),
                func.lower(User.username).like(pattern),
            )
        )
    total = query.count()
    users = query.order_by(User.created_at.desc()).offset(offset).limit(limit).all()
    return users, total


def count_users(db: Session, *, status: Optional[str] = None) -> int:
    query = db.query(func.count(User.account_id))
    if status:
        query = query.filter(User.status == status)
    return query.scalar() or 0


def create_user(db: Session, *, descope_user_id: str, email: Optional[str], full_name: Optional[str]):
    user = User(descope_user_id=descope_user_id, email=email, full_name=full_name)
    db.add(user)
    return user


def get_borrower_profile(db: Session, *, user_id: int):
    return db.query(BorrowerProfile).filter(BorrowerProfile.user_id == user_id).first()


def get_investor_profile(db: Session, *, user_id: int):
    return db.query(InvestorProfile).filter(InvestorProfile.user_id == user_id).first()


def get_investor_profile_for_update(db: Session, *, user_id: int):
    return (
        db.query(InvestorProfile)
        .filter(InvestorProfile.user_id == user_id)
        .with_for_update()
        .first()
    )


def create_borrower_profile(db: Session, *, user_id: int, **fields):
    profile = BorrowerProfile(user_id=user_id, **fields)
    db.add(profile)
    return profile


def create_investor_profile(db: Session, *, user_id: int, **fields):
    profile = InvestorProfile(user_id=user_id, **fields)
    db.add(profile)
    return profile


def get_settings(db: Session, *, user_id: int):
    return db.query(UserSettings).filter(UserSettings.user_id == user_id).first()


def create_settings(db: Session, *, user_id: int):
    settings = UserSettings(user_id=user_id)
    db.add(settings)
    return settings


def create_borrow_request(db: Session, *, user_id: int, **fields):
    borrow_request = BorrowRequest(user_id=user_id, **fields)
    db.add(borrow_request)
    return borrow_request
