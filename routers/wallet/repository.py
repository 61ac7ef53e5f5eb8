"""Wallet repository layer."""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session


def get_wallet(db: Session, *, user_id: int):
    from models import Wallet

    return db.query(Wallet).filter(Wallet.user_id == user_id).first()


def get_wallet_for_update(db: Session, *, user_id: int):
    from models import Wallet

    return db.query(Wallet).filter(Wallet.user_id == user_id).with_for_update().first()


def create_wallet(db: Session, *, user_id: int, currency: str):
    from models import Wallet

    wallet = Wallet(user_id=user_id, balance=0, currency=currency)
    db.add(wallet)
    db.flush()
    return wallet


def add_transaction(db: Session, **fields):
    from models import WalletTransaction

    transaction = WalletTransaction(**fields)
    db.add(transaction)
    return transaction


def list_transactions(db: Session, *, user_id: int, limit: int):
    from models import WalletTransaction

    return (
        db.query(WalletTransaction)
        .filter(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.created_at.desc(), WalletTransaction.id.desc())
        .limit(limit)
        .all()
    )


def total_wallet_balance(db: Session):
    from models import Wallet

    return db.query(func.coalesce(func.sum(Wallet.balance), 0)).scalar()


def create_topup_request(db: Session, *, user_id: int, **fields):
    from models import TopupRequest

    topup = TopupRequest(user_id=user_id, **fields)
    db.add(topup)
    return topup


def get_topup_request_for_update(db: Session, *, request_id: int):
    from models import TopupRequest

    return (
        db.query(TopupRequest)
        .filter(TopupRequest.id == request_id)
        .with_for_update()
        .first()
    )


def list_topup_requests(db: Session, *, user_id: Optional[int] = None, status: Optional[str] = None, limit: int = 100, offset: int = 0):
    from models import TopupRequest

    query = db.query(TopupRequest)
    if user_id is not None:
        query = query.filter(TopupRequest.user_id == user_id)
    if status:
        query = query.filter(TopupRequest.status == status)
    return (
        query.order_by(TopupRequest.created_at.desc(), TopupRequest.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def count_topup_requests(db: Session, *, status: Optional[str] = None) -> int:
    from models import TopupRequest

    query = db.query(func.count(TopupRequest.id))
    if status:
        query = query.filter(TopupRequest.status == status)
    return query.scalar() or 0
