"""Wallet facade.

Other domains move money through these helpers, which delegate to the Wallet
domain service. None of them commit.
"""

from decimal import Decimal

from sqlalchemy.orm import Session


class WalletError(ValueError):
    pass


class WalletNotFound(WalletError):
    def __init__(self, user_id: int):
        super().__init__(f"Wallet not found for user {user_id}")
        self.user_id = user_id


class InsufficientBalance(WalletError):
    def __init__(self, *, user_id: int, balance: Decimal, amount: Decimal):
        super().__init__(f"Insufficient balance. Current: {balance}, Attempted: {amount}")
        self.user_id = user_id
        self.balance = balance
        self.amount = amount

    @property
    def shortfall(self) -> Decimal:
        return self.amount - self.balance


def _wallet_service():
    from routers.wallet import service

    return service


def get_balance(db: Session, *, user_id: int) -> Decimal:
    return _wallet_service().get_balance(db, user_id=user_id)


def debit(db: Session, *, user_id: int, amount, kind: str, reference_type=None, reference_id=None) -> Decimal:
    """Lock the wallet row and take ``amount`` from it.

    Raises WalletNotFound or InsufficientBalance. Returns the new balance.
    """
    return _wallet_service().debit(
        db,
        user_id=user_id,
        amount=amount,
        kind=kind,
        reference_type=reference_type,
        reference_id=reference_id,
    )


def insufficient_balance_detail(*, balance, amount) -> dict:
    return _wallet_service().insufficient_balance_detail(balance=balance, amount=amount)


def total_wallet_balance(db: Session) -> Decimal:
    return _wallet_service().total_wallet_balance(db)


def count_pending_topups(db: Session) -> int:
    return _wallet_service().count_pending_topups(db)
