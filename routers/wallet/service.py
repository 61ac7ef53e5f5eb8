"""
Wallet service: balance reads, credits and guarded debits, plus the top-up
request flow that credits wallets after an administrator verifies the transfer.

Credit and debit never commit. Callers own the transaction so a wallet change
can be committed together with whatever business record caused it.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from config import DEFAULT_CURRENCY
from core import notifications as notifications_facade
from core.wallet import InsufficientBalance, WalletError, WalletNotFound

from . import repository as wallet_repository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Platform bank accounts users transfer to before filing a top-up request
PLATFORM_BANK_ACCOUNTS = [
    {
        "id": "bdo-main",
        "bank_name": "BDO",
        "account_name": "Crowdlend Holdings Inc.",
        "account_number": "123456789012",
        "is_default": True,
    },
    {
        "id": "bpi-main",
        "bank_name": "BPI",
        "account_name": "Crowdlend Holdings Inc.",
        "account_number": "987654321098",
        "is_default": False,
    },
]


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def money_float(value) -> float:
    """JSON-friendly rendering of a money value."""
    return float(to_money(value or 0))


def insufficient_balance_detail(*, balance, amount) -> dict:
    balance = to_money(balance)
    amount = to_money(amount)
    return {
        "error": "Insufficient wallet balance",
        "current_balance": float(balance),
        "required_amount": float(amount),
        "shortfall": float(amount - balance),
    }


def get_balance(db: Session, *, user_id: int) -> Decimal:
    wallet = wallet_repository.get_wallet(db, user_id=user_id)
    if not wallet:
        return Decimal("0.00")
    return to_money(wallet.balance)


def credit(
    db: Session,
    *,
    user_id: int,
    amount,
    kind: str,
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
) -> Decimal:
    """
    Add ``amount`` to the user's wallet, creating the wallet if it does not exist.

    Returns:
        The new balance.
    """
    amount = to_money(amount)
    if amount <= 0:
        raise WalletError("Credit amount must be positive")

    wallet = wallet_repository.get_wallet_for_update(db, user_id=user_id)
    if wallet is None:
        wallet = wallet_repository.create_wallet(db, user_id=user_id, currency=DEFAULT_CURRENCY)

    new_balance = to_money(wallet.balance or 0) + amount
    wallet.balance = new_balance
    wallet.updated_at = datetime.utcnow()

    wallet_repository.add_transaction(
        db,
        user_id=user_id,
        amount=amount,
        balance_after=new_balance,
        currency=wallet.currency,
        kind=kind,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    db.flush()
    logger.info("WALLET_CREDIT | user=%s | amount=%s | kind=%s | balance=%s", user_id, amount, kind, new_balance)
    return new_balance


def debit(
    db: Session,
    *,
    user_id: int,
    amount,
    kind: str,
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
) -> Decimal:
    """
    Subtract ``amount`` from the user's wallet under a row lock.

    Raises:
        WalletNotFound: the user has no wallet row.
        InsufficientBalance: the balance would go negative.
    """
    amount = to_money(amount)
    if amount <= 0:
        raise WalletError("Debit amount must be positive")

    wallet = wallet_repository.get_wallet_for_update(db, user_id=user_id)
    if wallet is None:
        raise WalletNotFound(user_id)

    current = to_money(wallet.balance or 0)
    if current < amount:
        raise InsufficientBalance(user_id=user_id, balance=current, amount=amount)

    new_balance = current - amount
    wallet.balance = new_balance
    wallet.updated_at = datetime.utcnow()

    wallet_repository.add_transaction(
        db,
        user_id=user_id,
        amount=-amount,
        balance_after=new_balance,
        currency=wallet.currency,
        kind=kind,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    db.flush()
    logger.info("WALLET_DEBIT | user=%s | amount=%s | kind=%s | balance=%s", user_id, amount, kind, new_balance)
    return new_balance


def total_wallet_balance(db: Session) -> Decimal:
    return to_money(wallet_repository.total_wallet_balance(db))


# ---------------------------------------------------------------------------
# HTTP-facing operations
# ---------------------------------------------------------------------------


def get_wallet_summary(db: Session, *, user_id: int, include_transactions: bool, limit: int):
    wallet = wallet_repository.get_wallet(db, user_id=user_id)
    summary = {
        "balance": money_float(wallet.balance if wallet else 0),
        "currency": wallet.currency if wallet else DEFAULT_CURRENCY,
        "updated_at": wallet.updated_at if wallet else None,
    }
    if include_transactions:
        summary["transactions"] = wallet_repository.list_transactions(db, user_id=user_id, limit=limit)
    return summary


def withdraw(db: Session, *, user_id: int, amount):
    try:
        new_balance = debit(db, user_id=user_id, amount=amount, kind="withdrawal")
    except InsufficientBalance as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=insufficient_balance_detail(balance=exc.balance, amount=exc.amount),
        )
    except WalletNotFound:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=insufficient_balance_detail(balance=0, amount=amount),
        )
    db.commit()
    return {"success": True, "balance": float(new_balance)}


def list_platform_accounts():
    return {"accounts": PLATFORM_BANK_ACCOUNTS}


def create_topup_request(db: Session, *, user_id: int, fields: dict):
    fields = dict(fields)
    fields["amount"] = to_money(fields["amount"])
    fields.setdefault("currency", DEFAULT_CURRENCY)
    topup = wallet_repository.create_topup_request(db, user_id=user_id, **fields)
    db.commit()
    db.refresh(topup)
    logger.info("TOPUP_REQUESTED | user=%s | request=%s | amount=%s", user_id, topup.id, topup.amount)
    return {"success": True, "request_id": topup.id, "status": topup.status}


def list_my_topup_requests(db: Session, *, user_id: int):
    return {"requests": wallet_repository.list_topup_requests(db, user_id=user_id)}


def list_topup_requests(db: Session, *, status_filter: Optional[str], limit: int, offset: int):
    from core.users import display_name

    requests = wallet_repository.list_topup_requests(db, status=status_filter, limit=limit, offset=offset)
    items = []
    for topup in requests:
        items.append(
            {
                "id": topup.id,
                "user_id": topup.user_id,
                "full_name": display_name(topup.user),
                "email": topup.user.email if topup.user else None,
                "amount": money_float(topup.amount),
                "currency": topup.currency,
                "transfer_date": topup.transfer_date,
                "account_name": topup.account_name,
                "account_number": topup.account_number,
                "bank_name": topup.bank_name,
                "reference": topup.reference,
                "proof_of_transfer": topup.proof_of_transfer,
                "status": topup.status,
                "admin_notes": topup.admin_notes,
                "reviewed_by": topup.reviewed_by,
                "reviewed_at": topup.reviewed_at,
                "created_at": topup.created_at,
            }
        )
    return {"requests": items}


def review_topup_request(db: Session, *, request_id: int, action: str, admin_notes: Optional[str], reviewer_id: int):
    topup = wallet_repository.get_topup_request_for_update(db, request_id=request_id)
    if not topup:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Top-up request not found")
    if topup.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request has already been reviewed",
        )

    topup.status = action
    topup.admin_notes = admin_notes
    topup.reviewed_by = reviewer_id
    topup.reviewed_at = datetime.utcnow()

    new_balance = None
    if action == "approved":
        new_balance = credit(
            db,
            user_id=topup.user_id,
            amount=topup.amount,
            kind="topup",
            reference_type="topup_request",
            reference_id=str(topup.id),
        )

    amount_text = notifications_facade.format_amount(topup.amount)
    if action == "approved":
        title, message = "Top-up Approved", f"Your top-up of {amount_text} was credited to your wallet."
    else:
        title, message = "Top-up Rejected", f"Your top-up request of {amount_text} was rejected."
        if admin_notes:
            message += f" Reason: {admin_notes}"
    notifications_facade.notify(
        db,
        user_id=topup.user_id,
        notification_type=f"topup_{action}",
        title=title,
        message=message,
        link="/wallet",
        related_request_type="topup",
        related_request_id=topup.id,
    )

    db.commit()
    logger.info(
        "TOPUP_REVIEWED | request=%s | action=%s | reviewer=%s", request_id, action, reviewer_id
    )
    return {
        "success": True,
        "request_id": request_id,
        "status": action,
        "wallet_updated": new_balance is not None,
        "new_balance": float(new_balance) if new_balance is not None else None,
    }


def count_pending_topups(db: Session) -> int:
    return wallet_repository.count_topup_requests(db, status="pending")
