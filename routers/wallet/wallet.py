from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .schemas import WalletResponse, WithdrawRequest, WithdrawResponse
from .service import get_wallet_summary, withdraw

router = APIRouter(prefix="/api/wallet", tags=["Wallet"])


@router.get("", response_model=WalletResponse, response_model_exclude_none=True)
def get_wallet_endpoint(
    include_transactions: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_wallet_summary(
        db,
        user_id=current_user.account_id,
        include_transactions=include_transactions,
        limit=limit,
    )


@router.post("/withdraw", response_model=WithdrawResponse)
def withdraw_endpoint(
    payload: WithdrawRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return withdraw(db, user_id=current_user.account_id, amount=payload.amount)
