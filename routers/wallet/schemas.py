"""Wallet schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class WalletTransactionResponse(BaseModel):
    id: int
    amount: float
    balance_after: float
    currency: str
    kind: str
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class WalletResponse(BaseModel):
    balance: float
    currency: str
    updated_at: Optional[datetime] = None
    transactions: Optional[List[WalletTransactionResponse]] = None


class WithdrawRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)


class WithdrawResponse(BaseModel):
    success: bool
    balance: float


class TopupCreateRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    currency: str = Field("PHP", min_length=3, max_length=3)
    transfer_date: Optional[date] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    reference: Optional[str] = None
    proof_of_transfer: Optional[str] = None


class TopupCreateResponse(BaseModel):
    success: bool
    request_id: int
    status: str


class TopupRequestResponse(BaseModel):
    id: int
    amount: float
    currency: str
    transfer_date: Optional[date] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    bank_name: Optional[str] = None
    reference: Optional[str] = None
    status: str
    admin_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TopupRequestListResponse(BaseModel):
    requests: List[TopupRequestResponse]


class TopupReviewRequest(BaseModel):
    action: Literal["approved", "rejected"]
    admin_notes: Optional[str] = None


class TopupReviewResponse(BaseModel):
    success: bool
    request_id: int
    status: str
    wallet_updated: bool
    new_balance: Optional[float] = None
