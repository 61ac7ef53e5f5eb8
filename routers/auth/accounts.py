from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models import User
from routers.dependencies import get_current_user

from .schemas import (
    AccountsResponse,
    BorrowerProfileFields,
    BorrowerProfileResponse,
    BorrowRequestCreate,
    CreateAccountRequest,
    InvestorProfileFields,
    InvestorProfileResponse,
    SwitchAccountRequest,
)
from .service import (
    create_account,
    create_borrow_request,
    get_accounts,
    switch_account,
    update_borrower_profile,
    update_investor_profile,
)

router = APIRouter(prefix="/api", tags=["Accounts"])


@router.get("/accounts", response_model=AccountsResponse)
def get_accounts_endpoint(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_accounts(db, current_user)


@router.post("/accounts/create", status_code=201)
def create_account_endpoint(
    payload: CreateAccountRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    section = payload.borrower if payload.account_type == "borrower" else payload.investor
    fields = section.model_dump(exclude_none=True) if section else {}
    return create_account(db, current_user, account_type=payload.account_type, fields=fields)


@router.post("/accounts/switch")
def switch_account_endpoint(
    payload: SwitchAccountRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return switch_account(db, current_user, account_type=payload.account_type)


@router.put("/accounts/borrower", response_model=BorrowerProfileResponse)
def update_borrower_endpoint(
    payload: BorrowerProfileFields,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return update_borrower_profile(db, current_user, payload.model_dump(exclude_unset=True))


@router.put("/accounts/investor", response_model=InvestorProfileResponse)
def update_investor_endpoint(
    payload: InvestorProfileFields,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return update_investor_profile(db, current_user, payload.model_dump(exclude_unset=True))


@router.post("/borrow-requests", status_code=201, tags=["Borrow Requests"])
def create_borrow_request_endpoint(
    payload: BorrowRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return create_borrow_request(db, current_user, payload.model_dump())
