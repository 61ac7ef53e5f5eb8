from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

AccountType = Literal["borrower", "investor"]


class ProfileUpsertRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    role: Optional[AccountType] = None
    username: Optional[str] = None


class SetRoleRequest(BaseModel):
    role: AccountType


class ProfileResponse(BaseModel):
    account_id: Optional[int] = None
    email: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None
    current_account_type: Optional[str] = None
    is_admin: bool = False
    has_completed_registration: bool = False
    status: str = "active"
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettingsResponse(BaseModel):
    email_notifications: bool
    sms_notifications: bool
    marketing_emails: bool
    language: str
    timezone: str

    class Config:
        from_attributes = True


class SettingsUpdateRequest(BaseModel):
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    marketing_emails: Optional[bool] = None
    language: Optional[str] = Field(None, min_length=2, max_length=10)
    timezone: Optional[str] = Field(None, min_length=1, max_length=64)


class BorrowerProfileFields(BaseModel):
    full_name: Optional[str] = None
    occupation: Optional[str] = None
    business_type: Optional[str] = None
    location: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    experience: Optional[str] = None


class InvestorProfileFields(BaseModel):
    full_name: Optional[str] = None
    location: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    investment_experience: Optional[str] = None
    investment_preference: Optional[str] = None
    risk_tolerance: Optional[str] = None
    annual_income: Optional[Decimal] = Field(None, ge=0)
    verification_status: Optional[Literal["pending", "verified", "rejected"]] = None


class BorrowerProfileResponse(BorrowerProfileFields):
    is_complete: bool
    has_active_project: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InvestorProfileResponse(InvestorProfileFields):
    annual_income: Optional[float] = None
    portfolio_value: float
    is_complete: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AccountsResponse(BaseModel):
    current_account_type: Optional[str] = None
    has_borrower_account: bool
    has_investor_account: bool
    borrower: Optional[BorrowerProfileResponse] = None
    investor: Optional[InvestorProfileResponse] = None

    class Config:
        from_attributes = True


class CreateAccountRequest(BaseModel):
    account_type: AccountType
    borrower: Optional[BorrowerProfileFields] = None
    investor: Optional[InvestorProfileFields] = None


class SwitchAccountRequest(BaseModel):
    account_type: AccountType


class BorrowRequestCreate(BaseModel):
    national_id: Optional[str] = None
    passport_no: Optional[str] = None
    tin: Optional[str] = None
    street: Optional[str] = None
    barangay: Optional[str] = None
    municipality: Optional[str] = None
    province: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class ProfileUpsertResponse(BaseModel):
    success: bool
    profile: ProfileResponse
