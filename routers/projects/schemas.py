"""Projects schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

EditableStatus = Literal["draft", "pending", "published", "closed", "completed"]


class ProjectCreateRequest(BaseModel):
    details: Dict[str, Any] = Field(default_factory=dict)
    status: EditableStatus = "pending"


class ProjectUpdateRequest(BaseModel):
    details: Optional[Dict[str, Any]] = None
    status: Optional[EditableStatus] = None


class ProjectCreateResponse(BaseModel):
    success: bool
    project_id: int


class FundingEntry(BaseModel):
    investor_id: int
    investor_name: Optional[str] = None
    amount: float
    updated_at: Optional[datetime] = None


class FundingSummary(BaseModel):
    total_funded: float
    investors: List[FundingEntry]


class InvestmentRequestEntry(BaseModel):
    investor_id: int
    investor_name: Optional[str] = None
    amount: float
    status: str
    annual_income: float
    verification_status: Optional[str] = None
    max_percentage: int
    max_amount: float
    used_default_income: bool
    admin_comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime


class InterestRequestEntry(BaseModel):
    investor_id: int
    investor_name: Optional[str] = None
    message: Optional[str] = None
    status: str
    decided_at: Optional[datetime] = None
    created_at: datetime


class ProjectResponse(BaseModel):
    id: int
    owner_id: int
    owner_name: Optional[str] = None
    status: str
    approval_status: str
    admin_feedback: Optional[str] = None
    details: Dict[str, Any]
    funding: FundingSummary
    investment_requests: Optional[List[InvestmentRequestEntry]] = None
    interest_requests: Optional[List[InterestRequestEntry]] = None
    created_at: datetime
    updated_at: datetime


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]


class InterestCreateRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=2000)


class InvestRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)


class InvestResponse(BaseModel):
    success: bool
    project_id: int
    amount: float
    status: str
    max_percentage: int
    max_amount: float


class InvestmentReviewRequest(BaseModel):
    action: Literal["approve", "reject"]
    comment: Optional[str] = Field(None, max_length=2000)


class InvestmentReviewResponse(BaseModel):
    success: bool
    project_id: int
    investor_id: int
    status: str
    new_balance: Optional[float] = None
    total_funded: Optional[float] = None


class InvestmentRequestListItem(BaseModel):
    project_id: int
    project_title: Optional[str] = None
    borrower_id: int
    borrower_name: Optional[str] = None
    investor_id: int
    investor_name: Optional[str] = None
    amount: float
    status: str
    max_percentage: int
    max_amount: float
    admin_comment: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime


class InvestmentRequestListResponse(BaseModel):
    requests: List[InvestmentRequestListItem]


class ProjectReviewRequest(BaseModel):
    action: Literal["approve", "reject"]
    feedback: Optional[str] = Field(None, max_length=5000)


class CalendarEntry(BaseModel):
    id: int
    title: Optional[str] = None
    owner_name: Optional[str] = None
    status: str
    approval_status: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    created_at: datetime
