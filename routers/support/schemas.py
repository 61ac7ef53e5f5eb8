"""Support schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

TicketCategory = Literal["general", "account", "investment", "project", "payment", "technical", "other"]
TicketStatus = Literal["open", "in_progress", "resolved", "closed"]


class TicketCreateRequest(BaseModel):
    category: TicketCategory = "general"
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)


class TicketUpdateRequest(BaseModel):
    status: Optional[TicketStatus] = None
    admin_reply: Optional[str] = Field(None, min_length=1, max_length=5000)


class TicketResponse(BaseModel):
    id: int
    user_id: int
    category: str
    subject: str
    message: str
    status: str
    admin_reply: Optional[str] = None
    replied_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TicketListResponse(BaseModel):
    tickets: List[TicketResponse]
