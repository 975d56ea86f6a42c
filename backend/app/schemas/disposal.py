from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.enums import (
    ApprovalStatus,
    ConditionRating,
    DisposalMethod,
    DisposalReason,
    DisposalStatus,
)


class DisposalRequestBase(BaseModel):
    disposal_reason: DisposalReason
    recommended_method: DisposalMethod
    condition_rating: ConditionRating
    current_mileage: int
    estimated_value: float
    notes: Optional[str] = None


class DisposalRequestCreate(DisposalRequestBase):
    vehicle_id: int
    requested_by: str
    disposal_number: Optional[str] = None  # generated as DSP-<timestamp> when omitted
    request_date: Optional[datetime] = None


class DisposalRequestPatch(BaseModel):
    disposal_reason: Optional[DisposalReason] = None
    recommended_method: Optional[DisposalMethod] = None
    condition_rating: Optional[ConditionRating] = None
    current_mileage: Optional[int] = None
    estimated_value: Optional[float] = None
    notes: Optional[str] = None


class DisposalRequestResponse(DisposalRequestBase):
    id: int
    disposal_number: str
    vehicle_id: int
    requested_by: str
    request_date: datetime
    approval_status: ApprovalStatus
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    status: DisposalStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApproveBody(BaseModel):
    approved_by: str


class RejectBody(BaseModel):
    rejected_by: str
    rejection_reason: Optional[str] = None  # required; checked by the workflow so the message is readable


class DisposalAuditEventResponse(BaseModel):
    id: int
    disposal_id: int
    auction_id: Optional[int] = None
    event: str
    summary: str
    actor: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DisposalSummary(BaseModel):
    pending_requests: int
    active_auctions: int
    completed_disposals: int
    total_revenue: float
