from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.models.base import Base
from app.models.enums import (
    ApprovalStatus,
    ConditionRating,
    DisposalMethod,
    DisposalReason,
    DisposalStatus,
    enum_column_type,
)


class DisposalRequest(Base):
    __tablename__ = "disposal_requests"

    id = Column(Integer, primary_key=True, index=True)
    disposal_number = Column(String(50), nullable=False, unique=True, index=True)  # e.g. DSP-1718000000000
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    disposal_reason = Column(enum_column_type(DisposalReason), nullable=False)
    recommended_method = Column(enum_column_type(DisposalMethod), nullable=False)
    condition_rating = Column(enum_column_type(ConditionRating), nullable=False)
    current_mileage = Column(Integer, nullable=False, default=0)
    estimated_value = Column(Float, nullable=False, default=0.0)
    requested_by = Column(String(100), nullable=False)
    request_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)

    approval_status = Column(enum_column_type(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False)
    approved_by = Column(String(100), nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(String(100), nullable=True)
    rejection_date = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    status = Column(enum_column_type(DisposalStatus), default=DisposalStatus.PENDING_APPROVAL, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    vehicle = relationship("Vehicle", back_populates="disposal_requests")
    # Schema allows many; the workflow keeps at most one non-terminal auction per request
    auctions = relationship("DisposalAuction", back_populates="disposal_request", order_by="DisposalAuction.id")
    audit_events = relationship(
        "DisposalAuditEvent", back_populates="disposal_request", order_by="DisposalAuditEvent.id"
    )
