from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.models.base import Base


class DisposalAuditEvent(Base):
    """Audit trail: who did what on a disposal request (or its auction) and when."""
    __tablename__ = "disposal_audit_events"

    id = Column(Integer, primary_key=True, index=True)
    disposal_id = Column(Integer, ForeignKey("disposal_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    auction_id = Column(Integer, nullable=True)
    event = Column(String(50), nullable=False)  # DisposalRequestApproved, BidPlaced, AuctionClosed, ...
    summary = Column(Text, nullable=False)
    actor = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    disposal_request = relationship("DisposalRequest", back_populates="audit_events")
