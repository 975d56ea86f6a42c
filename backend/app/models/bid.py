from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, ForeignKey, Float
from sqlalchemy.orm import relationship

from app.models.base import Base


class Bid(Base):
    """A bid on a disposal auction. Rows are appended, never updated or deleted."""
    __tablename__ = "disposal_bids"

    id = Column(Integer, primary_key=True, index=True)
    auction_id = Column(Integer, ForeignKey("disposal_auctions.id"), nullable=False, index=True)
    bidder_name = Column(String(255), nullable=False)
    bidder_contact = Column(String(255), nullable=False)
    bid_amount = Column(Float, nullable=False)
    bid_date = Column(DateTime(timezone=True), nullable=False)
    is_valid = Column(Boolean, default=True, nullable=False)
    notes = Column(Text, nullable=True)

    auction = relationship("DisposalAuction", back_populates="bids")
