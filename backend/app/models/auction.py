from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.models.base import Base
from app.models.enums import AuctionStatus, AuctionType, enum_column_type


class DisposalAuction(Base):
    __tablename__ = "disposal_auctions"

    id = Column(Integer, primary_key=True, index=True)
    disposal_id = Column(Integer, ForeignKey("disposal_requests.id"), nullable=False, index=True)
    auction_type = Column(enum_column_type(AuctionType), nullable=False)
    starting_price = Column(Float, nullable=False)
    reserve_price = Column(Float, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)  # informational; nothing closes the auction on this date
    auction_status = Column(enum_column_type(AuctionStatus), default=AuctionStatus.SCHEDULED, nullable=False)
    winner_id = Column(Integer, nullable=True)  # id of the winning Bid, set on close
    winning_bid = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    disposal_request = relationship("DisposalRequest", back_populates="auctions")
    bids = relationship("Bid", back_populates="auction", order_by="Bid.id")
