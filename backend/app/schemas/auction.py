from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel

from app.models.enums import AuctionStatus, AuctionType


class AuctionCreate(BaseModel):
    auction_type: AuctionType = AuctionType.PUBLIC
    starting_price: float
    reserve_price: Optional[float] = None
    start_date: date
    end_date: date  # at least 7 days after start_date


class AuctionResponse(BaseModel):
    id: int
    disposal_id: int
    auction_type: AuctionType
    starting_price: float
    reserve_price: Optional[float] = None
    start_date: date
    end_date: date
    auction_status: AuctionStatus
    winner_id: Optional[int] = None
    winning_bid: Optional[float] = None
    # Derived from the bid ledger on read
    current_highest_bid: float = 0.0
    total_bids: int = 0
    minimum_next_bid: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BidCreate(BaseModel):
    bidder_name: str
    bidder_contact: str
    bid_amount: float
    notes: Optional[str] = None


class BidResponse(BaseModel):
    id: int
    auction_id: int
    bidder_name: str
    bidder_contact: str
    bid_amount: float
    bid_date: datetime
    is_valid: bool
    notes: Optional[str] = None

    class Config:
        from_attributes = True
