import logging
from typing import Iterator, Optional

from app.models import Bid, DisposalAuction
from app.models.enums import AuctionStatus
from app.services.errors import InvalidStateError, ValidationError
from app.services.gateway import BidStore, utcnow

logger = logging.getLogger(__name__)

# Fixed for every auction; not a per-auction setting
MINIMUM_BID_INCREMENT = 1000


class BidLedger:
    """Append-only record of bids per auction."""

    def __init__(self, store: BidStore):
        self.store = store

    def bids_for(self, auction_id: int) -> Iterator[Bid]:
        """Highest first. Each call runs a fresh query, so the sequence can be restarted."""
        return self.store.get_by_auction_id(auction_id)

    def highest_bid(self, auction_id: int) -> Optional[Bid]:
        return self.store.highest(auction_id)

    def summary(self, auction_id: int) -> tuple[float, int]:
        """(current_highest_bid, total_bids); 0 when there are no bids."""
        top = self.highest_bid(auction_id)
        return (top.bid_amount if top else 0.0), self.store.count(auction_id)

    def minimum_bid(self, auction: DisposalAuction) -> float:
        top = self.highest_bid(auction.id)
        current_highest = top.bid_amount if top else 0.0
        return max(auction.starting_price, current_highest + MINIMUM_BID_INCREMENT)

    def place_bid(
        self,
        auction: DisposalAuction,
        bidder_name: str,
        bidder_contact: str,
        bid_amount: float,
        notes: Optional[str] = None,
    ) -> Bid:
        if auction.auction_status != AuctionStatus.ACTIVE:
            raise InvalidStateError(
                f"Bids can only be placed on an active auction (auction is {auction.auction_status.value})"
            )
        bidder_name = (bidder_name or "").strip()
        bidder_contact = (bidder_contact or "").strip()
        if not bidder_name:
            raise ValidationError("Bidder name is required")
        if not bidder_contact:
            raise ValidationError("Bidder contact is required")
        if bid_amount is None or bid_amount <= 0:
            raise ValidationError("Bid amount must be greater than zero")
        minimum = self.minimum_bid(auction)
        if bid_amount < minimum:
            raise ValidationError(f"Minimum bid amount is {minimum:,.2f}")
        bid = Bid(
            auction_id=auction.id,
            bidder_name=bidder_name,
            bidder_contact=bidder_contact,
            bid_amount=bid_amount,
            bid_date=utcnow(),
            is_valid=True,
            notes=(notes or "").strip() or None,
        )
        self.store.create(bid)
        logger.info("bid placed: auction_id=%s bid_id=%s amount=%s", auction.id, bid.id, bid.bid_amount)
        return bid
