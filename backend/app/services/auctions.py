import logging
from datetime import date, datetime, timedelta
from typing import Any, Optional

from app.models import DisposalAuction, DisposalRequest
from app.models.enums import (
    ApprovalStatus,
    AuctionStatus,
    AuctionType,
    DisposalStatus,
    OPEN_AUCTION_STATUSES,
)
from app.services.bid_ledger import BidLedger
from app.services.errors import (
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ReserveNotMetError,
    ValidationError,
)
from app.services.gateway import AuctionStore

logger = logging.getLogger(__name__)

MINIMUM_AUCTION_DAYS = 7

# action -> (required current status, resulting status)
TRANSITIONS = {
    "start": (AuctionStatus.SCHEDULED, AuctionStatus.ACTIVE),
    "close": (AuctionStatus.ACTIVE, AuctionStatus.CLOSED),
    "award": (AuctionStatus.CLOSED, AuctionStatus.AWARDED),
    "cancel": (AuctionStatus.SCHEDULED, AuctionStatus.CANCELLED),
}


def _as_date(name: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a date (YYYY-MM-DD)") from None


class AuctionLifecycleManager:
    """scheduled -> active -> closed -> awarded; scheduled -> cancelled."""

    def __init__(self, store: AuctionStore, ledger: BidLedger):
        self.store = store
        self.ledger = ledger

    def get(self, auction_id: int) -> DisposalAuction:
        auction = self.store.get_by_id(auction_id)
        if not auction:
            raise NotFoundError(f"Auction {auction_id} not found")
        return auction

    def list_for_request(self, disposal_id: int) -> list[DisposalAuction]:
        return self.store.get_by_disposal_id(disposal_id)

    def _check_transition(self, auction: DisposalAuction, action: str) -> AuctionStatus:
        required, target = TRANSITIONS[action]
        if auction.auction_status != required:
            raise InvalidTransitionError("auction", auction.auction_status.value, action)
        return target

    def create_auction(self, request: DisposalRequest, fields: dict[str, Any]) -> DisposalAuction:
        if request.approval_status != ApprovalStatus.APPROVED or request.status != DisposalStatus.LISTED:
            raise InvalidStateError(
                f"Disposal request {request.disposal_number} must be approved and listed before it can be auctioned"
            )
        if any(a.auction_status in OPEN_AUCTION_STATUSES for a in self.store.get_by_disposal_id(request.id)):
            raise InvalidStateError(f"Disposal request {request.disposal_number} already has an open auction")

        try:
            auction_type = AuctionType(fields.get("auction_type") or AuctionType.PUBLIC)
        except ValueError:
            raise ValidationError(f"Invalid auction_type '{fields.get('auction_type')}'") from None
        start_date = _as_date("start_date", fields.get("start_date"))
        end_date = _as_date("end_date", fields.get("end_date"))
        if end_date - start_date < timedelta(days=MINIMUM_AUCTION_DAYS):
            raise ValidationError(f"Auction duration must be at least {MINIMUM_AUCTION_DAYS} days")
        starting_price = fields.get("starting_price")
        if starting_price is None or starting_price <= 0:
            raise ValidationError("Starting price must be greater than zero")
        reserve_price: Optional[float] = fields.get("reserve_price")
        if reserve_price is not None and reserve_price < starting_price:
            raise ValidationError("Reserve price must be greater than or equal to starting price")

        auction = DisposalAuction(
            disposal_id=request.id,
            auction_type=auction_type,
            starting_price=starting_price,
            reserve_price=reserve_price,
            start_date=start_date,
            end_date=end_date,
            auction_status=AuctionStatus.SCHEDULED,
        )
        self.store.create(auction)
        logger.info("auction created: id=%s disposal_id=%s type=%s", auction.id, request.id, auction_type.value)
        return auction

    def start(self, auction_id: int) -> DisposalAuction:
        auction = self.get(auction_id)
        target = self._check_transition(auction, "start")
        return self.store.update(auction, auction_status=target)

    def close(self, auction_id: int) -> DisposalAuction:
        auction = self.get(auction_id)
        target = self._check_transition(auction, "close")
        winning = self.ledger.highest_bid(auction.id)
        if winning is None:
            raise InvalidStateError("Cannot close auction with no bids")
        if auction.reserve_price is not None and winning.bid_amount < auction.reserve_price:
            raise ReserveNotMetError(auction.reserve_price, winning.bid_amount)
        self.store.update(
            auction,
            auction_status=target,
            winner_id=winning.id,
            winning_bid=winning.bid_amount,
        )
        logger.info("auction closed: id=%s winner_bid_id=%s amount=%s", auction.id, winning.id, winning.bid_amount)
        return auction

    def award(self, auction_id: int) -> DisposalAuction:
        auction = self.get(auction_id)
        target = self._check_transition(auction, "award")
        return self.store.update(auction, auction_status=target)

    def cancel(self, auction_id: int) -> DisposalAuction:
        auction = self.get(auction_id)
        target = self._check_transition(auction, "cancel")
        return self.store.update(auction, auction_status=target)
