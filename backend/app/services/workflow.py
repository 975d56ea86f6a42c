"""
Disposal workflow: the composition root behind every disposal endpoint.

Cross-entity actions (auction + parent request) are run as a StepSequence:
independent commits in order, with no compensation. If a follow-up step
fails after the primary step committed, the caller gets a DependencyError
naming what was done, and `reconcile_request` puts the request status back
in line with its auction.
"""
import enum
import logging
from datetime import date, datetime
from typing import Any, Callable, Iterator, Optional

from app.models import Bid, DisposalAuction, DisposalRequest, Vehicle
from app.models.enums import ApprovalStatus, AuctionStatus, DisposalStatus, VehicleStatus
from app.services.auctions import AuctionLifecycleManager
from app.services.bid_ledger import BidLedger
from app.services.disposal_requests import DisposalRequestManager
from app.services.errors import DependencyError, DisposalError, InvalidStateError
from app.services.events import AuditTrail, DomainEvent, EventBus, notify
from app.services.gateway import PersistenceGateway
from app.services.vehicle_status import sync_vehicle_status

logger = logging.getLogger(__name__)

# Request status implied by the state of its latest auction
REQUEST_STATUS_FOR_AUCTION = {
    AuctionStatus.SCHEDULED: DisposalStatus.BIDDING_OPEN,
    AuctionStatus.ACTIVE: DisposalStatus.BIDDING_OPEN,
    AuctionStatus.CLOSED: DisposalStatus.SOLD,
    AuctionStatus.AWARDED: DisposalStatus.TRANSFERRED,
    AuctionStatus.CANCELLED: DisposalStatus.LISTED,
}


def _money(amount: Optional[float]) -> str:
    return f"{amount or 0:,.2f}"


def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _delta(**fields) -> dict[str, Any]:
    return {k: _plain(v) for k, v in fields.items()}


def _vehicle_delta(vehicle: Optional[Vehicle]) -> dict[str, Any]:
    return {"vehicle_status": vehicle.status} if vehicle is not None else {}


def _vehicle_note(vehicle: Optional[Vehicle]) -> str:
    if vehicle is None:
        return "vehicle status was not updated"
    return f"vehicle is {vehicle.status.value}"


class StepSequence:
    """Runs dependent writes one after another and reports partial completion."""

    def __init__(self, action: str):
        self.action = action
        self.completed: list[str] = []

    def primary(self, label: str, fn: Callable, *args):
        result = fn(*args)
        self.completed.append(label)
        return result

    def follow_up(self, label: str, fn: Callable, *args):
        try:
            result = fn(*args)
        except DisposalError as e:
            logger.error(
                "%s: step '%s' failed after %s; manual reconciliation required: %s",
                self.action, label, self.completed, e,
            )
            done = ", ".join(self.completed)
            raise DependencyError(
                f"{self.action} was only partly applied ({done} done; {label} failed: {e.message}). "
                "Reconcile the disposal request to repair its status.",
                completed_steps=tuple(self.completed),
            ) from e
        self.completed.append(label)
        return result


class DisposalWorkflow:
    def __init__(self, gateway: PersistenceGateway, events: Optional[EventBus] = None):
        self.gateway = gateway
        self.requests = DisposalRequestManager(gateway)
        self.ledger = BidLedger(gateway.bids)
        self.auctions = AuctionLifecycleManager(gateway.auctions, self.ledger)
        self.events = events if events is not None else EventBus([notify, AuditTrail(gateway.audit)])

    # -- queries -----------------------------------------------------------

    def list_requests(self, status=None, approval_status=None, vehicle_id=None) -> list[DisposalRequest]:
        return self.requests.list_requests(status=status, approval_status=approval_status, vehicle_id=vehicle_id)

    def get_request(self, request_id: int) -> DisposalRequest:
        return self.requests.get(request_id)

    def list_auctions_for_request(self, disposal_id: int) -> list[DisposalAuction]:
        self.requests.get(disposal_id)
        return self.auctions.list_for_request(disposal_id)

    def get_auction(self, auction_id: int) -> DisposalAuction:
        return self.auctions.get(auction_id)

    def list_bids_for_auction(self, auction_id: int) -> Iterator[Bid]:
        self.auctions.get(auction_id)
        return self.ledger.bids_for(auction_id)

    def highest_bid(self, auction_id: int) -> Optional[Bid]:
        self.auctions.get(auction_id)
        return self.ledger.highest_bid(auction_id)

    def audit_trail(self, disposal_id: int):
        self.requests.get(disposal_id)
        return self.gateway.audit.for_request(disposal_id)

    def summary(self) -> dict[str, Any]:
        """Dashboard counters, plus revenue summed over every recorded winning bid."""
        return {
            "pending_requests": self.gateway.disposal_requests.count(approval_status=ApprovalStatus.PENDING),
            "active_auctions": self.gateway.auctions.count(auction_status=AuctionStatus.ACTIVE),
            "completed_disposals": self.gateway.disposal_requests.count(status=DisposalStatus.TRANSFERRED),
            "total_revenue": self.gateway.auctions.total_winning_bids(),
        }

    # -- disposal request commands -----------------------------------------

    def _publish(self, name: str, title: str, summary: str, entity, disposal_id: int,
                 actor: Optional[str], delta: dict[str, Any], auction_id: Optional[int] = None) -> None:
        entity_type = {
            DisposalRequest: "disposal_request",
            DisposalAuction: "auction",
            Bid: "bid",
        }[type(entity)]
        self.events.publish(DomainEvent(
            name=name,
            title=title,
            summary=summary,
            entity_type=entity_type,
            entity_id=entity.id,
            disposal_id=disposal_id,
            auction_id=auction_id,
            actor=actor,
            delta=delta,
        ))

    def create_request(self, fields: dict[str, Any]) -> DisposalRequest:
        request = self.requests.create_request(fields)
        self._publish(
            "DisposalRequestCreated", "Disposal Request Created",
            f"Created disposal request {request.disposal_number} for vehicle {request.vehicle_id}",
            request, request.id, request.requested_by,
            _delta(status=request.status, approval_status=request.approval_status),
        )
        return request

    def update_request(self, request_id: int, fields: dict[str, Any], actor: Optional[str] = None) -> DisposalRequest:
        request, changes = self.requests.update(request_id, fields)
        if changes:
            self._publish(
                "DisposalRequestUpdated", "Disposal Request Updated",
                f"Updated disposal request {request.disposal_number}",
                request, request.id, actor, _delta(**changes),
            )
        return request

    def approve_request(self, request_id: int, approver_id: str) -> DisposalRequest:
        request, vehicle = self.requests.approve(request_id, approver_id)
        self._publish(
            "DisposalRequestApproved", "Request Approved",
            f"Approved disposal request {request.disposal_number}; {_vehicle_note(vehicle)}",
            request, request.id, approver_id,
            _delta(approval_status=request.approval_status, status=request.status, **_vehicle_delta(vehicle)),
        )
        return request

    def reject_request(self, request_id: int, rejecter_id: str, reason: Optional[str]) -> DisposalRequest:
        request, vehicle = self.requests.reject(request_id, rejecter_id, reason)
        self._publish(
            "DisposalRequestRejected", "Request Rejected",
            f"Rejected disposal request {request.disposal_number}: {request.rejection_reason}; {_vehicle_note(vehicle)}",
            request, request.id, rejecter_id,
            _delta(approval_status=request.approval_status, rejection_reason=request.rejection_reason,
                   **_vehicle_delta(vehicle)),
        )
        return request

    def cancel_request(self, request_id: int, actor: Optional[str] = None) -> DisposalRequest:
        request, vehicle = self.requests.cancel(request_id)
        self._publish(
            "DisposalRequestCancelled", "Disposal Request Cancelled",
            f"Withdrew disposal request {request.disposal_number}; {_vehicle_note(vehicle)}",
            request, request.id, actor, _delta(status=request.status, **_vehicle_delta(vehicle)),
        )
        return request

    def reconcile_request(self, request_id: int, actor: Optional[str] = None) -> DisposalRequest:
        """Re-derive request status (and vehicle status) from the latest auction after a partial failure."""
        request = self.requests.get(request_id)
        if request.approval_status != ApprovalStatus.APPROVED:
            raise InvalidStateError(
                f"Disposal request {request.disposal_number} is {self.requests.describe(request)}; "
                "only approved requests can be reconciled"
            )
        before = request.status
        if request.status != DisposalStatus.CANCELLED:
            auctions = self.auctions.list_for_request(request.id)
            expected = REQUEST_STATUS_FOR_AUCTION[auctions[0].auction_status] if auctions else DisposalStatus.LISTED
            if expected != request.status:
                self.requests.set_status(request, expected)
            sync_vehicle_status(self.gateway.vehicles, request.vehicle_id, VehicleStatus.DISPOSED)
        if before != request.status:
            logger.info("reconciled disposal request id=%s: %s -> %s", request.id, before.value, request.status.value)
            self._publish(
                "DisposalRequestReconciled", "Disposal Request Reconciled",
                f"Reconciled disposal request {request.disposal_number} from {before.value} to {request.status.value}",
                request, request.id, actor, _delta(status=request.status),
            )
        return request

    # -- auction commands --------------------------------------------------

    def create_auction(self, disposal_id: int, fields: dict[str, Any], actor: Optional[str] = None) -> DisposalAuction:
        request = self.requests.get(disposal_id)
        steps = StepSequence("Create auction")
        auction = steps.primary("auction created", self.auctions.create_auction, request, fields)
        steps.follow_up("request moved to bidding_open", self.requests.set_status, request, DisposalStatus.BIDDING_OPEN)
        self._publish(
            "AuctionCreated", "Auction Created",
            f"{auction.auction_type.value} auction created with starting price {_money(auction.starting_price)}",
            auction, disposal_id, actor,
            _delta(auction_status=auction.auction_status, starting_price=auction.starting_price,
                   reserve_price=auction.reserve_price, request_status=request.status),
            auction_id=auction.id,
        )
        return auction

    def start_auction(self, auction_id: int, actor: Optional[str] = None) -> DisposalAuction:
        auction = self.auctions.start(auction_id)
        self._publish(
            "AuctionStarted", "Auction Started",
            f"{auction.auction_type.value} auction is now active",
            auction, auction.disposal_id, actor, _delta(auction_status=auction.auction_status),
            auction_id=auction.id,
        )
        return auction

    def place_bid(self, auction_id: int, bidder_name: str, bidder_contact: str, bid_amount: float,
                  notes: Optional[str] = None, actor: Optional[str] = None) -> Bid:
        auction = self.auctions.get(auction_id)
        bid = self.ledger.place_bid(auction, bidder_name, bidder_contact, bid_amount, notes)
        self._publish(
            "BidPlaced", "Bid Submitted",
            f"Placed bid of {_money(bid.bid_amount)} by {bid.bidder_name}",
            bid, auction.disposal_id, actor or bid.bidder_name,
            _delta(bid_amount=bid.bid_amount, bidder_name=bid.bidder_name),
            auction_id=auction.id,
        )
        return bid

    def _bump_request(self, steps: StepSequence, auction: DisposalAuction, status: DisposalStatus) -> DisposalRequest:
        def move():
            return self.requests.set_status(self.requests.get(auction.disposal_id), status)
        return steps.follow_up(f"request moved to {status.value}", move)

    def close_auction(self, auction_id: int, actor: Optional[str] = None) -> DisposalAuction:
        steps = StepSequence("Close auction")
        auction = steps.primary("auction closed", self.auctions.close, auction_id)
        request = self._bump_request(steps, auction, DisposalStatus.SOLD)
        self._publish(
            "AuctionClosed", "Auction Closed",
            f"Closed auction with winning bid of {_money(auction.winning_bid)} (bid {auction.winner_id})",
            auction, auction.disposal_id, actor,
            _delta(auction_status=auction.auction_status, winner_id=auction.winner_id,
                   winning_bid=auction.winning_bid, request_status=request.status),
            auction_id=auction.id,
        )
        return auction

    def award_auction(self, auction_id: int, actor: Optional[str] = None) -> DisposalAuction:
        steps = StepSequence("Award auction")
        auction = steps.primary("auction awarded", self.auctions.award, auction_id)
        request = self._bump_request(steps, auction, DisposalStatus.TRANSFERRED)
        self._publish(
            "AuctionAwarded", "Auction Awarded",
            f"Awarded vehicle to winning bid {auction.winner_id} ({_money(auction.winning_bid)})",
            auction, auction.disposal_id, actor,
            _delta(auction_status=auction.auction_status, request_status=request.status),
            auction_id=auction.id,
        )
        return auction

    def cancel_auction(self, auction_id: int, actor: Optional[str] = None) -> DisposalAuction:
        steps = StepSequence("Cancel auction")
        auction = steps.primary("auction cancelled", self.auctions.cancel, auction_id)
        request = self._bump_request(steps, auction, DisposalStatus.LISTED)
        self._publish(
            "AuctionCancelled", "Auction Cancelled",
            f"Cancelled {auction.auction_type.value} auction",
            auction, auction.disposal_id, actor,
            _delta(auction_status=auction.auction_status, request_status=request.status),
            auction_id=auction.id,
        )
        return auction
