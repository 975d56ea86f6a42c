"""
Persistence gateway for the disposal workflow.

Thin stores over one SQLAlchemy session. Every write commits on its own, so a
workflow that touches several entities is a sequence of independent commits,
not a transaction. Database failures are rolled back and surfaced as
DependencyError.
"""
import logging
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Bid, DisposalAuction, DisposalAuditEvent, DisposalRequest, Vehicle
from app.models.enums import VehicleStatus
from app.services.errors import DependencyError, NotFoundError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Store:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, *objs):
        try:
            for obj in objs:
                self.db.add(obj)
            self.db.commit()
            for obj in objs:
                self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("persistence failure in %s: %s", type(self).__name__, e)
            raise DependencyError("The database could not save the change. Please try again.") from e

    def _query(self, stmt):
        try:
            return self.db.execute(stmt).scalars()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("query failure in %s: %s", type(self).__name__, e)
            raise DependencyError("The database could not be read. Please try again.") from e


class DisposalRequestStore(_Store):
    def create(self, request: DisposalRequest) -> DisposalRequest:
        self._commit(request)
        return request

    def update(self, request: DisposalRequest, **fields) -> DisposalRequest:
        for key, value in fields.items():
            setattr(request, key, value)
        self._commit(request)
        return request

    def get_by_id(self, request_id: int) -> Optional[DisposalRequest]:
        return self._query(select(DisposalRequest).where(DisposalRequest.id == request_id)).first()

    def get_all(self, status=None, approval_status=None, vehicle_id=None) -> list[DisposalRequest]:
        stmt = select(DisposalRequest)
        if status is not None:
            stmt = stmt.where(DisposalRequest.status == status)
        if approval_status is not None:
            stmt = stmt.where(DisposalRequest.approval_status == approval_status)
        if vehicle_id is not None:
            stmt = stmt.where(DisposalRequest.vehicle_id == vehicle_id)
        return list(self._query(stmt.order_by(DisposalRequest.id.desc())).all())

    def count(self, **filters) -> int:
        stmt = select(func.count(DisposalRequest.id))
        for key, value in filters.items():
            stmt = stmt.where(getattr(DisposalRequest, key) == value)
        return self._query(stmt).one() or 0


class AuctionStore(_Store):
    def create(self, auction: DisposalAuction) -> DisposalAuction:
        self._commit(auction)
        return auction

    def update(self, auction: DisposalAuction, **fields) -> DisposalAuction:
        for key, value in fields.items():
            setattr(auction, key, value)
        self._commit(auction)
        return auction

    def get_by_id(self, auction_id: int) -> Optional[DisposalAuction]:
        return self._query(select(DisposalAuction).where(DisposalAuction.id == auction_id)).first()

    def get_by_disposal_id(self, disposal_id: int) -> list[DisposalAuction]:
        stmt = (
            select(DisposalAuction)
            .where(DisposalAuction.disposal_id == disposal_id)
            .order_by(DisposalAuction.id.desc())
        )
        return list(self._query(stmt).all())

    def count(self, **filters) -> int:
        stmt = select(func.count(DisposalAuction.id))
        for key, value in filters.items():
            stmt = stmt.where(getattr(DisposalAuction, key) == value)
        return self._query(stmt).one() or 0

    def total_winning_bids(self) -> float:
        stmt = select(func.coalesce(func.sum(DisposalAuction.winning_bid), 0))
        return float(self._query(stmt).one())


class BidStore(_Store):
    """Append-only: no update or delete."""

    def create(self, bid: Bid) -> Bid:
        self._commit(bid)
        return bid

    def get_by_auction_id(self, auction_id: int) -> Iterator[Bid]:
        stmt = (
            select(Bid)
            .where(Bid.auction_id == auction_id)
            .order_by(Bid.bid_amount.desc(), Bid.id)
        )
        yield from self._query(stmt)

    def highest(self, auction_id: int) -> Optional[Bid]:
        return next(self.get_by_auction_id(auction_id), None)

    def count(self, auction_id: int) -> int:
        return self._query(select(func.count(Bid.id)).where(Bid.auction_id == auction_id)).one() or 0


class VehicleStore(_Store):
    def create(self, vehicle: Vehicle) -> Vehicle:
        self._commit(vehicle)
        return vehicle

    def get_by_id(self, vehicle_id: int) -> Optional[Vehicle]:
        return self._query(select(Vehicle).where(Vehicle.id == vehicle_id)).first()

    def get_by_registration(self, registration_number: str) -> Optional[Vehicle]:
        return self._query(select(Vehicle).where(Vehicle.registration_number == registration_number)).first()

    def get_all(self) -> list[Vehicle]:
        return list(self._query(select(Vehicle).order_by(Vehicle.id)).all())

    def update(self, vehicle_id: int, status: VehicleStatus) -> Vehicle:
        vehicle = self.get_by_id(vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        vehicle.status = status
        self._commit(vehicle)
        return vehicle


class AuditStore(_Store):
    def create(self, event: DisposalAuditEvent) -> DisposalAuditEvent:
        self._commit(event)
        return event

    def for_request(self, disposal_id: int) -> list[DisposalAuditEvent]:
        stmt = (
            select(DisposalAuditEvent)
            .where(DisposalAuditEvent.disposal_id == disposal_id)
            .order_by(DisposalAuditEvent.id)
        )
        return list(self._query(stmt).all())


class PersistenceGateway:
    """Bundles the stores the workflow depends on. Stores can be swapped individually."""

    def __init__(
        self,
        db: Session,
        disposal_requests: Optional[DisposalRequestStore] = None,
        auctions: Optional[AuctionStore] = None,
        bids: Optional[BidStore] = None,
        vehicles: Optional[VehicleStore] = None,
        audit: Optional[AuditStore] = None,
    ):
        self.db = db
        self.disposal_requests = disposal_requests or DisposalRequestStore(db)
        self.auctions = auctions or AuctionStore(db)
        self.bids = bids or BidStore(db)
        self.vehicles = vehicles or VehicleStore(db)
        self.audit = audit or AuditStore(db)
