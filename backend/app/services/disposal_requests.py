import logging
import time
import uuid
from typing import Any, Optional

from app.models import DisposalRequest, Vehicle
from app.models.enums import (
    ApprovalStatus,
    ConditionRating,
    DisposalMethod,
    DisposalReason,
    DisposalStatus,
    OPEN_AUCTION_STATUSES,
    VehicleStatus,
)
from app.services.errors import InvalidStateError, NotFoundError, ValidationError
from app.services.gateway import PersistenceGateway, utcnow
from app.services.vehicle_status import sync_vehicle_status

logger = logging.getLogger(__name__)

# Fields an operator may edit through update(); lifecycle fields only move through the workflow
EDITABLE_FIELDS = (
    "disposal_reason",
    "recommended_method",
    "condition_rating",
    "current_mileage",
    "estimated_value",
    "notes",
)
_ENUM_FIELDS = {
    "disposal_reason": DisposalReason,
    "recommended_method": DisposalMethod,
    "condition_rating": ConditionRating,
}
_CLOSED_STATUSES = (DisposalStatus.TRANSFERRED, DisposalStatus.CANCELLED)


def _coerce_enum(name: str, value: Any):
    enum_cls = _ENUM_FIELDS[name]
    if value is None:
        raise ValidationError(f"{name} is required")
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(e.value for e in enum_cls)
        raise ValidationError(f"Invalid {name} '{value}'. Allowed: {allowed}") from None


def _check_non_negative(name: str, value: Any) -> None:
    if value is None:
        raise ValidationError(f"{name} is required")
    try:
        negative = value < 0
    except TypeError:
        raise ValidationError(f"{name} must be a number") from None
    if negative:
        raise ValidationError(f"{name.replace('_', ' ').capitalize()} cannot be negative")


def is_open(request: DisposalRequest) -> bool:
    return request.approval_status != ApprovalStatus.REJECTED and request.status not in _CLOSED_STATUSES


class DisposalRequestManager:
    """Creates, edits, approves, rejects and withdraws disposal requests."""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway
        self.store = gateway.disposal_requests

    def get(self, request_id: int) -> DisposalRequest:
        request = self.store.get_by_id(request_id)
        if not request:
            raise NotFoundError(f"Disposal request {request_id} not found")
        return request

    def list_requests(self, status=None, approval_status=None, vehicle_id=None) -> list[DisposalRequest]:
        return self.store.get_all(status=status, approval_status=approval_status, vehicle_id=vehicle_id)

    def _get_pending(self, request_id: int) -> DisposalRequest:
        request = self.store.get_by_id(request_id)
        if not request or request.approval_status != ApprovalStatus.PENDING:
            raise NotFoundError(f"No pending disposal request {request_id}")
        return request

    def create_request(self, fields: dict[str, Any]) -> DisposalRequest:
        vehicle_id = fields.get("vehicle_id")
        vehicle: Optional[Vehicle] = self.gateway.vehicles.get_by_id(vehicle_id) if vehicle_id else None
        if vehicle is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        values = {name: _coerce_enum(name, fields.get(name)) for name in _ENUM_FIELDS}
        _check_non_negative("current_mileage", fields.get("current_mileage"))
        _check_non_negative("estimated_value", fields.get("estimated_value"))
        requested_by = (fields.get("requested_by") or "").strip()
        if not requested_by:
            raise ValidationError("requested_by is required")
        if any(is_open(r) for r in self.store.get_all(vehicle_id=vehicle.id)):
            raise ValidationError(
                f"Vehicle {vehicle.registration_number} already has an open disposal request"
            )
        request = DisposalRequest(
            disposal_number=fields.get("disposal_number") or f"DSP-{int(time.time() * 1000)}-{uuid.uuid4().hex[:4].upper()}",
            vehicle_id=vehicle.id,
            current_mileage=fields["current_mileage"],
            estimated_value=fields["estimated_value"],
            requested_by=requested_by,
            request_date=fields.get("request_date") or utcnow(),
            notes=fields.get("notes"),
            approval_status=ApprovalStatus.PENDING,
            status=DisposalStatus.PENDING_APPROVAL,
            **values,
        )
        self.store.create(request)
        logger.info("disposal request created: id=%s number=%s vehicle_id=%s", request.id, request.disposal_number, vehicle.id)
        return request

    def update(self, request_id: int, fields: dict[str, Any]) -> tuple[DisposalRequest, dict[str, Any]]:
        """Edit descriptive fields. Returns the request and the applied delta."""
        request = self.get(request_id)
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        changes: dict[str, Any] = {}
        for name, value in fields.items():
            if name in _ENUM_FIELDS:
                value = _coerce_enum(name, value)
            elif name in ("current_mileage", "estimated_value"):
                _check_non_negative(name, value)
            if getattr(request, name) != value:
                changes[name] = value
        if request.approval_status != ApprovalStatus.PENDING and changes:
            # Allowed as before; decided requests are not locked
            logger.warning(
                "editing %s disposal request id=%s fields=%s",
                request.approval_status.value, request.id, sorted(changes),
            )
        if changes:
            self.store.update(request, **changes)
        return request, changes

    # approve/reject/cancel return the vehicle as left by the status sync, or None if the sync failed

    def approve(self, request_id: int, approver_id: str) -> tuple[DisposalRequest, Optional[Vehicle]]:
        request = self._get_pending(request_id)
        self.store.update(
            request,
            approval_status=ApprovalStatus.APPROVED,
            status=DisposalStatus.LISTED,
            approved_by=approver_id,
            approval_date=utcnow(),
        )
        vehicle = sync_vehicle_status(self.gateway.vehicles, request.vehicle_id, VehicleStatus.DISPOSED)
        return request, vehicle

    def reject(self, request_id: int, rejecter_id: str, reason: Optional[str]) -> tuple[DisposalRequest, Optional[Vehicle]]:
        if not reason or not reason.strip():
            raise ValidationError("Please provide a rejection reason")
        request = self._get_pending(request_id)
        self.store.update(
            request,
            approval_status=ApprovalStatus.REJECTED,
            rejected_by=rejecter_id,
            rejection_date=utcnow(),
            rejection_reason=reason.strip(),
        )
        vehicle = sync_vehicle_status(self.gateway.vehicles, request.vehicle_id, VehicleStatus.ACTIVE)
        return request, vehicle

    def cancel(self, request_id: int) -> tuple[DisposalRequest, Optional[Vehicle]]:
        request = self.get(request_id)
        if not is_open(request):
            raise InvalidStateError(
                f"Disposal request {request.disposal_number} is {self.describe(request)} and cannot be cancelled"
            )
        if any(a.auction_status in OPEN_AUCTION_STATUSES for a in self.gateway.auctions.get_by_disposal_id(request.id)):
            raise InvalidStateError("Cancel the open auction before withdrawing the disposal request")
        self.store.update(request, status=DisposalStatus.CANCELLED)
        vehicle = sync_vehicle_status(self.gateway.vehicles, request.vehicle_id, VehicleStatus.ACTIVE)
        return request, vehicle

    def set_status(self, request: DisposalRequest, status: DisposalStatus) -> DisposalRequest:
        return self.store.update(request, status=status)

    @staticmethod
    def describe(request: DisposalRequest) -> str:
        if request.approval_status == ApprovalStatus.REJECTED:
            return "rejected"
        return request.status.value.replace("_", " ")
