import logging

import pytest

from app.models.enums import ApprovalStatus, DisposalStatus, VehicleStatus
from app.services.errors import DependencyError, InvalidStateError, NotFoundError, ValidationError
from app.services.gateway import PersistenceGateway, VehicleStore
from app.services.workflow import DisposalWorkflow
from conftest import RecordedEvents, auction_fields, request_fields


class FailingVehicleStore(VehicleStore):
    def update(self, vehicle_id, status):
        raise DependencyError("vehicle service unavailable")


def test_create_request_starts_pending(workflow, vehicle):
    request = workflow.create_request(request_fields(vehicle.id))
    assert request.status == DisposalStatus.PENDING_APPROVAL
    assert request.approval_status == ApprovalStatus.PENDING
    assert request.disposal_number.startswith("DSP-")
    assert request.request_date is not None
    assert vehicle.status == VehicleStatus.ACTIVE


def test_create_request_keeps_given_disposal_number(workflow, vehicle):
    request = workflow.create_request(request_fields(vehicle.id, disposal_number="DSP-2025-001"))
    assert request.disposal_number == "DSP-2025-001"


@pytest.mark.parametrize("field,value", [
    ("current_mileage", -1),
    ("estimated_value", -0.01),
    ("disposal_reason", "stolen"),
    ("condition_rating", None),
    ("requested_by", "  "),
    ("current_mileage", "lots"),
    ("estimated_value", [50000]),
])
def test_create_request_rejects_bad_fields(workflow, vehicle, field, value):
    with pytest.raises(ValidationError):
        workflow.create_request(request_fields(vehicle.id, **{field: value}))
    assert workflow.list_requests() == []


def test_create_request_for_unknown_vehicle(workflow):
    with pytest.raises(NotFoundError):
        workflow.create_request(request_fields(9999))


def test_one_open_request_per_vehicle(workflow, pending_request, vehicle):
    with pytest.raises(ValidationError, match="already has an open disposal request"):
        workflow.create_request(request_fields(vehicle.id))

    workflow.reject_request(pending_request.id, "admin-1", "Still serviceable")
    again = workflow.create_request(request_fields(vehicle.id))
    assert again.id != pending_request.id


def test_approve_lists_request_and_disposes_vehicle(workflow, gateway, pending_request, vehicle):
    request = workflow.approve_request(pending_request.id, "admin-1")
    assert request.approval_status == ApprovalStatus.APPROVED
    assert request.status == DisposalStatus.LISTED
    assert request.approved_by == "admin-1"
    assert request.approval_date is not None
    assert gateway.vehicles.get_by_id(vehicle.id).status == VehicleStatus.DISPOSED


def test_approve_twice_is_not_found(workflow, listed_request):
    with pytest.raises(NotFoundError):
        workflow.approve_request(listed_request.id, "admin-2")


def test_approve_missing_request(workflow):
    with pytest.raises(NotFoundError):
        workflow.approve_request(404, "admin-1")


def test_approve_survives_vehicle_update_failure(db, pending_request, vehicle, caplog):
    gateway = PersistenceGateway(db, vehicles=FailingVehicleStore(db))
    workflow = DisposalWorkflow(gateway)
    events = RecordedEvents()
    workflow.events.subscribe(events)
    with caplog.at_level(logging.WARNING, logger="app.services.vehicle_status"):
        request = workflow.approve_request(pending_request.id, "admin-1")
    assert request.approval_status == ApprovalStatus.APPROVED
    assert request.status == DisposalStatus.LISTED
    assert gateway.vehicles.get_by_id(vehicle.id).status == VehicleStatus.ACTIVE
    assert "Failed to update vehicle status" in caplog.text
    assert events[-1].delta == {"approval_status": "approved", "status": "listed"}
    assert events[-1].summary.endswith("vehicle status was not updated")


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_reject_requires_reason(workflow, pending_request, reason):
    with pytest.raises(ValidationError, match="rejection reason"):
        workflow.reject_request(pending_request.id, "admin-1", reason)
    assert workflow.get_request(pending_request.id).approval_status == ApprovalStatus.PENDING


def test_reject_stamps_and_keeps_vehicle_active(workflow, gateway, pending_request, vehicle):
    request = workflow.reject_request(pending_request.id, "admin-1", " Vehicle still within lifecycle ")
    assert request.approval_status == ApprovalStatus.REJECTED
    assert request.rejected_by == "admin-1"
    assert request.rejection_date is not None
    assert request.rejection_reason == "Vehicle still within lifecycle"
    assert request.status == DisposalStatus.PENDING_APPROVAL
    assert gateway.vehicles.get_by_id(vehicle.id).status == VehicleStatus.ACTIVE


def test_approve_and_reject_are_exclusive(workflow, pending_request, listed_request):
    with pytest.raises(NotFoundError):
        workflow.reject_request(listed_request.id, "admin-1", "changed my mind")


def test_reject_keeps_vehicle_in_maintenance(workflow, events, gateway, make_vehicle):
    vehicle = make_vehicle(VehicleStatus.MAINTENANCE)
    request = workflow.create_request(request_fields(vehicle.id))
    workflow.reject_request(request.id, "admin-1", "Repair instead")
    assert gateway.vehicles.get_by_id(vehicle.id).status == VehicleStatus.MAINTENANCE
    assert events[-1].delta["vehicle_status"] == "maintenance"
    assert events[-1].summary.endswith("vehicle is maintenance")


def test_cancel_pending_request_keeps_vehicle_in_maintenance(workflow, events, gateway, make_vehicle):
    vehicle = make_vehicle(VehicleStatus.MAINTENANCE)
    request = workflow.create_request(request_fields(vehicle.id))
    workflow.cancel_request(request.id)
    assert gateway.vehicles.get_by_id(vehicle.id).status == VehicleStatus.MAINTENANCE
    assert events[-1].delta == {"status": "cancelled", "vehicle_status": "maintenance"}


def test_approve_overrides_maintenance(workflow, gateway, make_vehicle):
    vehicle = make_vehicle(VehicleStatus.MAINTENANCE)
    request = workflow.create_request(request_fields(vehicle.id))
    workflow.approve_request(request.id, "admin-1")
    assert gateway.vehicles.get_by_id(vehicle.id).status == VehicleStatus.DISPOSED


def test_update_pending_request(workflow, events, pending_request):
    request = workflow.update_request(pending_request.id, {"estimated_value": 48000, "condition_rating": "poor"})
    assert request.estimated_value == 48000
    assert request.condition_rating.value == "poor"
    assert events[-1].name == "DisposalRequestUpdated"
    assert events[-1].delta == {"estimated_value": 48000, "condition_rating": "poor"}


def test_update_decided_request_is_allowed_with_warning(workflow, listed_request, caplog):
    with caplog.at_level(logging.WARNING, logger="app.services.disposal_requests"):
        request = workflow.update_request(listed_request.id, {"current_mileage": 130000})
    assert request.current_mileage == 130000
    assert request.status == DisposalStatus.LISTED
    assert "editing approved disposal request" in caplog.text


def test_update_cannot_touch_lifecycle_fields(workflow, pending_request):
    with pytest.raises(ValidationError, match="cannot be edited"):
        workflow.update_request(pending_request.id, {"status": "sold"})


def test_update_without_changes_emits_nothing(workflow, events, pending_request):
    before = len(events)
    workflow.update_request(pending_request.id, {"estimated_value": pending_request.estimated_value})
    assert len(events) == before


def test_cancel_request_returns_vehicle(workflow, gateway, listed_request, vehicle):
    request = workflow.cancel_request(listed_request.id, actor="Fleet Manager")
    assert request.status == DisposalStatus.CANCELLED
    assert gateway.vehicles.get_by_id(vehicle.id).status == VehicleStatus.ACTIVE


def test_cancel_request_blocked_by_open_auction(workflow, listed_request):
    workflow.create_auction(listed_request.id, auction_fields())
    with pytest.raises(InvalidStateError, match="open auction"):
        workflow.cancel_request(listed_request.id)


def test_cancel_rejected_request_fails(workflow, pending_request):
    workflow.reject_request(pending_request.id, "admin-1", "no")
    with pytest.raises(InvalidStateError):
        workflow.cancel_request(pending_request.id)


def test_list_requests_filters(workflow, make_vehicle):
    first = workflow.create_request(request_fields(make_vehicle().id))
    second = workflow.create_request(request_fields(make_vehicle().id))
    workflow.approve_request(second.id, "admin-1")

    assert [r.id for r in workflow.list_requests()] == [second.id, first.id]
    assert [r.id for r in workflow.list_requests(approval_status=ApprovalStatus.PENDING)] == [first.id]
    assert [r.id for r in workflow.list_requests(status=DisposalStatus.LISTED)] == [second.id]
