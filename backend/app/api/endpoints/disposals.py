from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.api.deps import get_workflow
from app.api.endpoints.auctions import auction_response
from app.models.enums import ApprovalStatus, DisposalStatus
from app.schemas.auction import AuctionCreate, AuctionResponse
from app.schemas.disposal import (
    ApproveBody,
    DisposalAuditEventResponse,
    DisposalRequestCreate,
    DisposalRequestPatch,
    DisposalRequestResponse,
    DisposalSummary,
    RejectBody,
)
from app.services.workflow import DisposalWorkflow

router = APIRouter(tags=["disposals"])


@router.post("/disposal-requests", response_model=DisposalRequestResponse)
def create_request(payload: DisposalRequestCreate, workflow: DisposalWorkflow = Depends(get_workflow)):
    """Submit a disposal request. It starts pending approval; the vehicle is untouched until approval."""
    return workflow.create_request(payload.model_dump())


@router.get("/disposal-requests", response_model=list[DisposalRequestResponse])
def list_requests(
    status: Optional[DisposalStatus] = None,
    approval_status: Optional[ApprovalStatus] = None,
    vehicle_id: Optional[int] = None,
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    """List disposal requests, newest first, optionally filtered."""
    return workflow.list_requests(status=status, approval_status=approval_status, vehicle_id=vehicle_id)


@router.get("/disposal-summary", response_model=DisposalSummary)
def disposal_summary(workflow: DisposalWorkflow = Depends(get_workflow)):
    return workflow.summary()


@router.get("/disposal-requests/{request_id}", response_model=DisposalRequestResponse)
def get_request(request_id: int, workflow: DisposalWorkflow = Depends(get_workflow)):
    return workflow.get_request(request_id)


@router.patch("/disposal-requests/{request_id}", response_model=DisposalRequestResponse)
def update_request(
    request_id: int,
    payload: DisposalRequestPatch,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    """Edit descriptive fields. Approved/rejected requests stay editable (a warning is logged)."""
    return workflow.update_request(request_id, payload.model_dump(exclude_unset=True), actor=x_persona)


@router.post("/disposal-requests/{request_id}/approve", response_model=DisposalRequestResponse)
def approve_request(request_id: int, payload: ApproveBody, workflow: DisposalWorkflow = Depends(get_workflow)):
    """Approve a pending request: list it and mark the vehicle disposed (vehicle update is best-effort)."""
    return workflow.approve_request(request_id, payload.approved_by)


@router.post("/disposal-requests/{request_id}/reject", response_model=DisposalRequestResponse)
def reject_request(request_id: int, payload: RejectBody, workflow: DisposalWorkflow = Depends(get_workflow)):
    """Reject a pending request with a reason; the vehicle returns to active."""
    return workflow.reject_request(request_id, payload.rejected_by, payload.rejection_reason)


@router.post("/disposal-requests/{request_id}/cancel", response_model=DisposalRequestResponse)
def cancel_request(
    request_id: int,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    """Withdraw a request that has no open auction."""
    return workflow.cancel_request(request_id, actor=x_persona or "Fleet Manager")


@router.post("/disposal-requests/{request_id}/reconcile", response_model=DisposalRequestResponse)
def reconcile_request(
    request_id: int,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    """Repair request/vehicle status after an action was only partly applied."""
    return workflow.reconcile_request(request_id, actor=x_persona or "Administration")


@router.get("/disposal-requests/{request_id}/audit", response_model=list[DisposalAuditEventResponse])
def request_audit_trail(request_id: int, workflow: DisposalWorkflow = Depends(get_workflow)):
    return workflow.audit_trail(request_id)


@router.get("/disposal-requests/{request_id}/auctions", response_model=list[AuctionResponse])
def list_auctions(request_id: int, workflow: DisposalWorkflow = Depends(get_workflow)):
    return [auction_response(workflow, a) for a in workflow.list_auctions_for_request(request_id)]


@router.post("/disposal-requests/{request_id}/auctions", response_model=AuctionResponse)
def create_auction(
    request_id: int,
    payload: AuctionCreate,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    """List an approved request for auction (minimum 7 days; reserve >= starting price)."""
    auction = workflow.create_auction(request_id, payload.model_dump(), actor=x_persona or "Fleet Manager")
    return auction_response(workflow, auction)
