from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.api.deps import get_workflow
from app.models import DisposalAuction
from app.models.enums import AuctionStatus
from app.schemas.auction import AuctionResponse, BidCreate, BidResponse
from app.services.workflow import DisposalWorkflow

router = APIRouter(prefix="/auctions", tags=["auctions"])


def auction_response(workflow: DisposalWorkflow, auction: DisposalAuction) -> AuctionResponse:
    """Auction plus the values derived from its bids (highest, count, next minimum)."""
    highest, total = workflow.ledger.summary(auction.id)
    minimum = workflow.ledger.minimum_bid(auction) if auction.auction_status == AuctionStatus.ACTIVE else None
    return AuctionResponse.model_validate(auction).model_copy(update={
        "current_highest_bid": highest,
        "total_bids": total,
        "minimum_next_bid": minimum,
    })


@router.get("/{auction_id}", response_model=AuctionResponse)
def get_auction(auction_id: int, workflow: DisposalWorkflow = Depends(get_workflow)):
    return auction_response(workflow, workflow.get_auction(auction_id))


@router.post("/{auction_id}/start", response_model=AuctionResponse)
def start_auction(
    auction_id: int,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    """Manual operator action; start_date is not enforced."""
    auction = workflow.start_auction(auction_id, actor=x_persona or "Fleet Manager")
    return auction_response(workflow, auction)


@router.post("/{auction_id}/close", response_model=AuctionResponse)
def close_auction(
    auction_id: int,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    """Close with the highest bid as winner. Fails with no bids or when the reserve is not met."""
    auction = workflow.close_auction(auction_id, actor=x_persona or "Fleet Manager")
    return auction_response(workflow, auction)


@router.post("/{auction_id}/award", response_model=AuctionResponse)
def award_auction(
    auction_id: int,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    auction = workflow.award_auction(auction_id, actor=x_persona or "Fleet Manager")
    return auction_response(workflow, auction)


@router.post("/{auction_id}/cancel", response_model=AuctionResponse)
def cancel_auction(
    auction_id: int,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    auction = workflow.cancel_auction(auction_id, actor=x_persona or "Fleet Manager")
    return auction_response(workflow, auction)


@router.get("/{auction_id}/bids", response_model=list[BidResponse])
def list_bids(auction_id: int, workflow: DisposalWorkflow = Depends(get_workflow)):
    """All bids for the auction, highest first."""
    return list(workflow.list_bids_for_auction(auction_id))


@router.post("/{auction_id}/bids", response_model=BidResponse)
def place_bid(
    auction_id: int,
    payload: BidCreate,
    x_persona: str | None = Header(None, alias="X-Persona"),
    workflow: DisposalWorkflow = Depends(get_workflow),
):
    return workflow.place_bid(
        auction_id,
        payload.bidder_name,
        payload.bidder_contact,
        payload.bid_amount,
        notes=payload.notes,
        actor=x_persona,
    )


@router.get("/{auction_id}/highest-bid", response_model=Optional[BidResponse])
def highest_bid(auction_id: int, workflow: DisposalWorkflow = Depends(get_workflow)):
    """The leading bid, or null when the auction has none."""
    return workflow.highest_bid(auction_id)
