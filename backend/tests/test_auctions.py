from datetime import date, datetime

import pytest

from app.models.enums import AuctionStatus, DisposalStatus
from app.services.errors import (
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ReserveNotMetError,
    ValidationError,
)
from conftest import auction_fields


def test_create_auction_exactly_seven_days(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields(days=7))
    assert auction.auction_status == AuctionStatus.SCHEDULED
    assert workflow.get_request(listed_request.id).status == DisposalStatus.BIDDING_OPEN


@pytest.mark.parametrize("days", [0, 1, 6])
def test_create_auction_too_short(workflow, listed_request, days):
    with pytest.raises(ValidationError, match="at least 7 days"):
        workflow.create_auction(listed_request.id, auction_fields(days=days))
    assert workflow.list_auctions_for_request(listed_request.id) == []
    assert workflow.get_request(listed_request.id).status == DisposalStatus.LISTED


def test_create_auction_reserve_below_starting_price(workflow, listed_request):
    with pytest.raises(ValidationError, match="Reserve price"):
        workflow.create_auction(listed_request.id, auction_fields(starting_price=35000, reserve_price=34999))
    assert workflow.list_auctions_for_request(listed_request.id) == []


def test_create_auction_reserve_equal_to_starting_price(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields(starting_price=35000, reserve_price=35000))
    assert auction.reserve_price == 35000


def test_create_auction_without_reserve(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields(reserve_price=None))
    assert auction.reserve_price is None


def test_create_auction_accepts_iso_dates(workflow, listed_request):
    auction = workflow.create_auction(
        listed_request.id, auction_fields(start_date="2025-03-03", end_date="2025-03-10")
    )
    assert (auction.end_date - auction.start_date).days == 7


def test_create_auction_mixes_datetime_and_date_bounds(workflow, listed_request):
    auction = workflow.create_auction(
        listed_request.id, auction_fields(start_date=datetime(2025, 3, 3, 9, 30), end_date=date(2025, 3, 10))
    )
    assert auction.start_date == date(2025, 3, 3)
    assert (auction.end_date - auction.start_date).days == 7


@pytest.mark.parametrize("price", [0, -5, None])
def test_create_auction_needs_positive_starting_price(workflow, listed_request, price):
    with pytest.raises(ValidationError):
        workflow.create_auction(listed_request.id, auction_fields(starting_price=price, reserve_price=None))


def test_create_auction_needs_approved_request(workflow, pending_request):
    with pytest.raises(InvalidStateError, match="approved and listed"):
        workflow.create_auction(pending_request.id, auction_fields())


def test_create_auction_for_missing_request(workflow):
    with pytest.raises(NotFoundError):
        workflow.create_auction(12345, auction_fields())


def test_second_open_auction_is_refused(workflow, listed_request):
    workflow.create_auction(listed_request.id, auction_fields())
    # Put the request back to listed, as after a partly applied action
    workflow.requests.set_status(workflow.get_request(listed_request.id), DisposalStatus.LISTED)
    with pytest.raises(InvalidStateError, match="already has an open auction"):
        workflow.create_auction(listed_request.id, auction_fields())
    assert len(workflow.list_auctions_for_request(listed_request.id)) == 1


def test_new_auction_after_cancel(workflow, listed_request):
    first = workflow.create_auction(listed_request.id, auction_fields())
    workflow.cancel_auction(first.id)
    second = workflow.create_auction(listed_request.id, auction_fields(days=10))
    assert [a.id for a in workflow.list_auctions_for_request(listed_request.id)] == [second.id, first.id]


def test_start_requires_scheduled(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields())
    workflow.start_auction(auction.id)
    assert auction.auction_status == AuctionStatus.ACTIVE
    with pytest.raises(InvalidTransitionError, match="Cannot start auction while it is active"):
        workflow.start_auction(auction.id)


def test_close_without_bids_fails(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields())
    workflow.start_auction(auction.id)
    with pytest.raises(InvalidStateError, match="no bids") as exc:
        workflow.close_auction(auction.id)
    assert not isinstance(exc.value, InvalidTransitionError)
    assert workflow.get_auction(auction.id).auction_status == AuctionStatus.ACTIVE
    assert workflow.get_request(listed_request.id).status == DisposalStatus.BIDDING_OPEN


def test_close_scheduled_auction_is_invalid_transition(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields())
    with pytest.raises(InvalidTransitionError):
        workflow.close_auction(auction.id)


def test_close_below_reserve_changes_nothing(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields(reserve_price=50000))
    workflow.start_auction(auction.id)
    workflow.place_bid(auction.id, "Kofi Motors", "0200000001", 45000)
    with pytest.raises(ReserveNotMetError) as exc:
        workflow.close_auction(auction.id)
    assert exc.value.reserve_price == 50000
    assert exc.value.highest_bid == 45000
    auction = workflow.get_auction(auction.id)
    assert auction.auction_status == AuctionStatus.ACTIVE
    assert auction.winner_id is None
    assert auction.winning_bid is None
    assert workflow.get_request(listed_request.id).status == DisposalStatus.BIDDING_OPEN


def test_close_picks_true_maximum(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields(reserve_price=None))
    workflow.start_auction(auction.id)
    workflow.place_bid(auction.id, "A", "a@example.com", 35000)
    top = workflow.place_bid(auction.id, "B", "b@example.com", 39000)
    workflow.close_auction(auction.id)
    assert auction.auction_status == AuctionStatus.CLOSED
    assert auction.winner_id == top.id
    assert auction.winning_bid == 39000
    assert workflow.get_request(listed_request.id).status == DisposalStatus.SOLD


def test_award_requires_closed(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields())
    with pytest.raises(InvalidTransitionError):
        workflow.award_auction(auction.id)
    workflow.start_auction(auction.id)
    with pytest.raises(InvalidTransitionError):
        workflow.award_auction(auction.id)


def test_award_transfers_request(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields(reserve_price=None))
    workflow.start_auction(auction.id)
    workflow.place_bid(auction.id, "A", "a@example.com", 36000)
    workflow.close_auction(auction.id)
    workflow.award_auction(auction.id)
    assert auction.auction_status == AuctionStatus.AWARDED
    assert workflow.get_request(listed_request.id).status == DisposalStatus.TRANSFERRED
    with pytest.raises(InvalidTransitionError):
        workflow.award_auction(auction.id)


def test_cancel_scheduled_auction_relists_request(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields())
    workflow.cancel_auction(auction.id)
    assert workflow.get_auction(auction.id).auction_status == AuctionStatus.CANCELLED
    assert workflow.get_request(listed_request.id).status == DisposalStatus.LISTED


@pytest.mark.parametrize("advance", ["start", "close", "award"])
def test_cancel_only_from_scheduled(workflow, listed_request, advance):
    auction = workflow.create_auction(listed_request.id, auction_fields(reserve_price=None))
    workflow.start_auction(auction.id)
    if advance in ("close", "award"):
        workflow.place_bid(auction.id, "A", "a@example.com", 35000)
        workflow.close_auction(auction.id)
    if advance == "award":
        workflow.award_auction(auction.id)
    status_before = auction.auction_status
    with pytest.raises(InvalidTransitionError):
        workflow.cancel_auction(auction.id)
    assert workflow.get_auction(auction.id).auction_status == status_before


def test_cancelled_auction_is_terminal(workflow, listed_request):
    auction = workflow.create_auction(listed_request.id, auction_fields())
    workflow.cancel_auction(auction.id)
    for action in (workflow.start_auction, workflow.close_auction, workflow.award_auction, workflow.cancel_auction):
        with pytest.raises(InvalidTransitionError):
            action(auction.id)


def test_missing_auction(workflow):
    with pytest.raises(NotFoundError):
        workflow.start_auction(77)
