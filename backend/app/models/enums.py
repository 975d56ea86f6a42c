import enum

from sqlalchemy import Enum as SAEnum


class VehicleStatus(str, enum.Enum):
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    DISPOSED = "disposed"


class DisposalReason(str, enum.Enum):
    END_OF_LIFE = "end_of_life"
    EXCESSIVE_MAINTENANCE = "excessive_maintenance"
    ACCIDENT_DAMAGE = "accident_damage"
    UPGRADE = "upgrade"
    POLICY_CHANGE = "policy_change"


class DisposalMethod(str, enum.Enum):
    AUCTION = "auction"
    BEST_OFFER = "best_offer"
    TRADE_IN = "trade_in"
    SCRAP = "scrap"
    DONATION = "donation"


class ConditionRating(str, enum.Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    SALVAGE = "salvage"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DisposalStatus(str, enum.Enum):
    PENDING_APPROVAL = "pending_approval"
    LISTED = "listed"
    BIDDING_OPEN = "bidding_open"
    SOLD = "sold"
    TRANSFERRED = "transferred"
    CANCELLED = "cancelled"


class AuctionType(str, enum.Enum):
    PUBLIC = "public"
    SEALED_BID = "sealed_bid"
    ONLINE = "online"


class AuctionStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    CLOSED = "closed"
    AWARDED = "awarded"
    CANCELLED = "cancelled"


# Auctions in these states block a new auction for the same request
OPEN_AUCTION_STATUSES = (AuctionStatus.SCHEDULED, AuctionStatus.ACTIVE, AuctionStatus.CLOSED)


def enum_column_type(enum_cls) -> SAEnum:
    """VARCHAR column holding the lowercase enum value (not the member name)."""
    return SAEnum(
        enum_cls,
        values_callable=lambda e: [x.value for x in e],
        native_enum=False,
        length=32,
    )
