"""
Domain events published by the disposal workflow after a command succeeds.

Subscribers are the notification and audit collaborators. A subscriber that
fails is logged; the command it reports on has already been committed.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from app.models import DisposalAuditEvent
from app.services.gateway import AuditStore, utcnow

logger = logging.getLogger(__name__)
notification_logger = logging.getLogger("app.notifications")


@dataclass(frozen=True)
class DomainEvent:
    name: str  # DisposalRequestApproved, BidPlaced, AuctionClosed, ...
    title: str  # short notification heading, e.g. "Request Approved"
    summary: str
    entity_type: str  # "disposal_request" | "auction" | "bid"
    entity_id: int
    disposal_id: int
    auction_id: Optional[int] = None
    actor: Optional[str] = None
    delta: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utcnow)


Subscriber = Callable[[DomainEvent], None]


class EventBus:
    def __init__(self, subscribers: Optional[list[Subscriber]] = None):
        self._subscribers: list[Subscriber] = list(subscribers or [])

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def publish(self, event: DomainEvent) -> None:
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.exception("event subscriber %r failed for %s", subscriber, event.name)


def notify(event: DomainEvent) -> None:
    """Human-readable notification; the UI layer tails this logger."""
    notification_logger.info("%s: %s", event.title, event.summary)


class AuditTrail:
    """Persists one DisposalAuditEvent row per domain event."""

    def __init__(self, store: AuditStore):
        self.store = store

    def __call__(self, event: DomainEvent) -> None:
        self.store.create(DisposalAuditEvent(
            disposal_id=event.disposal_id,
            auction_id=event.auction_id,
            event=event.name,
            summary=event.summary,
            actor=event.actor,
        ))
