from app.models.base import Base
from app.models.vehicle import Vehicle
from app.models.disposal_request import DisposalRequest
from app.models.auction import DisposalAuction
from app.models.bid import Bid
from app.models.disposal_audit import DisposalAuditEvent

__all__ = ["Base", "Vehicle", "DisposalRequest", "DisposalAuction", "Bid", "DisposalAuditEvent"]
