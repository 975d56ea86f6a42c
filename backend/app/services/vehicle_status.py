"""
Vehicle status as seen by the disposal workflow.

Precedence is disposed > maintenance > active. The workflow is the only
writer of `disposed` and the only flow that reverts a disposed vehicle to
`active`. A vehicle under maintenance stays there when the workflow asks for
`active`; the maintenance module owns that state. Nothing locks the row, so a
maintenance booking racing an approval is still last-writer-wins.
"""
import logging
from typing import Optional

from app.models import Vehicle
from app.models.enums import VehicleStatus
from app.services.errors import DisposalError
from app.services.gateway import VehicleStore

logger = logging.getLogger(__name__)


def project_vehicle_status(current: VehicleStatus, target: VehicleStatus) -> VehicleStatus:
    if target == VehicleStatus.DISPOSED:
        return VehicleStatus.DISPOSED
    if target == VehicleStatus.ACTIVE and current == VehicleStatus.MAINTENANCE:
        return VehicleStatus.MAINTENANCE
    return target


def sync_vehicle_status(vehicles: VehicleStore, vehicle_id: int, target: VehicleStatus) -> Optional[Vehicle]:
    """Best-effort: failures are logged and swallowed so the calling action still succeeds."""
    try:
        vehicle = vehicles.get_by_id(vehicle_id)
        if vehicle is None:
            logger.warning("vehicle status sync skipped: vehicle_id=%s not found", vehicle_id)
            return None
        new_status = project_vehicle_status(vehicle.status, target)
        if new_status != target:
            logger.warning(
                "vehicle_id=%s kept %s instead of %s (maintenance owns it)",
                vehicle_id, new_status.value, target.value,
            )
        if new_status == vehicle.status:
            return vehicle
        return vehicles.update(vehicle_id, new_status)
    except DisposalError as e:
        logger.warning("Failed to update vehicle status: vehicle_id=%s target=%s: %s", vehicle_id, target.value, e)
        return None
