from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_gateway
from app.models import Vehicle
from app.schemas.vehicle import VehicleCreate, VehicleResponse
from app.services.gateway import PersistenceGateway

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.post("", response_model=VehicleResponse)
def register_vehicle(payload: VehicleCreate, gateway: PersistenceGateway = Depends(get_gateway)):
    """Register a vehicle so it can be referenced by disposal requests (fleet module owns the full record)."""
    registration = payload.registration_number.strip()
    if not registration:
        raise HTTPException(status_code=400, detail="registration_number is required")
    if gateway.vehicles.get_by_registration(registration):
        raise HTTPException(status_code=400, detail=f"Vehicle {registration} is already registered")
    return gateway.vehicles.create(Vehicle(
        registration_number=registration,
        make=payload.make,
        model=payload.model,
        status=payload.status,
    ))


@router.get("", response_model=list[VehicleResponse])
def list_vehicles(gateway: PersistenceGateway = Depends(get_gateway)):
    return gateway.vehicles.get_all()


@router.get("/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(vehicle_id: int, gateway: PersistenceGateway = Depends(get_gateway)):
    vehicle = gateway.vehicles.get_by_id(vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return vehicle
