from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.models.enums import VehicleStatus


class VehicleCreate(BaseModel):
    registration_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    status: VehicleStatus = VehicleStatus.ACTIVE


class VehicleResponse(BaseModel):
    id: int
    registration_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    status: VehicleStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
