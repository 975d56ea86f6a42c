from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.models.base import Base
from app.models.enums import VehicleStatus, enum_column_type


class Vehicle(Base):
    """Fleet vehicle as referenced by disposal; owned by the fleet module."""
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    registration_number = Column(String(50), nullable=False, unique=True, index=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    status = Column(enum_column_type(VehicleStatus), default=VehicleStatus.ACTIVE, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    disposal_requests = relationship("DisposalRequest", back_populates="vehicle")
