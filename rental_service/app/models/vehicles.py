import uuid
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base

from ..enum.rental_enum import VehicleStatus


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reg = Column(String(32), nullable=False, unique=True, index=True)
    make = Column(String(64), nullable=True)
    model = Column(String(64), nullable=True)
    year = Column(Integer, nullable=True)
    type = Column(String(32), nullable=True)  # sedan, hatchback, minibus ...
    status = Column(String(16), nullable=False,
                    default=VehicleStatus.AVAILABLE.value)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    contracts = relationship("RentalContract", back_populates="vehicle")
    maintenance = relationship(
        "VehicleMaintenance", back_populates="vehicle", order_by="VehicleMaintenance.scheduled_at")
    costs = relationship("VehicleCost", back_populates="vehicle")
