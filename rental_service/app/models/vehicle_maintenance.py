import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base

from ..enum.rental_enum import MaintenanceStatus


class VehicleMaintenance(Base):
    __tablename__ = "vehicle_maintenance"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vehicle_id = Column(UUID(as_uuid=True), ForeignKey(
        "vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(16), nullable=False,
                    default=MaintenanceStatus.PLANNED.value)

    scheduled_at = Column(Date, nullable=True)
    completed_at = Column(Date, nullable=True)
    odometer_km = Column(Integer, nullable=True)
    estimated_cost_cents = Column(Integer, nullable=True)
    actual_cost_cents = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    vehicle = relationship("Vehicle", back_populates="maintenance")
    cost = relationship("VehicleCost", back_populates="maintenance", uselist=False)
