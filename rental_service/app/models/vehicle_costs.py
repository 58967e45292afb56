import uuid
from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base


class VehicleCost(Base):
    __tablename__ = "vehicle_costs"

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="ck_vehicle_costs_amount_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vehicle_id = Column(UUID(as_uuid=True), ForeignKey(
        "vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    # set when the cost was booked by completing a maintenance job
    maintenance_id = Column(UUID(as_uuid=True), ForeignKey(
        "vehicle_maintenance.id", ondelete="SET NULL"), nullable=True, unique=True)

    type = Column(String(16), nullable=False)  # LICENSE | SERVICE | REPAIR ...
    title = Column(String(200), nullable=True)
    amount_cents = Column(Integer, nullable=False)
    occurred_at = Column(Date, nullable=False)
    vendor = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    receipt_url = Column(String(512), nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)

    vehicle = relationship("Vehicle", back_populates="costs")
    maintenance = relationship("VehicleMaintenance", back_populates="cost")
