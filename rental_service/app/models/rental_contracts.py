import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, CheckConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base

from ..enum.rental_enum import ContractStatus

ACTIVE_ONLY = text("status = 'ACTIVE'")


class RentalContract(Base):
    __tablename__ = "rental_contracts"

    __table_args__ = (
        # a vehicle can be held by at most one ACTIVE contract
        Index("uq_rental_contracts_active_vehicle", "vehicle_id", unique=True,
              postgresql_where=ACTIVE_ONLY, sqlite_where=ACTIVE_ONLY),
        Index("ix_rental_contracts_status", "status"),
        CheckConstraint("fee_amount_cents > 0",
                        name="ck_rental_contracts_fee_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    driver_id = Column(UUID(as_uuid=True), ForeignKey(
        "drivers.id"), nullable=False, index=True)
    vehicle_id = Column(UUID(as_uuid=True), ForeignKey(
        "vehicles.id"), nullable=False, index=True)

    fee_amount_cents = Column(Integer, nullable=False)
    frequency = Column(String(16), nullable=False)  # DAILY | WEEKLY | MONTHLY
    due_weekday = Column(Integer, nullable=True)  # 0=Sunday .. 6=Saturday
    due_day_of_month = Column(Integer, nullable=True)  # 1..31, computed as 1..28

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    status = Column(String(16), nullable=False,
                    default=ContractStatus.DRAFT.value)

    terms_text = Column(Text, nullable=True)
    terms_hash = Column(String(64), nullable=True)
    driver_signature_url = Column(String(512), nullable=True)
    driver_signed_at = Column(DateTime(timezone=True), nullable=True)
    sent_to_driver_at = Column(DateTime(timezone=True), nullable=True)
    locked_at = Column(DateTime(timezone=True), nullable=True)
    admin_signed_at = Column(DateTime(timezone=True), nullable=True)
    signed_document_path = Column(String(512), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    # relationships
    driver = relationship("Driver", back_populates="contracts")
    vehicle = relationship("Vehicle", back_populates="contracts")
    payments = relationship(
        "Payment", back_populates="contract", order_by="Payment.due_date")
