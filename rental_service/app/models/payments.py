import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base

from ..enum.rental_enum import PaymentStatus


class Payment(Base):
    __tablename__ = "payments"

    __table_args__ = (
        UniqueConstraint("contract_id", "due_date",
                         name="uq_payments_contract_due_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id = Column(UUID(as_uuid=True), ForeignKey(
        "rental_contracts.id"), nullable=False, index=True)
    # copied from the contract fee when the obligation is created
    amount_cents = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False,
                    default=PaymentStatus.PENDING.value)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    settlement_reference = Column(String(128), nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    contract = relationship("RentalContract", back_populates="payments")
