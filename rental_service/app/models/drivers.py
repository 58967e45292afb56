import uuid
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base

from ..enum.rental_enum import DriverVerificationStatus


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # account in the external auth service
    user_id = Column(UUID(as_uuid=True), nullable=True, unique=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)
    phone = Column(String(32), nullable=True)

    # editable by the driver from the portal
    id_number = Column(String(32), nullable=True)
    address_line1 = Column(String(200), nullable=True)
    address_line2 = Column(String(200), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    postal_code = Column(String(16), nullable=True)

    verification_status = Column(
        String(16), nullable=False, default=DriverVerificationStatus.UNVERIFIED.value)
    verification_note = Column(Text, nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    contracts = relationship("RentalContract", back_populates="driver")
