import uuid
from sqlalchemy import Boolean, Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from shared.core.database import Base

from ..enum.rental_enum import NotificationPriority


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)

    type = Column(String(16), nullable=False)
    priority = Column(String(16), nullable=False,
                      default=NotificationPriority.MEDIUM.value)
    title = Column(String(255), nullable=False)
    message = Column(String(500), nullable=False)
    link = Column(String(255), nullable=True)
    extra = Column(JSON, nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
