from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel

from ..enum.rental_enum import NotificationPriority, NotificationType


class NotificationOut(BaseModel):
    id: UUID
    user_id: str
    type: NotificationType
    priority: NotificationPriority
    title: str
    message: str
    link: Optional[str] = None
    extra: Optional[Any] = None
    read: bool = False
    created_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class NotificationListResponse(BaseModel):
    notifications: List[NotificationOut]
    total: int
    unread: int
