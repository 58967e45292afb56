from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from shared.core.database import transaction
from shared.core.schemas import CommonQueryParams
from ...enum.rental_enum import NotificationPriority, NotificationType
from ...models.notifications import Notification
from ...schemas.notifications_schemas import NotificationListResponse, NotificationOut


def create_notification(
    db: Session,
    user_id: str,
    type: NotificationType,
    title: str,
    message: str,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    link: Optional[str] = None,
    extra: Optional[dict] = None,
) -> Notification:
    notification = Notification(
        user_id=str(user_id),
        type=type.value,
        priority=priority.value,
        title=title,
        message=message[:500],
        link=link,
        extra=extra,
        read=False,
    )
    with transaction(db):
        db.add(notification)
        db.flush()
    return notification


def get_all_notifications(db: Session, user_id: str, params: CommonQueryParams) -> NotificationListResponse:
    notification_query = db.query(Notification).filter(
        Notification.user_id == str(user_id)
    )

    if params.search:
        search_term = f"%{params.search}%"
        notification_query = notification_query.filter(
            Notification.title.ilike(search_term))

    total = notification_query.with_entities(
        func.count(Notification.id)).scalar()
    unread = notification_query.filter(Notification.read == False).with_entities(
        func.count(Notification.id)).scalar()
    rows = (
        notification_query
        .order_by(Notification.created_at.desc())
        .offset(params.skip)
        .limit(params.limit)
        .all()
    )

    return NotificationListResponse(
        notifications=[NotificationOut.model_validate(row) for row in rows],
        total=total,
        unread=unread,
    )


def mark_all_read(db: Session, user_id: str) -> int:
    with transaction(db):
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == str(user_id), Notification.read == False)
            .update(
                {"read": True, "read_at": datetime.now(timezone.utc)},
                synchronize_session="fetch",
            )
        )
    return updated
