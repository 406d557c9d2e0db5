# tajiri/crud/notification.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from tajiri.models.notification import Notification
from tajiri.schemas.notification import NotificationCreate
from typing import Iterable, List, Optional
import uuid

async def create_notifications(db: AsyncSession, notifications: Iterable[NotificationCreate]) -> List[Notification]:
    """Create several notifications in one commit"""
    db_notifications = [Notification(**n.model_dump()) for n in notifications]
    if not db_notifications:
        return []
    db.add_all(db_notifications)
    await db.commit()
    return db_notifications

async def get_notifications_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    unread_only: bool = False,
    limit: int = 50
) -> List[Notification]:
    """Get notifications for a specific user with filtering options"""
    query = (
        select(Notification)
        .filter(Notification.user_id == user_id)
    )

    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    query = query.order_by(desc(Notification.created_at)).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())

async def mark_notification_as_read(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Notification]:
    """Mark a notification as read, ensuring it belongs to the specified user"""
    result = await db.execute(
        select(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
    )
    notification = result.scalars().first()

    if notification:
        notification.is_read = True
        await db.commit()
        await db.refresh(notification)
    return notification
