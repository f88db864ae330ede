from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update, func
from typing import Optional

from logistics_pro.models.notification import Notification
from logistics_pro.models.user import User
from logistics_pro.core.constants import NotificationType, ADMIN_ROLES
from logistics_pro.core.errors import NotFound


def notify(
    db: AsyncSession,
    user_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.GENERAL,
) -> Notification:
    """Queue a notification on the session; it is committed with the caller's transaction."""
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        notification_type=notification_type.value,
    )
    db.add(notification)
    return notification


async def get_primary_admin(db: AsyncSession) -> Optional[User]:
    """Oldest active admin account, the default recipient of operational alerts"""
    result = await db.execute(
        select(User)
        .where(User.role.in_([r.value for r in ADMIN_ROLES]), User.is_active == True)
        .order_by(User.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_notifications(db: AsyncSession, user_id: str, unread_only: bool = False):
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read == False)
    result = await db.execute(query.order_by(Notification.created_at.desc()))
    return result.scalars().all()


async def count_unread(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read == False,
        )
    )
    return result.scalar_one()


async def mark_read(db: AsyncSession, notification_id: str, user_id: str) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFound("Notification not found")

    notification.is_read = True
    await db.commit()
    return notification


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read == False)
        .values(is_read=True)
        .execution_options(synchronize_session="fetch")
    )
    await db.commit()
    return result.rowcount
