from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from logistics_pro.db import get_db
from logistics_pro.auth.dependencies import get_current_identity
from logistics_pro.auth.tokens import Identity
from logistics_pro.crud import notification as notification_crud
from logistics_pro.schemas.notification import NotificationRead

router = APIRouter()


@router.get("")
async def list_notifications(
    unread_only: bool = False,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    notifications = await notification_crud.list_notifications(db, identity.user_id, unread_only)
    unread = await notification_crud.count_unread(db, identity.user_id)
    return {
        "success": True,
        "unread_count": unread,
        "notifications": [NotificationRead.model_validate(n) for n in notifications],
    }


@router.put("/read-all")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    updated = await notification_crud.mark_all_read(db, identity.user_id)
    return {"success": True, "updated": updated}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    notification = await notification_crud.mark_read(db, notification_id, identity.user_id)
    return {"success": True, "notification": NotificationRead.model_validate(notification)}
