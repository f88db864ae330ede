from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from logistics_pro.db import get_db
from logistics_pro.api.deps import get_app_settings
from logistics_pro.auth.dependencies import get_current_admin
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.config import Settings
from logistics_pro.core.constants import Role
from logistics_pro.crud import user as user_crud
from logistics_pro.crud.dashboard import get_dashboard
from logistics_pro.schemas.user import AdminCreateUserRequest, ApproveUserRequest, SetActiveRequest, UserRead

router = APIRouter()


# ------------------------- USERS -------------------------

@router.get("/users")
async def list_users(
    role: Optional[Role] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_current_admin),
):
    users = await user_crud.list_users(db, role)
    return {"success": True, "count": len(users), "users": [UserRead.model_validate(u) for u in users]}


@router.get("/pending-users")
async def pending_users(db: AsyncSession = Depends(get_db), admin: Identity = Depends(get_current_admin)):
    users = await user_crud.list_pending_users(db)
    return {"success": True, "count": len(users), "users": [UserRead.model_validate(u) for u in users]}


@router.put("/users/{user_id}/approve")
async def approve_user(
    user_id: str,
    payload: ApproveUserRequest,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_current_admin),
):
    user = await user_crud.approve_user(db, user_id, payload.role, payload.approved, admin.role)
    message = "User approved" if payload.approved else "User approval withdrawn"
    return {"success": True, "message": message, "user": UserRead.model_validate(user)}


@router.put("/users/{user_id}/disable")
async def set_user_active(
    user_id: str,
    payload: SetActiveRequest,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_current_admin),
):
    user = await user_crud.set_active(db, user_id, payload.is_active, admin.user_id, admin.role)
    message = "User enabled" if payload.is_active else "User disabled"
    return {"success": True, "message": message, "user": UserRead.model_validate(user)}


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_current_admin),
):
    await user_crud.delete_user(db, user_id, admin.user_id, admin.role)
    return {"success": True, "message": "User deleted"}


@router.post("/create-user", status_code=201)
async def create_user(
    payload: AdminCreateUserRequest,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_current_admin),
):
    user = await user_crud.admin_create_user(
        db, admin.role, admin.user_id,
        payload.phone, payload.password, payload.name, payload.role, payload.email,
    )
    return {"success": True, "message": "User created", "user": UserRead.model_validate(user)}


# ------------------------- DASHBOARD -------------------------

@router.get("/dashboard")
async def dashboard(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    admin: Identity = Depends(get_current_admin),
):
    data = await get_dashboard(db, settings.active_driver_window_minutes)
    return {"success": True, **data}
