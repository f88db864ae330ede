from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from logistics_pro.db import get_db
from logistics_pro.auth.dependencies import get_current_identity
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.errors import NotFound
from logistics_pro.crud import user as user_crud
from logistics_pro.schemas.user import LoginRequest, RegisterRequest, ResetPasswordRequest, UserRead

router = APIRouter()


def _client_info(request: Request):
    return request.headers.get("user-agent"), request.client.host if request.client else None


@router.post("/register", status_code=201)
async def register(payload: RegisterRequest, request: Request, db: AsyncSession = Depends(get_db)):
    user = await user_crud.register_user(
        db, payload.phone, payload.password, payload.name, payload.role, payload.email
    )

    body = {"success": True, "user": UserRead.model_validate(user)}
    if user.needs_approval:
        body["message"] = "Registration received; your account is waiting for admin approval"
        body["pendingApproval"] = True
    else:
        user_agent, ip = _client_info(request)
        issued = await user_crud.start_session(db, user, user_agent, ip)
        await db.commit()
        body["message"] = "Registered successfully"
        body["token"] = issued.token
    return body


@router.post("/login")
async def login(payload: LoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    user_agent, ip = _client_info(request)
    user, issued = await user_crud.login(db, payload.phone, payload.password, user_agent, ip)
    return {
        "success": True,
        "message": "Logged in successfully",
        "token": issued.token,
        "expires_at": issued.expires_at,
        "user": UserRead.model_validate(user),
    }


@router.get("/me")
async def me(db: AsyncSession = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    user = await user_crud.get_user(db, identity.user_id)
    if not user:
        raise NotFound("User not found")
    user_crud.ensure_can_sign_in(user)
    return {"success": True, "user": UserRead.model_validate(user)}


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await user_crud.reset_password(db, payload.phone, payload.new_password)
    return {"success": True, "message": "Password changed successfully"}
