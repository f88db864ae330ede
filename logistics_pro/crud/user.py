from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update, delete, func
from typing import Optional, Tuple
import logging

from logistics_pro.models.user import User, UserSession
from logistics_pro.models.location import DriverLocation
from logistics_pro.models.notification import Notification
from logistics_pro.models.shipment import Shipment
from logistics_pro.models.complaint import Complaint
from logistics_pro.auth.passwords import hash_password, verify_password, burn_hash_time
from logistics_pro.auth.tokens import IssuedToken, issue_token
from logistics_pro.core.constants import (
    Role,
    ADMIN_ROLES,
    SELF_REGISTER_ROLES,
    APPROVAL_REQUIRED_ROLES,
    NotificationType,
)
from logistics_pro.core.errors import Conflict, Forbidden, NotFound, Unauthorized, ValidationFailed
from logistics_pro.crud.notification import notify
from logistics_pro.utils.timezones import utcnow

log = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_phone(db: AsyncSession, phone: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.phone == phone))
    return result.scalar_one_or_none()


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await get_user(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def _insert_user(
    db: AsyncSession,
    phone: str,
    password: str,
    name: str,
    role: Role,
    email: Optional[str],
    is_approved: bool,
    created_by_id: Optional[str] = None,
) -> User:
    if await get_user_by_phone(db, phone):
        raise Conflict("Phone number is already registered")

    user = User(
        phone=phone,
        password_hash=hash_password(password),
        name=name,
        email=email,
        role=role.value,
        is_active=True,
        is_approved=is_approved,
        created_by_id=created_by_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def register_user(
    db: AsyncSession, phone: str, password: str, name: str, role: Role, email: Optional[str] = None
) -> User:
    if role not in SELF_REGISTER_ROLES:
        raise ValidationFailed("Role must be client or driver")

    user = await _insert_user(
        db, phone, password, name, role, email,
        is_approved=role not in APPROVAL_REQUIRED_ROLES,
    )
    log.info("registered user=%s role=%s approved=%s", user.id, user.role, user.is_approved)
    return user


async def admin_create_user(
    db: AsyncSession,
    creator_role: Role,
    creator_id: str,
    phone: str,
    password: str,
    name: str,
    role: Role,
    email: Optional[str] = None,
) -> User:
    if role in (Role.ADMIN, Role.SUPER_ADMIN) and creator_role != Role.SUPER_ADMIN:
        raise Forbidden("Only a super admin can create admin accounts")

    user = await _insert_user(
        db, phone, password, name, role, email,
        is_approved=True,
        created_by_id=creator_id,
    )
    log.info("admin %s created user=%s role=%s", creator_id, user.id, user.role)
    return user


def ensure_can_sign_in(user: User):
    if not user.is_active:
        raise Forbidden("Account is disabled", accountDisabled=True)
    if user.needs_approval:
        raise Forbidden("Account is pending admin approval", pendingApproval=True)


async def start_session(
    db: AsyncSession, user: User, user_agent: Optional[str] = None, ip_address: Optional[str] = None
) -> IssuedToken:
    issued = issue_token(user.id, user.phone, user.role)
    db.add(UserSession(
        id=issued.token_id,
        user_id=user.id,
        expires_at=issued.expires_at,
        user_agent=user_agent,
        ip_address=ip_address,
    ))
    return issued


async def login(
    db: AsyncSession,
    phone: str,
    password: str,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Tuple[User, IssuedToken]:
    user = await get_user_by_phone(db, phone)
    if not user:
        burn_hash_time(password)
        log.warning("login failed: unknown phone")
        raise Unauthorized("Invalid phone number or password")

    verified, updated_hash = verify_password(password, user.password_hash)
    if not verified:
        log.warning("login failed: bad password user=%s", user.id)
        raise Unauthorized("Invalid phone number or password")

    ensure_can_sign_in(user)

    if updated_hash:
        user.password_hash = updated_hash
    user.last_login = utcnow()
    issued = await start_session(db, user, user_agent, ip_address)
    await db.commit()
    await db.refresh(user)

    log.info("login user=%s role=%s", user.id, user.role)
    return user, issued


def _revoke_sessions_stmt(user_id: str):
    return (
        update(UserSession)
        .where(UserSession.user_id == user_id, UserSession.revoked_at.is_(None))
        .values(revoked_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )


async def count_live_sessions(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count(UserSession.id)).where(
            UserSession.user_id == user_id,
            UserSession.revoked_at.is_(None),
            UserSession.expires_at > utcnow(),
        )
    )
    return result.scalar_one()


async def reset_password(db: AsyncSession, phone: str, new_password: str):
    user = await get_user_by_phone(db, phone)
    if not user:
        raise NotFound("User not found")

    user.password_hash = hash_password(new_password)
    await db.execute(_revoke_sessions_stmt(user.id))
    await db.commit()
    log.info("password reset user=%s", user.id)


def ensure_can_manage(actor_role: Optional[Role], target: User, new_role: Optional[Role] = None):
    """
    Only a super admin may act on admin accounts or hand out an admin role.
    ``actor_role`` is None for trusted maintenance scripts.
    """
    if actor_role is None or actor_role == Role.SUPER_ADMIN:
        return
    if Role(target.role) in ADMIN_ROLES or new_role in ADMIN_ROLES:
        raise Forbidden("Only a super admin can manage admin accounts")


async def approve_user(
    db: AsyncSession, user_id: str, role: Optional[Role], approved: bool, actor_role: Optional[Role]
) -> User:
    user = await get_user_or_404(db, user_id)
    ensure_can_manage(actor_role, user, role)

    if role is not None:
        user.role = role.value
    user.is_approved = approved
    if not approved:
        await db.execute(_revoke_sessions_stmt(user.id))

    notify(
        db, user.id,
        title="Account approved" if approved else "Account approval withdrawn",
        message=(
            f"Your account has been approved as {user.role}."
            if approved else "Your account approval has been withdrawn by an administrator."
        ),
        notification_type=NotificationType.ACCOUNT,
    )
    await db.commit()
    await db.refresh(user)
    log.info("approval user=%s role=%s approved=%s", user.id, user.role, approved)
    return user


async def set_active(
    db: AsyncSession, user_id: str, is_active: bool, actor_id: str, actor_role: Optional[Role]
) -> User:
    if user_id == actor_id and not is_active:
        raise ValidationFailed("You cannot disable your own account")

    user = await get_user_or_404(db, user_id)
    ensure_can_manage(actor_role, user)
    user.is_active = is_active
    if not is_active:
        # Tokens stay cryptographically valid until expiry; the session rows record the revocation
        await db.execute(_revoke_sessions_stmt(user.id))

    await db.commit()
    await db.refresh(user)
    log.info("user=%s active=%s by=%s", user.id, is_active, actor_id)
    return user


async def delete_user(
    db: AsyncSession, user_id: str, actor_id: Optional[str], actor_role: Optional[Role]
):
    if user_id == actor_id:
        raise ValidationFailed("You cannot delete your own account")

    user = await get_user_or_404(db, user_id)
    ensure_can_manage(actor_role, user)

    owned = await db.execute(
        select(func.count(Shipment.id)).where(Shipment.customer_id == user_id)
    )
    if owned.scalar_one():
        raise Conflict("User owns shipments and cannot be deleted; disable the account instead")

    await db.execute(delete(UserSession).where(UserSession.user_id == user_id))
    await db.execute(delete(Notification).where(Notification.user_id == user_id))
    await db.execute(delete(DriverLocation).where(DriverLocation.driver_id == user_id))
    await db.execute(delete(Complaint).where(Complaint.user_id == user_id))
    await db.execute(
        update(Shipment).where(Shipment.driver_id == user_id).values(driver_id=None)
    )
    await db.execute(
        update(Complaint).where(Complaint.assigned_to_id == user_id).values(assigned_to_id=None)
    )
    await db.execute(
        update(User).where(User.created_by_id == user_id).values(created_by_id=None)
    )
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
    log.info("deleted user=%s by=%s", user_id, actor_id)


async def list_users(db: AsyncSession, role: Optional[Role] = None):
    query = select(User)
    if role is not None:
        query = query.where(User.role == role.value)
    result = await db.execute(query.order_by(User.created_at.desc()))
    return result.scalars().all()


async def list_pending_users(db: AsyncSession):
    result = await db.execute(
        select(User)
        .where(User.is_approved == False)
        .order_by(User.created_at.desc())
    )
    return result.scalars().all()


async def ensure_super_admin(db: AsyncSession, phone: str, password: str, name: str) -> User:
    """Create the bootstrap super admin if the phone is not registered yet."""
    existing = await get_user_by_phone(db, phone)
    if existing:
        return existing

    user = await _insert_user(db, phone, password, name, Role.SUPER_ADMIN, None, is_approved=True)
    log.info("seeded super admin user=%s", user.id)
    return user
