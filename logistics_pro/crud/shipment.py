from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import or_
from sqlalchemy.orm import selectinload
from datetime import datetime
from typing import Optional
import logging
import secrets

from logistics_pro.models.shipment import Shipment, QrScan
from logistics_pro.models.user import User
from logistics_pro.schemas.shipment import ShipmentCreate
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.constants import Role, ShipmentStatus, NotificationType
from logistics_pro.core.errors import Forbidden, NotFound, ValidationFailed
from logistics_pro.crud.notification import notify
from logistics_pro.services.status_flow import apply_status_change
from logistics_pro.utils.timezones import utcnow

log = logging.getLogger(__name__)


def generate_tracking_number(now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    return f"TRK{now:%Y%m%d}{secrets.token_hex(4).upper()}"


def generate_qr_token() -> str:
    return secrets.token_urlsafe(18)


async def create_shipment(db: AsyncSession, data: ShipmentCreate, identity: Identity) -> Shipment:
    if identity.is_admin and data.customer_id:
        customer = await db.get(User, data.customer_id)
        if not customer or customer.role != Role.CLIENT.value:
            raise ValidationFailed("customer_id must reference a client account")
        customer_id = customer.id
    elif identity.role == Role.CLIENT or identity.is_admin:
        customer_id = identity.user_id
    else:
        raise Forbidden("Only clients and admins can create shipments")

    fields = data.model_dump(exclude={"customer_id"})
    shipment = Shipment(
        tracking_number=generate_tracking_number(),
        qr_token=generate_qr_token(),
        customer_id=customer_id,
        status=ShipmentStatus.PENDING.value,
        **fields,
    )
    db.add(shipment)
    await db.commit()
    await db.refresh(shipment)

    log.info("created shipment=%s tracking=%s customer=%s", shipment.id, shipment.tracking_number, customer_id)
    return shipment


def _scoped(query, identity: Identity):
    if identity.is_admin:
        return query
    if identity.role == Role.DRIVER:
        return query.where(Shipment.driver_id == identity.user_id)
    return query.where(Shipment.customer_id == identity.user_id)


def can_view(shipment: Shipment, identity: Identity) -> bool:
    if identity.is_admin:
        return True
    if identity.role == Role.DRIVER:
        return shipment.driver_id == identity.user_id
    return shipment.customer_id == identity.user_id


async def list_shipments(db: AsyncSession, identity: Identity, status: Optional[ShipmentStatus] = None):
    query = _scoped(
        select(Shipment).options(selectinload(Shipment.driver), selectinload(Shipment.customer)),
        identity,
    )
    if status is not None:
        query = query.where(Shipment.status == status.value)
    result = await db.execute(query.order_by(Shipment.created_at.desc()))
    return result.scalars().all()


async def get_shipment(db: AsyncSession, shipment_id: str, with_history: bool = False) -> Optional[Shipment]:
    query = select(Shipment).where(Shipment.id == shipment_id)
    if with_history:
        query = query.options(selectinload(Shipment.history)).execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_visible_shipment(db: AsyncSession, shipment_id: str, identity: Identity) -> Shipment:
    shipment = await get_shipment(db, shipment_id, with_history=True)
    if not shipment:
        raise NotFound("Shipment not found")
    if not can_view(shipment, identity):
        raise Forbidden("You do not have access to this shipment")
    return shipment


async def find_by_code(db: AsyncSession, code: str) -> Optional[Shipment]:
    """Resolve a shipment from a scanned QR token or a tracking number"""
    result = await db.execute(
        select(Shipment).where(or_(Shipment.qr_token == code, Shipment.tracking_number == code))
    )
    return result.scalar_one_or_none()


async def track_shipment(db: AsyncSession, tracking_number: str, identity: Identity) -> Shipment:
    result = await db.execute(
        select(Shipment)
        .where(Shipment.tracking_number == tracking_number)
        .options(selectinload(Shipment.history))
    )
    shipment = result.scalar_one_or_none()
    if not shipment:
        raise NotFound("Shipment not found")
    if not can_view(shipment, identity):
        raise Forbidden("You do not have access to this shipment")
    return shipment


def ensure_driver_assigned(shipment: Shipment, identity: Identity):
    if shipment.driver_id != identity.user_id:
        raise Forbidden("This shipment is not assigned to you")


async def update_status(
    db: AsyncSession,
    shipment_id: str,
    identity: Identity,
    status: ShipmentStatus,
    notes: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    strict: bool = False,
) -> Shipment:
    if not (identity.is_admin or identity.role == Role.DRIVER):
        raise Forbidden("Only the assigned driver or an admin can change shipment status")

    shipment = await get_shipment(db, shipment_id)
    if not shipment:
        raise NotFound("Shipment not found")
    if identity.role == Role.DRIVER:
        ensure_driver_assigned(shipment, identity)

    apply_status_change(
        db, shipment, status, identity.user_id,
        latitude=latitude, longitude=longitude, notes=notes, strict=strict,
    )
    if identity.user_id != shipment.customer_id:
        notify(
            db, shipment.customer_id,
            title="Shipment update",
            message=f"Shipment {shipment.tracking_number} is now {status.value}.",
            notification_type=NotificationType.SHIPMENT_STATUS,
        )
    await db.commit()
    return await get_shipment(db, shipment.id, with_history=True)


async def assign_driver(
    db: AsyncSession,
    shipment_id: str,
    driver_id: str,
    admin: Identity,
    notes: Optional[str] = None,
    strict: bool = False,
) -> Shipment:
    shipment = await get_shipment(db, shipment_id)
    if not shipment:
        raise NotFound("Shipment not found")

    driver = await db.get(User, driver_id)
    if not driver or driver.role != Role.DRIVER.value:
        raise ValidationFailed("driver_id must reference a driver account")
    if not driver.is_active or not driver.is_approved:
        raise ValidationFailed("Driver account is not active and approved")

    shipment.driver_id = driver.id
    apply_status_change(
        db, shipment, ShipmentStatus.ASSIGNED, admin.user_id,
        notes=notes or f"Assigned to {driver.name}", strict=strict,
    )
    notify(
        db, driver.id,
        title="New shipment assigned",
        message=f"Shipment {shipment.tracking_number} to {shipment.destination_address} was assigned to you.",
        notification_type=NotificationType.SHIPMENT_ASSIGNED,
    )
    await db.commit()
    log.info("shipment=%s assigned to driver=%s by=%s", shipment.id, driver.id, admin.user_id)
    return await get_shipment(db, shipment.id, with_history=True)


async def delete_shipment(db: AsyncSession, shipment_id: str, admin: Identity):
    shipment = await get_shipment(db, shipment_id)
    if not shipment:
        raise NotFound("Shipment not found")

    await db.delete(shipment)
    await db.commit()
    log.info("deleted shipment=%s by=%s", shipment_id, admin.user_id)


async def list_scans(db: AsyncSession, shipment_id: str, identity: Identity):
    shipment = await get_shipment(db, shipment_id)
    if not shipment:
        raise NotFound("Shipment not found")
    if not identity.is_admin:
        ensure_driver_assigned(shipment, identity)

    result = await db.execute(
        select(QrScan).where(QrScan.shipment_id == shipment_id).order_by(QrScan.created_at)
    )
    return result.scalars().all()

