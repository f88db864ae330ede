from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.dialects import postgresql, sqlite
from typing import Dict, List, Optional
import logging

from logistics_pro.models.location import DriverLocation
from logistics_pro.models.shipment import Shipment
from logistics_pro.models.user import User
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.constants import Role, TERMINAL_STATUSES, NotificationType
from logistics_pro.core.errors import Forbidden, NotFound, ValidationFailed
from logistics_pro.crud.notification import notify, get_primary_admin
from logistics_pro.utils.timezones import utcnow, minutes_ago

log = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

TERMINAL_VALUES = [s.value for s in TERMINAL_STATUSES]


def _insert_for(db: AsyncSession):
    dialect = db.bind.dialect.name
    try:
        return _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise RuntimeError(f"Location upsert is not supported on dialect {dialect!r}")


async def get_location(db: AsyncSession, driver_id: str) -> Optional[DriverLocation]:
    result = await db.execute(
        select(DriverLocation).where(DriverLocation.driver_id == driver_id)
    )
    return result.scalar_one_or_none()


async def update_location(
    db: AsyncSession,
    driver_id: str,
    latitude: Optional[float],
    longitude: Optional[float],
    accuracy: Optional[float] = None,
    speed: Optional[float] = None,
    heading: Optional[float] = None,
    battery_level: Optional[int] = None,
) -> DriverLocation:
    """Insert or replace the single current-position row of a driver."""
    if latitude is None or longitude is None:
        raise ValidationFailed("Latitude and longitude are required")

    values = {
        "latitude": latitude,
        "longitude": longitude,
        "accuracy": accuracy,
        "speed": speed,
        "heading": heading,
        "battery_level": battery_level,
        "is_gps_active": True,
        "updated_at": utcnow(),
    }
    insert = _insert_for(db)
    stmt = insert(DriverLocation).values(driver_id=driver_id, **values)
    stmt = stmt.on_conflict_do_update(index_elements=[DriverLocation.driver_id], set_=values)
    await db.execute(stmt)
    await db.commit()

    location = await db.execute(
        select(DriverLocation)
        .where(DriverLocation.driver_id == driver_id)
        .execution_options(populate_existing=True)
    )
    return location.scalar_one()


async def mark_gps_disabled(
    db: AsyncSession,
    driver: Identity,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    reason: Optional[str] = None,
) -> Optional[DriverLocation]:
    location = await get_location(db, driver.user_id)
    if location:
        location.is_gps_active = False

    admin = await get_primary_admin(db)
    if admin:
        lat = latitude if latitude is not None else (location.latitude if location else None)
        lng = longitude if longitude is not None else (location.longitude if location else None)
        where = f" near ({lat}, {lng})" if lat is not None and lng is not None else ""
        notify(
            db, admin.id,
            title="Driver GPS disabled",
            message=f"Driver {driver.phone} turned off GPS{where}. Reason: {reason or 'not given'}",
            notification_type=NotificationType.GPS_DISABLED,
        )
    else:
        log.warning("GPS disabled by driver=%s but no admin account to notify", driver.user_id)

    await db.commit()
    log.info("gps disabled driver=%s reason=%s", driver.user_id, reason)
    return location


async def _current_shipments(db: AsyncSession, driver_ids: List[str]) -> Dict[str, Shipment]:
    """Most recently updated non-terminal shipment per driver"""
    if not driver_ids:
        return {}

    result = await db.execute(
        select(Shipment)
        .where(
            Shipment.driver_id.in_(driver_ids),
            Shipment.status.notin_(TERMINAL_VALUES),
        )
        .order_by(Shipment.updated_at.desc())
    )
    current = {}
    for shipment in result.scalars().all():
        current.setdefault(shipment.driver_id, shipment)
    return current


async def list_active_drivers(db: AsyncSession, window_minutes: int) -> List[dict]:
    cutoff = minutes_ago(window_minutes)
    result = await db.execute(
        select(DriverLocation, User)
        .join(User, User.id == DriverLocation.driver_id)
        .where(DriverLocation.updated_at >= cutoff)
        .order_by(DriverLocation.updated_at.desc())
    )
    rows = result.all()
    shipments = await _current_shipments(db, [loc.driver_id for loc, _ in rows])

    drivers = []
    for location, user in rows:
        shipment = shipments.get(location.driver_id)
        drivers.append({
            "driver_id": user.id,
            "name": user.name,
            "phone": user.phone,
            "latitude": location.latitude,
            "longitude": location.longitude,
            "accuracy": location.accuracy,
            "speed": location.speed,
            "heading": location.heading,
            "battery_level": location.battery_level,
            "is_gps_active": location.is_gps_active,
            "updated_at": location.updated_at,
            "is_busy": shipment is not None,
            "current_shipment": {
                "id": shipment.id,
                "tracking_number": shipment.tracking_number,
                "status": shipment.status,
                "destination_address": shipment.destination_address,
            } if shipment else None,
        })
    return drivers


async def client_can_see_driver(db: AsyncSession, client_id: str, driver_id: str) -> bool:
    result = await db.execute(
        select(Shipment.id).where(
            Shipment.customer_id == client_id,
            Shipment.driver_id == driver_id,
            Shipment.status.notin_(TERMINAL_VALUES),
        ).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_driver_location_for(db: AsyncSession, driver_id: str, requester: Identity) -> DriverLocation:
    if requester.is_admin:
        allowed = True
    elif requester.role == Role.DRIVER:
        allowed = requester.user_id == driver_id
    elif requester.role == Role.CLIENT:
        allowed = await client_can_see_driver(db, requester.user_id, driver_id)
    else:
        allowed = False

    if not allowed:
        raise Forbidden("You are not allowed to track this driver")

    location = await get_location(db, driver_id)
    if not location:
        raise NotFound("No location recorded for this driver")
    return location
