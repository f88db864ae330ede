"""
Shipment status machine.

    pending -> assigned -> picked_up -> in_transit -> out_for_delivery -> delivered
    (any non-terminal) -> cancelled

``TRANSITIONS`` lists the forward moves. Historically any permitted actor could
write any status, so enforcement is opt-in through
``Settings.strict_status_transitions``; with it off, out-of-order writes are
logged and accepted.

``apply_status_change`` is the only place a shipment status is written. It
does not commit: callers commit once so the status, its history row and any
scan row land in the same transaction.
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from logistics_pro.core.constants import ShipmentStatus, ScanType, TERMINAL_STATUSES
from logistics_pro.core.errors import Conflict
from logistics_pro.models.shipment import Shipment, ShipmentStatusHistory
from logistics_pro.utils.timezones import utcnow

log = logging.getLogger(__name__)

S = ShipmentStatus

TRANSITIONS = {
    S.PENDING: {S.ASSIGNED, S.CANCELLED},
    S.ASSIGNED: {S.PICKED_UP, S.IN_TRANSIT, S.CANCELLED},
    S.PICKED_UP: {S.IN_TRANSIT, S.OUT_FOR_DELIVERY, S.DELIVERED, S.CANCELLED},
    S.IN_TRANSIT: {S.OUT_FOR_DELIVERY, S.DELIVERED, S.CANCELLED},
    S.OUT_FOR_DELIVERY: {S.IN_TRANSIT, S.DELIVERED, S.CANCELLED},
    S.DELIVERED: set(),
    S.CANCELLED: set(),
}

SCAN_STATUS = {
    ScanType.PICKUP: S.PICKED_UP,
    ScanType.DELIVERY: S.DELIVERED,
}


def status_for_scan(scan_type: ScanType) -> ShipmentStatus:
    """Fixed lookup, independent of the shipment's current status."""
    return SCAN_STATUS.get(scan_type, S.IN_TRANSIT)


def is_terminal(status) -> bool:
    return ShipmentStatus(status) in TERMINAL_STATUSES


def is_allowed(current, requested) -> bool:
    current, requested = ShipmentStatus(current), ShipmentStatus(requested)
    if current == requested:
        return True
    return requested in TRANSITIONS[current]


def check_transition(shipment: Shipment, requested: ShipmentStatus, strict: bool):
    if is_allowed(shipment.status, requested):
        return
    if strict:
        raise Conflict(
            f"Cannot move shipment from {shipment.status} to {requested.value}",
            current_status=shipment.status,
        )
    log.warning(
        "out-of-order status change accepted shipment=%s %s -> %s",
        shipment.id, shipment.status, requested.value,
    )


def apply_status_change(
    db: AsyncSession,
    shipment: Shipment,
    status: ShipmentStatus,
    actor_id: Optional[str],
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    notes: Optional[str] = None,
    strict: bool = False,
) -> ShipmentStatusHistory:
    check_transition(shipment, status, strict)

    now = utcnow()
    previous = shipment.status
    shipment.status = status.value
    shipment.updated_at = now

    if status == S.DELIVERED:
        shipment.delivered_at = now
        shipment.delivery_latitude = latitude
        shipment.delivery_longitude = longitude

    entry = ShipmentStatusHistory(
        shipment_id=shipment.id,
        status=status.value,
        latitude=latitude,
        longitude=longitude,
        notes=notes,
        changed_by_id=actor_id,
        created_at=now,
    )
    db.add(entry)

    log.info("shipment=%s status %s -> %s by=%s", shipment.id, previous, status.value, actor_id)
    return entry
