import logging
from typing import Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from logistics_pro.auth.tokens import Identity
from logistics_pro.core.constants import NotificationType
from logistics_pro.core.errors import NotFound, ValidationFailed
from logistics_pro.crud.notification import notify
from logistics_pro.crud.shipment import ensure_driver_assigned, find_by_code, get_shipment
from logistics_pro.models.shipment import QrScan, Shipment
from logistics_pro.schemas.shipment import QrScanRequest
from logistics_pro.services.status_flow import apply_status_change, status_for_scan

log = logging.getLogger(__name__)


async def _resolve_shipment(db: AsyncSession, payload: QrScanRequest) -> Shipment:
    shipment = None
    if payload.shipment_id:
        shipment = await get_shipment(db, payload.shipment_id)
    elif payload.qr_data:
        shipment = await find_by_code(db, payload.qr_data.strip())
    else:
        raise ValidationFailed("shipment_id or qr_data is required")

    if not shipment:
        raise NotFound("Shipment not found")

    if payload.shipment_id and payload.qr_data:
        scanned = await find_by_code(db, payload.qr_data.strip())
        if not scanned or scanned.id != shipment.id:
            raise ValidationFailed("Scanned QR code does not match this shipment")
    return shipment


async def record_scan(
    db: AsyncSession, driver: Identity, payload: QrScanRequest, strict: bool = False
) -> Tuple[QrScan, Shipment]:
    """
    Record a scan and move the shipment to the status the scan type implies.

    A GPS fix is mandatory: the scan row is the evidence that the driver was
    physically with the parcel. Nothing is written when it is missing, when the
    shipment belongs to another driver, or when strict transitions reject the
    derived status.
    """
    if payload.latitude is None or payload.longitude is None:
        log.warning("scan rejected without GPS driver=%s", driver.user_id)
        raise ValidationFailed("GPS location is required to scan a shipment", require_gps=True)

    shipment = await _resolve_shipment(db, payload)
    ensure_driver_assigned(shipment, driver)

    new_status = status_for_scan(payload.scan_type)
    apply_status_change(
        db, shipment, new_status, driver.user_id,
        latitude=payload.latitude,
        longitude=payload.longitude,
        notes=payload.notes or f"QR scan: {payload.scan_type.value}",
        strict=strict,
    )

    scan = QrScan(
        shipment_id=shipment.id,
        driver_id=driver.user_id,
        scan_type=payload.scan_type.value,
        qr_data=payload.qr_data,
        latitude=payload.latitude,
        longitude=payload.longitude,
        accuracy=payload.accuracy,
        photo_url=payload.photo_url,
        notes=payload.notes,
    )
    db.add(scan)
    notify(
        db, shipment.customer_id,
        title="Shipment update",
        message=f"Shipment {shipment.tracking_number} is now {new_status.value}.",
        notification_type=NotificationType.SHIPMENT_STATUS,
    )

    await db.commit()
    await db.refresh(scan)
    log.info(
        "scan=%s type=%s shipment=%s driver=%s status=%s",
        scan.id, scan.scan_type, shipment.id, driver.user_id, new_status.value,
    )
    return scan, shipment
