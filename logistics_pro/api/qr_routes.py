from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from logistics_pro.db import get_db
from logistics_pro.api.deps import get_app_settings
from logistics_pro.auth.dependencies import get_current_driver, require_roles
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.config import Settings
from logistics_pro.core.constants import Role, ADMIN_ROLES
from logistics_pro.crud import shipment as shipment_crud
from logistics_pro.schemas.shipment import QrScanRead, QrScanRequest, ShipmentRead
from logistics_pro.services.qr_scan import record_scan

router = APIRouter()


@router.post("/scan", status_code=201)
async def scan(
    payload: QrScanRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    driver: Identity = Depends(get_current_driver),
):
    scan_row, shipment = await record_scan(db, driver, payload, strict=settings.strict_status_transitions)
    return {
        "success": True,
        "message": "Scan recorded",
        "scan": QrScanRead.model_validate(scan_row),
        "shipment": ShipmentRead.model_validate(shipment),
    }


@router.get("/scans/{shipment_id}")
async def shipment_scans(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.DRIVER, *ADMIN_ROLES)),
):
    scans = await shipment_crud.list_scans(db, shipment_id, identity)
    return {"success": True, "count": len(scans), "scans": [QrScanRead.model_validate(s) for s in scans]}
