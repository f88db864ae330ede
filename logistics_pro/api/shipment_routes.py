from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from logistics_pro.db import get_db
from logistics_pro.api.deps import get_app_settings
from logistics_pro.auth.dependencies import get_current_identity, get_current_admin
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.config import Settings
from logistics_pro.core.constants import ShipmentStatus
from logistics_pro.crud import shipment as shipment_crud
from logistics_pro.schemas.shipment import (
    AssignDriver,
    ShipmentCreate,
    ShipmentDetail,
    ShipmentRead,
    StatusUpdate,
)

router = APIRouter()


def _summary(shipment) -> dict:
    data = ShipmentRead.model_validate(shipment).model_dump()
    data["customer_name"] = shipment.customer.name if shipment.customer else None
    data["driver_name"] = shipment.driver.name if shipment.driver else None
    return data


@router.post("", status_code=201)
async def create_shipment(
    payload: ShipmentCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    shipment = await shipment_crud.create_shipment(db, payload, identity)
    return {"success": True, "message": "Shipment created", "shipment": ShipmentRead.model_validate(shipment)}


@router.get("")
async def list_shipments(
    status: Optional[ShipmentStatus] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    shipments = await shipment_crud.list_shipments(db, identity, status)
    return {"success": True, "count": len(shipments), "shipments": [_summary(s) for s in shipments]}


@router.get("/track/{tracking_number}")
async def track_shipment(
    tracking_number: str,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    shipment = await shipment_crud.track_shipment(db, tracking_number, identity)
    return {"success": True, "shipment": ShipmentDetail.model_validate(shipment)}


@router.get("/{shipment_id}")
async def get_shipment(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    shipment = await shipment_crud.get_visible_shipment(db, shipment_id, identity)
    return {"success": True, "shipment": ShipmentDetail.model_validate(shipment)}


@router.put("/{shipment_id}/status")
async def update_status(
    shipment_id: str,
    payload: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    identity: Identity = Depends(get_current_identity),
):
    shipment = await shipment_crud.update_status(
        db, shipment_id, identity, payload.status,
        notes=payload.notes,
        latitude=payload.latitude,
        longitude=payload.longitude,
        strict=settings.strict_status_transitions,
    )
    return {"success": True, "message": "Status updated", "shipment": ShipmentDetail.model_validate(shipment)}


@router.put("/{shipment_id}/assign")
async def assign_driver(
    shipment_id: str,
    payload: AssignDriver,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    admin: Identity = Depends(get_current_admin),
):
    shipment = await shipment_crud.assign_driver(
        db, shipment_id, payload.driver_id, admin,
        notes=payload.notes,
        strict=settings.strict_status_transitions,
    )
    return {"success": True, "message": "Driver assigned", "shipment": ShipmentDetail.model_validate(shipment)}


@router.delete("/{shipment_id}")
async def delete_shipment(
    shipment_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_current_admin),
):
    await shipment_crud.delete_shipment(db, shipment_id, admin)
    return {"success": True, "message": "Shipment deleted"}
