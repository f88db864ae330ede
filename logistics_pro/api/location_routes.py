from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from logistics_pro.db import get_db
from logistics_pro.api.deps import get_app_settings
from logistics_pro.auth.dependencies import get_current_identity, get_current_admin, get_current_driver
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.config import Settings
from logistics_pro.crud import location as location_crud
from logistics_pro.schemas.location import GpsDisabledReport, LocationRead, LocationUpdate

router = APIRouter()


@router.post("/update")
async def update_location(
    payload: LocationUpdate,
    db: AsyncSession = Depends(get_db),
    driver: Identity = Depends(get_current_driver),
):
    location = await location_crud.update_location(
        db,
        driver.user_id,
        payload.latitude,
        payload.longitude,
        accuracy=payload.accuracy,
        speed=payload.speed,
        heading=payload.heading,
        battery_level=payload.battery_level,
    )
    return {"success": True, "message": "Location updated", "location": LocationRead.model_validate(location)}


@router.post("/gps-disabled")
async def gps_disabled(
    payload: GpsDisabledReport,
    db: AsyncSession = Depends(get_db),
    driver: Identity = Depends(get_current_driver),
):
    location = await location_crud.mark_gps_disabled(
        db, driver, payload.latitude, payload.longitude, payload.reason
    )
    return {
        "success": True,
        "message": "GPS disabled reported",
        "location": LocationRead.model_validate(location) if location else None,
    }


@router.get("/drivers")
async def active_drivers(
    minutes: Optional[int] = Query(default=None, ge=1, le=24 * 60),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    admin: Identity = Depends(get_current_admin),
):
    window = minutes or settings.active_driver_window_minutes
    drivers = await location_crud.list_active_drivers(db, window)
    return {"success": True, "window_minutes": window, "count": len(drivers), "drivers": drivers}


@router.get("/driver/{driver_id}")
async def driver_location(
    driver_id: str,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    location = await location_crud.get_driver_location_for(db, driver_id, identity)
    return {"success": True, "location": LocationRead.model_validate(location)}
