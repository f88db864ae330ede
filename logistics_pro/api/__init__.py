from fastapi import APIRouter
from . import (
    admin_routes,
    auth_routes,
    complaint_routes,
    location_routes,
    notification_routes,
    qr_routes,
    shipment_routes,
)

router = APIRouter()

router.include_router(auth_routes.router, prefix="/auth", tags=["Auth"])
router.include_router(location_routes.router, prefix="/location", tags=["Location"])
router.include_router(shipment_routes.router, prefix="/shipments", tags=["Shipments"])
router.include_router(qr_routes.router, prefix="/qr", tags=["QR Scans"])
router.include_router(complaint_routes.router, prefix="/complaints", tags=["Complaints"])
router.include_router(admin_routes.router, prefix="/admin", tags=["Admin"])
router.include_router(notification_routes.router, prefix="/notifications", tags=["Notifications"])

__all__ = ["router"]
