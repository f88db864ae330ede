from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from logistics_pro.models.user import User
from logistics_pro.models.shipment import Shipment
from logistics_pro.models.complaint import Complaint
from logistics_pro.core.constants import Role, ComplaintStatus, TERMINAL_STATUSES
from logistics_pro.crud.location import list_active_drivers


async def _count(db: AsyncSession, query) -> int:
    result = await db.execute(query)
    return result.scalar_one()


async def get_dashboard(db: AsyncSession, window_minutes: int = 10) -> dict:
    """Recomputed from storage on every call"""
    stats = {
        "active_drivers": await _count(db, select(func.count(User.id)).where(
            User.role == Role.DRIVER.value,
            User.is_active == True,
            User.is_approved == True,
        )),
        "total_clients": await _count(db, select(func.count(User.id)).where(
            User.role == Role.CLIENT.value,
        )),
        "active_shipments": await _count(db, select(func.count(Shipment.id)).where(
            Shipment.status.notin_([s.value for s in TERMINAL_STATUSES]),
        )),
        "open_complaints": await _count(db, select(func.count(Complaint.id)).where(
            Complaint.status == ComplaintStatus.OPEN.value,
        )),
        "pending_approvals": await _count(db, select(func.count(User.id)).where(
            User.is_approved == False,
        )),
    }

    result = await db.execute(
        select(Shipment)
        .options(selectinload(Shipment.customer), selectinload(Shipment.driver))
        .order_by(Shipment.created_at.desc())
        .limit(10)
    )
    recent = [
        {
            "id": s.id,
            "tracking_number": s.tracking_number,
            "status": s.status,
            "destination_address": s.destination_address,
            "customer_name": s.customer.name if s.customer else None,
            "driver_name": s.driver.name if s.driver else None,
            "created_at": s.created_at,
        }
        for s in result.scalars().all()
    ]

    return {
        "stats": stats,
        "recent_shipments": recent,
        "drivers_online": await list_active_drivers(db, window_minutes),
    }
