from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import case
from typing import Optional
import logging

from logistics_pro.models.complaint import Complaint
from logistics_pro.models.shipment import Shipment
from logistics_pro.models.user import User
from logistics_pro.schemas.complaint import ComplaintCreate, ComplaintUpdate
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.constants import ComplaintStatus, PRIORITY_RANK, ADMIN_ROLES
from logistics_pro.core.errors import NotFound, ValidationFailed
from logistics_pro.utils.timezones import utcnow

log = logging.getLogger(__name__)

priority_rank = case(
    {p.value: rank for p, rank in PRIORITY_RANK.items()},
    value=Complaint.priority,
    else_=len(PRIORITY_RANK) + 1,
)


async def create_complaint(db: AsyncSession, data: ComplaintCreate, identity: Identity) -> Complaint:
    if data.shipment_id and not await db.get(Shipment, data.shipment_id):
        raise NotFound("Shipment not found")

    complaint = Complaint(
        user_id=identity.user_id,
        user_role=identity.role.value,
        shipment_id=data.shipment_id,
        title=data.title,
        description=data.description,
        complaint_type=data.complaint_type,
        priority=data.priority.value,
        status=ComplaintStatus.OPEN.value,
    )
    db.add(complaint)
    await db.commit()
    await db.refresh(complaint)
    log.info("complaint=%s priority=%s by=%s", complaint.id, complaint.priority, identity.user_id)
    return complaint


async def list_complaints(db: AsyncSession, status: Optional[ComplaintStatus] = None):
    """Triage order: urgent, high, medium, low; newest first inside a priority"""
    query = select(Complaint)
    if status is not None:
        query = query.where(Complaint.status == status.value)
    result = await db.execute(query.order_by(priority_rank, Complaint.created_at.desc()))
    return result.scalars().all()


async def list_user_complaints(db: AsyncSession, user_id: str):
    result = await db.execute(
        select(Complaint)
        .where(Complaint.user_id == user_id)
        .order_by(Complaint.created_at.desc())
    )
    return result.scalars().all()


async def update_complaint(db: AsyncSession, complaint_id: str, data: ComplaintUpdate) -> Complaint:
    complaint = await db.get(Complaint, complaint_id)
    if not complaint:
        raise NotFound("Complaint not found")

    changes = data.model_dump(exclude_unset=True, mode="json")

    if changes.get("assigned_to_id"):
        assignee = await db.get(User, changes["assigned_to_id"])
        if not assignee or assignee.role not in {r.value for r in ADMIN_ROLES}:
            raise ValidationFailed("Complaints can only be assigned to admins")

    for field, value in changes.items():
        if value is None and field in ("status", "priority"):
            continue
        setattr(complaint, field, value)

    if data.status == ComplaintStatus.RESOLVED:
        complaint.resolved_at = utcnow()
    complaint.updated_at = utcnow()

    await db.commit()
    await db.refresh(complaint)
    log.info("complaint=%s updated fields=%s", complaint.id, sorted(changes))
    return complaint
