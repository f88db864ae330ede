from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from logistics_pro.db import get_db
from logistics_pro.auth.dependencies import get_current_identity, get_current_admin
from logistics_pro.auth.tokens import Identity
from logistics_pro.core.constants import ComplaintStatus
from logistics_pro.crud import complaint as complaint_crud
from logistics_pro.schemas.complaint import ComplaintCreate, ComplaintRead, ComplaintUpdate

router = APIRouter()


@router.post("", status_code=201)
async def create_complaint(
    payload: ComplaintCreate,
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    complaint = await complaint_crud.create_complaint(db, payload, identity)
    return {"success": True, "message": "Complaint submitted", "complaint": ComplaintRead.model_validate(complaint)}


@router.get("")
async def list_complaints(
    status: Optional[ComplaintStatus] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_current_admin),
):
    complaints = await complaint_crud.list_complaints(db, status)
    return {
        "success": True,
        "count": len(complaints),
        "complaints": [ComplaintRead.model_validate(c) for c in complaints],
    }


@router.get("/mine")
async def my_complaints(
    db: AsyncSession = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    complaints = await complaint_crud.list_user_complaints(db, identity.user_id)
    return {"success": True, "complaints": [ComplaintRead.model_validate(c) for c in complaints]}


@router.put("/{complaint_id}")
async def update_complaint(
    complaint_id: str,
    payload: ComplaintUpdate,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_current_admin),
):
    complaint = await complaint_crud.update_complaint(db, complaint_id, payload)
    return {"success": True, "message": "Complaint updated", "complaint": ComplaintRead.model_validate(complaint)}
