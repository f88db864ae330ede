from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional
from logistics_pro.core.constants import ComplaintPriority, ComplaintStatus


class ComplaintCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    complaint_type: str = "general"
    priority: ComplaintPriority = ComplaintPriority.MEDIUM
    shipment_id: Optional[str] = None


class ComplaintUpdate(BaseModel):
    status: Optional[ComplaintStatus] = None
    priority: Optional[ComplaintPriority] = None
    assigned_to_id: Optional[str] = None
    resolution_notes: Optional[str] = None


class ComplaintRead(BaseModel):
    id: str
    user_id: str
    user_role: str
    shipment_id: Optional[str] = None
    title: str
    description: str
    complaint_type: str
    priority: str
    status: str
    assigned_to_id: Optional[str] = None
    resolution_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
