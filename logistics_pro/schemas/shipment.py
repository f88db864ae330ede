from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from logistics_pro.core.constants import ShipmentStatus, ScanType


class ShipmentCreate(BaseModel):
    destination_address: str = Field(min_length=1)
    destination_latitude: Optional[float] = None
    destination_longitude: Optional[float] = None
    pickup_address: Optional[str] = None
    pickup_latitude: Optional[float] = None
    pickup_longitude: Optional[float] = None
    description: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    weight: Optional[Decimal] = Field(default=None, ge=0)
    cost: Optional[Decimal] = Field(default=None, ge=0)
    customer_id: Optional[str] = None  # admins only: create on behalf of a client


class StatusUpdate(BaseModel):
    status: ShipmentStatus
    notes: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class AssignDriver(BaseModel):
    driver_id: str
    notes: Optional[str] = None


class StatusHistoryRead(BaseModel):
    id: str
    status: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    notes: Optional[str] = None
    changed_by_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ShipmentRead(BaseModel):
    id: str
    tracking_number: str
    qr_token: Optional[str] = None
    customer_id: str
    driver_id: Optional[str] = None
    pickup_address: Optional[str] = None
    pickup_latitude: Optional[float] = None
    pickup_longitude: Optional[float] = None
    destination_address: str
    destination_latitude: Optional[float] = None
    destination_longitude: Optional[float] = None
    description: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_phone: Optional[str] = None
    weight: Optional[Decimal] = None
    cost: Optional[Decimal] = None
    status: str
    created_at: datetime
    updated_at: datetime
    delivered_at: Optional[datetime] = None
    delivery_latitude: Optional[float] = None
    delivery_longitude: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class ShipmentDetail(ShipmentRead):
    history: List[StatusHistoryRead] = []


class QrScanRequest(BaseModel):
    shipment_id: Optional[str] = None
    scan_type: ScanType
    qr_data: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    accuracy: Optional[float] = None
    photo_url: Optional[str] = None
    notes: Optional[str] = None


class QrScanRead(BaseModel):
    id: str
    shipment_id: str
    driver_id: Optional[str] = None
    scan_type: str
    qr_data: Optional[str] = None
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    photo_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
