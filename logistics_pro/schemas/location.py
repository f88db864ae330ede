from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class LocationUpdate(BaseModel):
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None
    battery_level: Optional[int] = Field(default=None, ge=0, le=100)


class GpsDisabledReport(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    reason: Optional[str] = None


class LocationRead(BaseModel):
    driver_id: str
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None
    battery_level: Optional[int] = None
    is_gps_active: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
