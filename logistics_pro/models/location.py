from sqlalchemy import Column, String, Float, Integer, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from logistics_pro.models.base import Base
from logistics_pro.utils.timezones import utcnow
import uuid


class DriverLocation(Base):
    """Latest known position of a driver; one row per driver, overwritten on every update"""
    __tablename__ = "driver_locations"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    driver_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    accuracy = Column(Float, nullable=True)  # meters
    speed = Column(Float, nullable=True)
    heading = Column(Float, nullable=True)
    battery_level = Column(Integer, nullable=True)
    is_gps_active = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    driver = relationship("User", back_populates="location")

    __table_args__ = (
        Index("idx_driver_locations_updated", "updated_at"),
    )
