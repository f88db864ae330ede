from sqlalchemy import Column, String, Float, Numeric, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from logistics_pro.models.base import Base
from logistics_pro.core.constants import ShipmentStatus
from logistics_pro.utils.timezones import utcnow
import uuid


class Shipment(Base):
    __tablename__ = "shipments"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    tracking_number = Column(String(50), unique=True, nullable=False)
    qr_token = Column(String(64), unique=True, nullable=True)
    customer_id = Column(String, ForeignKey("users.id"), nullable=False)
    driver_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    pickup_address = Column(Text, nullable=True)
    pickup_latitude = Column(Float, nullable=True)
    pickup_longitude = Column(Float, nullable=True)
    destination_address = Column(Text, nullable=False)
    destination_latitude = Column(Float, nullable=True)
    destination_longitude = Column(Float, nullable=True)

    description = Column(Text, nullable=True)
    recipient_name = Column(String(100), nullable=True)
    recipient_phone = Column(String(20), nullable=True)
    weight = Column(Numeric(10, 2), nullable=True)
    cost = Column(Numeric(10, 2), nullable=True)

    status = Column(String(20), default=ShipmentStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    # Filled in when the shipment reaches "delivered"
    delivered_at = Column(DateTime, nullable=True)
    delivery_latitude = Column(Float, nullable=True)
    delivery_longitude = Column(Float, nullable=True)

    customer = relationship("User", foreign_keys=[customer_id])
    driver = relationship("User", foreign_keys=[driver_id])
    history = relationship(
        "ShipmentStatusHistory",
        back_populates="shipment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ShipmentStatusHistory.created_at",
    )
    scans = relationship(
        "QrScan",
        back_populates="shipment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QrScan.created_at",
    )

    __table_args__ = (
        Index("idx_shipments_customer", "customer_id"),
        Index("idx_shipments_driver", "driver_id"),
        Index("idx_shipments_status", "status"),
    )


class ShipmentStatusHistory(Base):
    """Append-only log, one row per status change"""
    __tablename__ = "shipment_status_history"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    shipment_id = Column(String, ForeignKey("shipments.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    changed_by_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    shipment = relationship("Shipment", back_populates="history")
    changed_by = relationship("User")

    __table_args__ = (
        Index("idx_status_history_shipment", "shipment_id"),
    )


class QrScan(Base):
    """Append-only scan event; proof that a driver was physically at a location"""
    __tablename__ = "qr_scans"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    shipment_id = Column(String, ForeignKey("shipments.id", ondelete="CASCADE"), nullable=False)
    driver_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    scan_type = Column(String(20), nullable=False)  # pickup, delivery, transfer
    qr_data = Column(Text, nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    accuracy = Column(Float, nullable=True)
    photo_url = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    shipment = relationship("Shipment", back_populates="scans")

    __table_args__ = (
        Index("idx_qr_scans_shipment", "shipment_id"),
        Index("idx_qr_scans_driver", "driver_id"),
    )
