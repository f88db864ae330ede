from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from logistics_pro.models.base import Base
from logistics_pro.core.constants import ComplaintPriority, ComplaintStatus
from logistics_pro.utils.timezones import utcnow
import uuid


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_role = Column(String(20), nullable=False)  # role at submission time
    shipment_id = Column(String, ForeignKey("shipments.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    complaint_type = Column(String(50), default="general", nullable=False)
    priority = Column(String(10), default=ComplaintPriority.MEDIUM.value, nullable=False)
    status = Column(String(20), default=ComplaintStatus.OPEN.value, nullable=False)
    assigned_to_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolution_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    user = relationship("User", foreign_keys=[user_id])
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])
    shipment = relationship("Shipment")

    __table_args__ = (
        Index("idx_complaints_status", "status"),
        Index("idx_complaints_user", "user_id"),
    )
