from .base import Base
from .user import User, UserSession
from .location import DriverLocation
from .shipment import Shipment, ShipmentStatusHistory, QrScan
from .complaint import Complaint
from .notification import Notification

__all__ = [
    "Base",
    "User",
    "UserSession",
    "DriverLocation",
    "Shipment",
    "ShipmentStatusHistory",
    "QrScan",
    "Complaint",
    "Notification",
]
