import enum


class Role(str, enum.Enum):
    CLIENT = "client"
    DRIVER = "driver"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ADMIN_ROLES = (Role.ADMIN, Role.SUPER_ADMIN)
SELF_REGISTER_ROLES = (Role.CLIENT, Role.DRIVER)
# Roles that cannot log in until an admin approves them
APPROVAL_REQUIRED_ROLES = (Role.DRIVER, Role.ADMIN)


class ShipmentStatus(str, enum.Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = (ShipmentStatus.DELIVERED, ShipmentStatus.CANCELLED)


class ScanType(str, enum.Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"
    TRANSFER = "transfer"


class ComplaintPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


PRIORITY_RANK = {
    ComplaintPriority.URGENT: 1,
    ComplaintPriority.HIGH: 2,
    ComplaintPriority.MEDIUM: 3,
    ComplaintPriority.LOW: 4,
}


class ComplaintStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class NotificationType(str, enum.Enum):
    GENERAL = "general"
    GPS_DISABLED = "gps_disabled"
    SHIPMENT_ASSIGNED = "shipment_assigned"
    SHIPMENT_STATUS = "shipment_status"
    ACCOUNT = "account"
