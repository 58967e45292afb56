from enum import Enum


class FeeFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class ContractStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT_TO_DRIVER = "SENT_TO_DRIVER"
    DRIVER_SIGNED = "DRIVER_SIGNED"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    ENDED = "ENDED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class VehicleStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    ASSIGNED = "ASSIGNED"
    MAINTENANCE = "MAINTENANCE"
    INACTIVE = "INACTIVE"


class DriverVerificationStatus(str, Enum):
    UNVERIFIED = "UNVERIFIED"
    PENDING_REVIEW = "PENDING_REVIEW"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class MaintenanceStatus(str, Enum):
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class VehicleCostType(str, Enum):
    LICENSE = "LICENSE"
    SERVICE = "SERVICE"
    REPAIR = "REPAIR"
    TYRES = "TYRES"
    INSURANCE = "INSURANCE"
    FUEL = "FUEL"
    FINES = "FINES"
    OTHER = "OTHER"


class DashboardRange(str, Enum):
    ALL = "all"
    MONTH = "month"
    WEEK = "week"


class NotificationType(str, Enum):
    CONTRACT = "CONTRACT"
    PAYMENT = "PAYMENT"
    SYSTEM = "SYSTEM"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


# Weekday anchors use 0=Sunday .. 6=Saturday
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday",
                 "Wednesday", "Thursday", "Friday", "Saturday"]
