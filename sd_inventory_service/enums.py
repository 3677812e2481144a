from enum import Enum


class Office(str, Enum):
    """Office locations scoping nearly all queries"""
    OFFICE_1 = "Office 1"
    OFFICE_2 = "Office 2"
    OFFICE_3 = "Office 3"


class ItemStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class Category(str, Enum):
    """Make/model category"""
    COMPUTER = "computer"
    PERIPHERAL = "peripheral"
    PRINTER = "printer"


class ItemCategory(str, Enum):
    """Item table a restock request refers to"""
    COMPUTERS = "computers"
    PERIPHERALS = "peripherals"
    PRINTER_ITEMS = "printer_items"


class SerialItemType(str, Enum):
    COMPUTER = "computer"
    PERIPHERAL = "peripheral"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class RestockStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class AuditedTable(str, Enum):
    COMPUTERS = "computers"
    PERIPHERALS = "peripherals"
    PRINTER_ITEMS = "printer_items"
    RESTOCK_REQUESTS = "restock_requests"


def values(enum_class) -> list:
    return [member.value for member in enum_class]


def plain(value):
    """Unwrap enum members so they can be bound as statement parameters"""
    return value.value if isinstance(value, Enum) else value
