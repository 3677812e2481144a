"""Error kinds raised by the persistence layer.

Every class carries the HTTP status the API maps it to, so route handlers can
let them propagate and leave the translation to the exception handlers in
``main.py``.
"""
from typing import Optional


class InventoryError(Exception):
    """Base class for all service errors"""
    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.error)
        self.message = message or self.error


class NotFound(InventoryError):
    status_code = 404
    error = "Not found"


class Conflict(InventoryError):
    status_code = 400
    error = "Conflict"


class DuplicateName(Conflict):
    error = "Duplicate name"


class DuplicateSerialNumber(Conflict):
    error = "Duplicate serial number"

    def __init__(self, serial_number: str):
        super().__init__(f"Serial number '{serial_number}' already exists")
        self.serial_number = serial_number


class CategoryMismatch(Conflict):
    error = "Category mismatch"


class InvalidReference(InventoryError):
    status_code = 400
    error = "Invalid reference"


class InvalidTransition(InventoryError):
    status_code = 400
    error = "Invalid status transition"


class ValidationFailure(InventoryError):
    status_code = 400
    error = "Validation error"


class StorageError(InventoryError):
    """Engine failure that is neither a constraint violation nor contention"""
    status_code = 500
    error = "Storage error"


class ConstraintViolation(StorageError):
    status_code = 400

    # kind -> (error, message) as rendered to API clients
    KINDS = {
        "unique": ("Duplicate entry", "A record with this value already exists"),
        "check": ("Constraint violation", "Invalid value provided"),
        "foreign_key": ("Foreign key constraint", "Referenced record does not exist or is still referenced"),
        "not_null": ("Constraint violation", "A required value is missing"),
    }

    def __init__(self, kind: str, detail: Optional[str] = None):
        error, message = self.KINDS.get(kind, ("Constraint violation", "Invalid value provided"))
        super().__init__(message)
        self.kind = kind
        self.error = error
        self.detail = detail


class StorageUnavailable(StorageError):
    """Busy timeout exceeded or connection lost; reported like any storage failure"""
    error = "Storage unavailable"
