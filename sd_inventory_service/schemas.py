import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints, field_validator, model_validator

from .enums import Category, ItemCategory, ItemStatus, Office, Priority, RestockStatus, SerialItemType

T = TypeVar("T")

SerialValue = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]


def as_values(data) -> dict:
    """Plain dict of JSON-compatible values from a schema instance or mapping"""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return {key: value.value if isinstance(value, Enum) else value for key, value in dict(data).items()}


class ApiResponse(BaseModel, Generic[T]):
    """Envelope wrapping every successful response"""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    count: Optional[int] = None


class RequestModel(BaseModel):
    """Base for request bodies: strings are trimmed, unknown fields ignored"""

    class Config:
        str_strip_whitespace = True


class PartialUpdate(RequestModel):
    """Base for PUT bodies; at least one field must be supplied"""

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


# --- Serial numbers ---

class SerialNumber(BaseModel):
    """Schema for reading a serial number"""
    id: str
    item_type: SerialItemType
    item_id: str
    serial_number: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Computers ---

class ComputerBase(BaseModel):
    """Base schema for computers"""
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(1, ge=1)
    office: Office
    status: ItemStatus = ItemStatus.ACTIVE


class ComputerCreate(ComputerBase, RequestModel):
    """Schema for creating a computer"""
    serial_numbers: List[SerialValue] = Field(default_factory=list)


class ComputerUpdate(PartialUpdate):
    """Schema for updating a computer; a serial list replaces the current one"""
    make: str = Field(None, min_length=1, max_length=100)
    model: str = Field(None, min_length=1, max_length=100)
    quantity: int = Field(None, ge=1)
    office: Office = None
    status: ItemStatus = None
    serial_numbers: List[SerialValue] = None


class Computer(ComputerBase):
    """Schema for reading a computer"""
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    serial_numbers: List[SerialNumber] = Field(default_factory=list)

    class Config:
        from_attributes = True


# --- Peripherals ---

class PeripheralBase(BaseModel):
    """Base schema for peripherals"""
    item_name: str = Field(..., min_length=1, max_length=100)
    make: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    quantity: int = Field(1, ge=1)
    office: Office
    status: ItemStatus = ItemStatus.ACTIVE


class PeripheralCreate(PeripheralBase, RequestModel):
    """Schema for creating a peripheral"""
    serial_numbers: List[SerialValue] = Field(default_factory=list)


class PeripheralUpdate(PartialUpdate):
    """Schema for updating a peripheral"""
    item_name: str = Field(None, min_length=1, max_length=100)
    make: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    quantity: int = Field(None, ge=1)
    office: Office = None
    status: ItemStatus = None
    serial_numbers: List[SerialValue] = None


class Peripheral(PeripheralBase):
    """Schema for reading a peripheral"""
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    serial_numbers: List[SerialNumber] = Field(default_factory=list)

    class Config:
        from_attributes = True


# --- Printer items ---

class PrinterItemBase(BaseModel):
    """Base schema for printer consumables"""
    item_type: str = Field(..., min_length=1, max_length=100)
    make: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=200)
    quantity: int = Field(1, ge=1)
    office: Office
    status: ItemStatus = ItemStatus.ACTIVE


class PrinterItemCreate(PrinterItemBase, RequestModel):
    """Schema for creating a printer item"""
    pass


class PrinterItemUpdate(PartialUpdate):
    """Schema for updating a printer item"""
    item_type: str = Field(None, min_length=1, max_length=100)
    make: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=200)
    quantity: int = Field(None, ge=1)
    office: Office = None
    status: ItemStatus = None


class PrinterItem(PrinterItemBase):
    """Schema for reading a printer item"""
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OfficeCount(BaseModel):
    office: str
    total: int
    total_quantity: Optional[int] = None


# --- Makes and models ---

class MakeCreate(RequestModel):
    """Schema for creating or renaming a make"""
    name: str = Field(..., min_length=1, max_length=100)
    category: Category


class Make(BaseModel):
    """Schema for reading a make"""
    id: str
    name: str
    category: Category
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ModelCreate(RequestModel):
    """Schema for creating or renaming a model"""
    name: str = Field(..., min_length=1, max_length=100)
    make_id: UUID
    category: Category


class Model(BaseModel):
    """Schema for reading a model"""
    id: str
    name: str
    make_id: str
    make_name: Optional[str] = None
    category: Category
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Restock requests ---

def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RestockRequestCreate(RequestModel):
    """Schema for creating a restock request"""
    item_category: ItemCategory
    item_description: str = Field(..., min_length=1, max_length=500)
    make_id: Optional[UUID] = None
    model_id: Optional[UUID] = None
    quantity_requested: int = Field(..., ge=1)
    office: Office
    priority: Priority = Priority.NORMAL
    status: RestockStatus = RestockStatus.PENDING
    requested_by: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("make_id", "model_id", mode="before")
    @classmethod
    def blank_reference_is_none(cls, v):
        return _blank_to_none(v)


class RestockRequestUpdate(PartialUpdate):
    """Schema for updating a restock request"""
    item_category: ItemCategory = None
    item_description: str = Field(None, min_length=1, max_length=500)
    make_id: Optional[UUID] = None
    model_id: Optional[UUID] = None
    quantity_requested: int = Field(None, ge=1)
    office: Office = None
    priority: Priority = None
    status: RestockStatus = None
    requested_by: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("make_id", "model_id", mode="before")
    @classmethod
    def blank_reference_is_none(cls, v):
        return _blank_to_none(v)


class RestockRequest(BaseModel):
    """Schema for reading a restock request"""
    id: str
    item_category: ItemCategory
    item_description: str
    make_id: Optional[str] = None
    model_id: Optional[str] = None
    make_name: Optional[str] = None
    model_name: Optional[str] = None
    quantity_requested: int
    office: Office
    priority: Priority
    status: RestockStatus
    requested_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StatusCount(BaseModel):
    status: str
    count: int


class PriorityCount(BaseModel):
    priority: str
    count: int


# --- Audit log ---

class AuditLogEntry(BaseModel):
    """Schema for reading an audit entry; snapshots are decoded from JSON"""
    id: str
    table_name: str
    record_id: str
    action: str
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    office: Optional[str] = None
    timestamp: Optional[datetime] = None

    @field_validator("old_values", "new_values", mode="before")
    @classmethod
    def decode_snapshot(cls, value):
        # A damaged snapshot must not break the whole listing
        if value is None or isinstance(value, (dict, list)):
            return value
        try:
            return json.loads(value)
        except (TypeError, ValueError):
            return None

    class Config:
        from_attributes = True


class ActionCount(BaseModel):
    action: str
    count: int


class TableActivity(BaseModel):
    table_name: str
    activity_count: int


