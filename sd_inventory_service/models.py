import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .enums import AuditedTable, Category, ItemCategory, ItemStatus, Office, Priority, RestockStatus, SerialItemType, values


def new_id() -> str:
    """Identifiers are minted by the service, never by the engine"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # Naive UTC at microsecond resolution
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _one_of(column: str, enum_class) -> str:
    allowed = ", ".join(f"'{value}'" for value in values(enum_class))
    return f"{column} IN ({allowed})"


def _item_constraints(table: str) -> tuple:
    return (
        CheckConstraint("quantity >= 1", name=f"ck_{table}_quantity"),
        CheckConstraint(_one_of("office", Office), name=f"ck_{table}_office"),
        CheckConstraint(_one_of("status", ItemStatus), name=f"ck_{table}_status"),
    )


class Make(Base):
    """Canonical make name within a category"""
    __tablename__ = "makes"
    __table_args__ = (
        UniqueConstraint("name", "category", name="uq_makes_name_category"),
        CheckConstraint(_one_of("category", Category), name="ck_makes_category"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, index=True)
    category = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)


class Model(Base):
    """Canonical model name under a make; shares the make's category"""
    __tablename__ = "models"
    __table_args__ = (
        UniqueConstraint("name", "make_id", name="uq_models_name_make"),
        CheckConstraint(_one_of("category", Category), name="ck_models_category"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, index=True)
    make_id = Column(String(36), ForeignKey("makes.id"), nullable=False, index=True)
    category = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    make = relationship("Make", lazy="joined")

    @property
    def make_name(self):
        return self.make.name if self.make is not None else None


class InventoryItemMixin:
    """Columns shared by every item table"""
    id = Column(String(36), primary_key=True, default=new_id)
    quantity = Column(Integer, nullable=False, default=1)
    office = Column(String(20), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ItemStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)


class Computer(InventoryItemMixin, Base):
    __tablename__ = "computers"
    __table_args__ = _item_constraints("computers")

    make = Column(String(100), nullable=False, index=True)
    model = Column(String(100), nullable=False, index=True)


class Peripheral(InventoryItemMixin, Base):
    __tablename__ = "peripherals"
    __table_args__ = _item_constraints("peripherals")

    item_name = Column(String(100), nullable=False, index=True)
    make = Column(String(100), nullable=True, index=True)
    model = Column(String(100), nullable=True, index=True)


class PrinterItem(InventoryItemMixin, Base):
    """Printer consumables; tracked by quantity, never by serial number"""
    __tablename__ = "printer_items"
    __table_args__ = _item_constraints("printer_items")

    item_type = Column(String(100), nullable=False, index=True)
    make = Column(String(100), nullable=True, index=True)
    model = Column(String(200), nullable=True, index=True)


class SerialNumber(Base):
    """Serial number owned by a computer or peripheral.

    ``item_id`` points into either item table, so there is no foreign key;
    ownership cleanup is done explicitly by the item repositories.
    """
    __tablename__ = "serial_numbers"
    __table_args__ = (
        CheckConstraint(_one_of("item_type", SerialItemType), name="ck_serial_numbers_item_type"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    item_type = Column(String(20), nullable=False, index=True)
    item_id = Column(String(36), nullable=False, index=True)
    serial_number = Column(String(100), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, default=ItemStatus.ACTIVE.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)


class RestockRequest(Base):
    __tablename__ = "restock_requests"
    __table_args__ = (
        CheckConstraint("quantity_requested >= 1", name="ck_restock_requests_quantity"),
        CheckConstraint(_one_of("item_category", ItemCategory), name="ck_restock_requests_item_category"),
        CheckConstraint(_one_of("office", Office), name="ck_restock_requests_office"),
        CheckConstraint(_one_of("priority", Priority), name="ck_restock_requests_priority"),
        CheckConstraint(_one_of("status", RestockStatus), name="ck_restock_requests_status"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    item_category = Column(String(20), nullable=False, index=True)
    item_description = Column(String(500), nullable=False)
    make_id = Column(String(36), ForeignKey("makes.id", ondelete="SET NULL"), nullable=True)
    model_id = Column(String(36), ForeignKey("models.id", ondelete="SET NULL"), nullable=True)
    quantity_requested = Column(Integer, nullable=False)
    office = Column(String(20), nullable=False, index=True)
    priority = Column(String(20), nullable=False, default=Priority.NORMAL.value, index=True)
    status = Column(String(20), nullable=False, default=RestockStatus.PENDING.value, index=True)
    requested_by = Column(String(100), nullable=True)
    notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    make = relationship("Make", lazy="joined")
    model = relationship("Model", lazy="joined")

    @property
    def make_name(self):
        return self.make.name if self.make is not None else None

    @property
    def model_name(self):
        return self.model.name if self.model is not None else None


class AuditLogEntry(Base):
    """Append-only record of a mutation; snapshots are stored as JSON text"""
    __tablename__ = "audit_log"
    __table_args__ = (
        CheckConstraint(_one_of("table_name", AuditedTable), name="ck_audit_log_table_name"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    table_name = Column(String(50), nullable=False, index=True)
    record_id = Column(String(36), nullable=False, index=True)
    action = Column(String(20), nullable=False, index=True)
    old_values = Column(Text, nullable=True)
    new_values = Column(Text, nullable=True)
    office = Column(String(20), nullable=True, index=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
