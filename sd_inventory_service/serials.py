"""Serial registry: ownership and global uniqueness of serial numbers.

A serial number value may exist at most once across every item type. Item
repositories call ``ensure_available`` before writing, and the unique index on
``serial_numbers.serial_number`` catches anything that slips past the check
(two requests racing between check and insert).
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import delete, insert, select, update

from . import models, schemas
from .database import StorageGateway
from .enums import ItemStatus, plain
from .errors import ConstraintViolation, DuplicateSerialNumber, NotFound

logger = logging.getLogger(__name__)

serial_numbers = models.SerialNumber.__table__

WRITABLE_FIELDS = ("item_type", "item_id", "serial_number", "status")


def clean_serial_numbers(values: Optional[Iterable[str]]) -> List[str]:
    """Trim entries and drop blank ones, keeping the given order"""
    return [value.strip() for value in values or [] if value and value.strip()]


class SerialRegistry:
    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway

    def find_all(self, item_type=None, item_id: Optional[str] = None) -> List[schemas.SerialNumber]:
        query = select(models.SerialNumber)
        if item_type:
            query = query.where(models.SerialNumber.item_type == plain(item_type))
        if item_id:
            query = query.where(models.SerialNumber.item_id == item_id)
        query = query.order_by(models.SerialNumber.created_at.desc(), models.SerialNumber.id)
        return [schemas.SerialNumber.model_validate(row) for row in self.gateway.fetch_many(query)]

    def find_by_id(self, serial_id: str) -> Optional[schemas.SerialNumber]:
        row = self.gateway.fetch_one(select(models.SerialNumber).where(models.SerialNumber.id == serial_id))
        return schemas.SerialNumber.model_validate(row) if row is not None else None

    def find_by_serial_number(self, serial_number: str) -> Optional[schemas.SerialNumber]:
        row = self.gateway.fetch_one(
            select(models.SerialNumber).where(models.SerialNumber.serial_number == serial_number)
        )
        return schemas.SerialNumber.model_validate(row) if row is not None else None

    def find_by_item_id(self, item_id: str) -> List[schemas.SerialNumber]:
        query = (
            select(models.SerialNumber)
            .where(models.SerialNumber.item_id == item_id)
            .order_by(models.SerialNumber.created_at.asc(), models.SerialNumber.id)
        )
        return [schemas.SerialNumber.model_validate(row) for row in self.gateway.fetch_many(query)]

    def ensure_available(self, values: Iterable[str], owner_id: Optional[str] = None):
        """Raise DuplicateSerialNumber if a value is repeated or held by another item.

        Values already owned by ``owner_id`` are allowed, so an item can keep
        its serials across a replace.
        """
        seen = set()
        for value in clean_serial_numbers(values):
            if value in seen:
                raise DuplicateSerialNumber(value)
            seen.add(value)
            existing = self.find_by_serial_number(value)
            if existing is not None and existing.item_id != owner_id:
                logger.warning(f"Serial number {value} already belongs to {existing.item_type} {existing.item_id}")
                raise DuplicateSerialNumber(value)

    def create(self, item_type, item_id: str, serial_number: str,
               status=ItemStatus.ACTIVE, serial_id: Optional[str] = None) -> schemas.SerialNumber:
        if self.find_by_serial_number(serial_number) is not None:
            raise DuplicateSerialNumber(serial_number)

        serial_id = serial_id or models.new_id()
        statement = insert(serial_numbers).values(
            id=serial_id,
            item_type=plain(item_type),
            item_id=item_id,
            serial_number=serial_number,
            status=plain(status),
        )
        self._write(statement, serial_number)
        return self.find_by_id(serial_id)

    def update(self, serial_id: str, data: dict) -> schemas.SerialNumber:
        """Overwrite a serial row; fields missing from ``data`` keep their value"""
        current = self.find_by_id(serial_id)
        if current is None:
            raise NotFound(f"Serial number {serial_id} not found")

        values = current.model_dump(mode="json", include=set(WRITABLE_FIELDS))
        values.update({field: plain(data[field]) for field in WRITABLE_FIELDS if field in data})

        clash = self.find_by_serial_number(values["serial_number"])
        if clash is not None and clash.id != serial_id:
            raise DuplicateSerialNumber(values["serial_number"])

        self._write(update(serial_numbers).where(serial_numbers.c.id == serial_id).values(**values),
                    values["serial_number"])
        return self.find_by_id(serial_id)

    def delete(self, serial_id: str) -> bool:
        outcome = self.gateway.execute(delete(serial_numbers).where(serial_numbers.c.id == serial_id))
        return outcome.rows_affected > 0

    def delete_by_item_id(self, item_id: str) -> int:
        outcome = self.gateway.execute(delete(serial_numbers).where(serial_numbers.c.item_id == item_id))
        return outcome.rows_affected

    def create_multiple(self, item_type, item_id: str, values: Iterable[str]) -> List[schemas.SerialNumber]:
        """Create one row per non-blank value; all or nothing"""
        created = []
        with self.gateway.transaction():
            for value in clean_serial_numbers(values):
                created.append(self.create(item_type, item_id, value))
        return created

    def _write(self, statement, serial_number: str):
        try:
            self.gateway.execute(statement)
        except ConstraintViolation as exc:
            if exc.kind == "unique":
                raise DuplicateSerialNumber(serial_number) from exc
            raise
