"""Repositories for the three item tables.

Computers and peripherals own serial numbers through the serial registry;
printer items are counted by quantity only. Writes go through Core statements
on the mapped tables, reads through ORM selects that are turned into schema
records before they leave the repository.
"""
import logging
from typing import Dict, List, Optional, Type

from sqlalchemy import delete, func, insert, or_, select, update

from . import models, schemas
from .database import StorageGateway
from .enums import AuditedTable, Category, ItemStatus, SerialItemType, plain
from .errors import Conflict, NotFound
from .serials import SerialRegistry, clean_serial_numbers

logger = logging.getLogger(__name__)


class ItemRepository:
    """CRUD and aggregation over one item table"""

    model = None
    record = None
    serial_item_type: Optional[SerialItemType] = None
    audit_table: Optional[AuditedTable] = None
    fields: tuple = ()
    label = "Item"

    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway
        self.table = self.model.__table__
        self.serials = SerialRegistry(gateway)

    @property
    def tracks_serials(self) -> bool:
        return self.serial_item_type is not None

    # --- reads ---

    def _to_record(self, row):
        item = self.record.model_validate(row)
        if self.tracks_serials:
            item = item.model_copy(update={"serial_numbers": self.serials.find_by_item_id(item.id)})
        return item

    def _select(self, office=None):
        query = select(self.model)
        if office:
            query = query.where(self.model.office == plain(office))
        return query

    def _list(self, query) -> list:
        query = query.order_by(self.model.created_at.desc(), self.model.id)
        # One serial query per item; fine for office-sized inventories
        return [self._to_record(row) for row in self.gateway.fetch_many(query)]

    def find_all(self, office=None) -> list:
        return self._list(self._select(office))

    def find_by_id(self, item_id: str):
        row = self.gateway.fetch_one(select(self.model).where(self.model.id == item_id))
        return self._to_record(row) if row is not None else None

    def exists(self, item_id: str) -> bool:
        found = self.gateway.fetch_one(select(self.model.id).where(self.model.id == item_id))
        return found is not None

    def find_by_serial_number(self, serial_number: str):
        if not self.tracks_serials:
            return None
        serial = self.serials.find_by_serial_number(serial_number)
        if serial is None or serial.item_type != self.serial_item_type:
            return None
        return self.find_by_id(serial.item_id)

    def get_counts_by_office(self) -> List[schemas.OfficeCount]:
        query = (
            select(
                self.model.office.label("office"),
                func.count(self.model.id).label("total"),
                func.sum(self.model.quantity).label("total_quantity"),
            )
            .where(self.model.status == ItemStatus.ACTIVE.value)
            .group_by(self.model.office)
            .order_by(self.model.office)
        )
        return [schemas.OfficeCount(**row) for row in self.gateway.fetch_rows(query)]

    # --- writes ---

    def _row_values(self, values: dict) -> dict:
        return {field: plain(values.get(field)) for field in self.fields if field in values}

    def create(self, data):
        """Insert the item and its serial numbers in one transaction"""
        values = schemas.as_values(data)
        item_id = values.get("id") or models.new_id()
        serial_numbers = clean_serial_numbers(values.get("serial_numbers"))

        if self.exists(item_id):
            raise Conflict(f"{self.label} {item_id} already exists")
        if self.tracks_serials:
            self.serials.ensure_available(serial_numbers)

        with self.gateway.transaction():
            self.gateway.execute(insert(self.table).values(id=item_id, **self._row_values(values)))
            if self.tracks_serials and serial_numbers:
                self.serials.create_multiple(self.serial_item_type, item_id, serial_numbers)

        logger.info(f"Created {self.label.lower()} {item_id}")
        return self.find_by_id(item_id)

    def update(self, item_id: str, data):
        """Overwrite every scalar field of an item.

        A ``serial_numbers`` entry, even an empty list, replaces the item's
        serials wholesale; leaving it out keeps them as they are.
        """
        values = schemas.as_values(data)
        if not self.exists(item_id):
            raise NotFound(f"{self.label} not found")

        replace_serials = self.tracks_serials and values.get("serial_numbers") is not None
        serial_numbers = clean_serial_numbers(values.get("serial_numbers"))
        if replace_serials:
            self.serials.ensure_available(serial_numbers, owner_id=item_id)

        row = {field: plain(values.get(field)) for field in self.fields}
        with self.gateway.transaction():
            self.gateway.execute(update(self.table).where(self.table.c.id == item_id).values(**row))
            if replace_serials:
                self.serials.delete_by_item_id(item_id)
                self.serials.create_multiple(self.serial_item_type, item_id, serial_numbers)

        logger.info(f"Updated {self.label.lower()} {item_id}")
        return self.find_by_id(item_id)

    replace = update

    def patch(self, item_id: str, changes: dict):
        """Merge ``changes`` over the stored item and replace it"""
        current = self.find_by_id(item_id)
        if current is None:
            raise NotFound(f"{self.label} not found")
        merged = current.model_dump(mode="json", include=set(self.fields))
        merged.update(schemas.as_values(changes))
        return self.update(item_id, merged)

    def save(self, data):
        """Replace the item if its id is already stored, create it otherwise"""
        values = schemas.as_values(data)
        item_id = values.get("id")
        if item_id and self.exists(item_id):
            return self.update(item_id, values)
        return self.create(values)

    def delete(self, item_id: str) -> bool:
        """Delete the item's serial numbers, then the item"""
        with self.gateway.transaction():
            if self.tracks_serials:
                self.serials.delete_by_item_id(item_id)
            outcome = self.gateway.execute(delete(self.table).where(self.table.c.id == item_id))
        if outcome.rows_affected:
            logger.info(f"Deleted {self.label.lower()} {item_id}")
        return outcome.rows_affected > 0

    # --- catalog rename propagation ---

    def rename_make(self, old_name: str, new_name: str) -> int:
        outcome = self.gateway.execute(
            update(self.table).where(self.table.c.make == old_name).values(make=new_name)
        )
        return outcome.rows_affected

    def rename_model(self, old_name: str, new_name: str) -> int:
        outcome = self.gateway.execute(
            update(self.table).where(self.table.c.model == old_name).values(model=new_name)
        )
        return outcome.rows_affected


class ComputerRepository(ItemRepository):
    model = models.Computer
    record = schemas.Computer
    serial_item_type = SerialItemType.COMPUTER
    audit_table = AuditedTable.COMPUTERS
    fields = ("make", "model", "quantity", "office", "status")
    label = "Computer"

    def search_by_make_or_model(self, term: str, office=None) -> list:
        pattern = f"%{term}%"
        query = self._select(office).where(or_(self.model.make.like(pattern), self.model.model.like(pattern)))
        return self._list(query)


class PeripheralRepository(ItemRepository):
    model = models.Peripheral
    record = schemas.Peripheral
    serial_item_type = SerialItemType.PERIPHERAL
    audit_table = AuditedTable.PERIPHERALS
    fields = ("item_name", "make", "model", "quantity", "office", "status")
    label = "Peripheral"

    def search_by_name(self, term: str, office=None) -> list:
        query = self._select(office).where(self.model.item_name.like(f"%{term}%"))
        return self._list(query)


class PrinterItemRepository(ItemRepository):
    model = models.PrinterItem
    record = schemas.PrinterItem
    audit_table = AuditedTable.PRINTER_ITEMS
    fields = ("item_type", "make", "model", "quantity", "office", "status")
    label = "Printer item"

    def find_by_type(self, item_type: str, office=None) -> list:
        return self._list(self._select(office).where(self.model.item_type == item_type))


# Item table that holds the free-text make/model names of each catalog category
REPOSITORIES_BY_CATEGORY: Dict[Category, Type[ItemRepository]] = {
    Category.COMPUTER: ComputerRepository,
    Category.PERIPHERAL: PeripheralRepository,
    Category.PRINTER: PrinterItemRepository,
}


def repository_for(gateway: StorageGateway, category) -> ItemRepository:
    return REPOSITORIES_BY_CATEGORY[Category(plain(category))](gateway)
