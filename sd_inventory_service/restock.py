import logging
from typing import List, Optional

from sqlalchemy import case, delete, func, insert, select, update

from . import config, models, schemas
from .database import StorageGateway
from .enums import AuditedTable, Priority, RestockStatus, plain
from .errors import InvalidReference, InvalidTransition, NotFound

logger = logging.getLogger(__name__)

PRIORITY_RANK = {
    Priority.URGENT.value: 1,
    Priority.HIGH.value: 2,
    Priority.NORMAL.value: 3,
    Priority.LOW.value: 4,
}

# Only enforced when strict transitions are switched on
ALLOWED_TRANSITIONS = {
    RestockStatus.PENDING: {RestockStatus.APPROVED, RestockStatus.CANCELLED},
    RestockStatus.APPROVED: {RestockStatus.ORDERED, RestockStatus.CANCELLED},
    RestockStatus.ORDERED: {RestockStatus.RECEIVED, RestockStatus.CANCELLED},
    RestockStatus.RECEIVED: set(),
    RestockStatus.CANCELLED: set(),
}

FIELDS = (
    "item_category",
    "item_description",
    "make_id",
    "model_id",
    "quantity_requested",
    "office",
    "priority",
    "status",
    "requested_by",
    "notes",
)


class RestockLedger:
    """Restock requests and their status and priority aggregates"""

    audit_table = AuditedTable.RESTOCK_REQUESTS
    label = "Restock request"

    def __init__(self, gateway: StorageGateway, strict_transitions: bool = config.RESTOCK_STRICT_TRANSITIONS):
        self.gateway = gateway
        self.strict_transitions = strict_transitions
        self.table = models.RestockRequest.__table__

    def find_all(self, office=None, status=None, priority=None, item_category=None) -> List[schemas.RestockRequest]:
        query = select(models.RestockRequest)
        if office:
            query = query.where(models.RestockRequest.office == plain(office))
        if status:
            query = query.where(models.RestockRequest.status == plain(status))
        if priority:
            query = query.where(models.RestockRequest.priority == plain(priority))
        if item_category:
            query = query.where(models.RestockRequest.item_category == plain(item_category))
        query = query.order_by(models.RestockRequest.created_at.desc(), models.RestockRequest.id)
        return [schemas.RestockRequest.model_validate(row) for row in self.gateway.fetch_many(query)]

    def find_by_id(self, request_id: str) -> Optional[schemas.RestockRequest]:
        row = self.gateway.fetch_one(select(models.RestockRequest).where(models.RestockRequest.id == request_id))
        return schemas.RestockRequest.model_validate(row) if row is not None else None

    def _check_references(self, values: dict):
        if values.get("make_id"):
            found = self.gateway.fetch_one(select(models.Make.id).where(models.Make.id == values["make_id"]))
            if found is None:
                raise InvalidReference(f"Make {values['make_id']} does not exist")
        if values.get("model_id"):
            found = self.gateway.fetch_one(select(models.Model.id).where(models.Model.id == values["model_id"]))
            if found is None:
                raise InvalidReference(f"Model {values['model_id']} does not exist")

    def _check_transition(self, current: RestockStatus, target: RestockStatus):
        if not self.strict_transitions or current == target:
            return
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(f"Cannot move a restock request from {current.value} to {target.value}")

    def create(self, data) -> schemas.RestockRequest:
        values = schemas.as_values(data)
        request_id = values.get("id") or models.new_id()
        self._check_references(values)
        row = {field: plain(values[field]) for field in FIELDS if values.get(field) is not None}
        self.gateway.execute(insert(self.table).values(id=request_id, **row))
        logger.info(f"Created restock request {request_id}")
        return self.find_by_id(request_id)

    def update(self, request_id: str, data) -> schemas.RestockRequest:
        """Overwrite every field of a request"""
        values = schemas.as_values(data)
        current = self.find_by_id(request_id)
        if current is None:
            raise NotFound("Restock request not found")
        if values.get("status") is not None:
            self._check_transition(current.status, RestockStatus(values["status"]))
        self._check_references(values)

        row = {field: plain(values.get(field)) for field in FIELDS}
        self.gateway.execute(update(self.table).where(self.table.c.id == request_id).values(**row))
        logger.info(f"Updated restock request {request_id}")
        return self.find_by_id(request_id)

    def patch(self, request_id: str, changes: dict) -> schemas.RestockRequest:
        current = self.find_by_id(request_id)
        if current is None:
            raise NotFound("Restock request not found")
        merged = current.model_dump(mode="json", include=set(FIELDS))
        merged.update(schemas.as_values(changes))
        return self.update(request_id, merged)

    def save(self, data) -> schemas.RestockRequest:
        values = schemas.as_values(data)
        if values.get("id") and self.find_by_id(values["id"]) is not None:
            return self.update(values["id"], values)
        return self.create(values)

    def delete(self, request_id: str) -> bool:
        outcome = self.gateway.execute(delete(self.table).where(self.table.c.id == request_id))
        return outcome.rows_affected > 0

    def get_status_counts(self, office=None) -> List[schemas.StatusCount]:
        query = select(
            models.RestockRequest.status.label("status"),
            func.count(models.RestockRequest.id).label("count"),
        )
        if office:
            query = query.where(models.RestockRequest.office == plain(office))
        query = query.group_by(models.RestockRequest.status).order_by(models.RestockRequest.status)
        return [schemas.StatusCount(**row) for row in self.gateway.fetch_rows(query)]

    def get_pending_by_priority(self, office=None) -> List[schemas.PriorityCount]:
        """Pending request counts, most urgent first"""
        rank = case(PRIORITY_RANK, value=models.RestockRequest.priority, else_=len(PRIORITY_RANK) + 1)
        query = select(
            models.RestockRequest.priority.label("priority"),
            func.count(models.RestockRequest.id).label("count"),
        ).where(models.RestockRequest.status == RestockStatus.PENDING.value)
        if office:
            query = query.where(models.RestockRequest.office == plain(office))
        query = query.group_by(models.RestockRequest.priority).order_by(rank)
        return [schemas.PriorityCount(**row) for row in self.gateway.fetch_rows(query)]
