"""Append-only audit trail of item and restock mutations.

Entries are never updated or deleted. Snapshots are stored as JSON text and
decoded when entries are read back.
"""
import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import func, insert, select

from . import config, models, schemas
from .database import StorageGateway
from .enums import AuditedTable, plain
from .errors import ValidationFailure
from .models import utcnow

logger = logging.getLogger(__name__)

ACTIONS = ("create", "update", "delete")


def window_start(days) -> datetime:
    """Start of a look-back window of ``days`` days"""
    if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= config.MAX_WINDOW_DAYS:
        raise ValidationFailure(f"days must be an integer between 1 and {config.MAX_WINDOW_DAYS}")
    return utcnow() - timedelta(days=days)


def _snapshot(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    return json.dumps(value, default=str)


class AuditTrail:
    def __init__(self, gateway: StorageGateway):
        self.gateway = gateway
        self.table = models.AuditLogEntry.__table__

    def create(self, table_name, record_id: str, action: str,
               old_values=None, new_values=None, office=None) -> schemas.AuditLogEntry:
        if action not in ACTIONS:
            raise ValidationFailure(f"Unknown audit action '{action}'")
        entry_id = models.new_id()
        self.gateway.execute(
            insert(self.table).values(
                id=entry_id,
                table_name=AuditedTable(plain(table_name)).value,
                record_id=record_id,
                action=action,
                old_values=_snapshot(old_values),
                new_values=_snapshot(new_values),
                office=plain(office),
                timestamp=utcnow(),
            )
        )
        return self.find_by_id(entry_id)

    def record_change(self, table_name, record_id: str, action: str, before=None, after=None):
        """Log a mutation with before/after snapshots of the record.

        The office is taken from the newest snapshot that has one.
        """
        source = after if after is not None else before
        office = getattr(source, "office", None)
        if office is None and isinstance(source, dict):
            office = source.get("office")
        logger.debug(f"Audit {action} on {plain(table_name)} {record_id}")
        return self.create(table_name, record_id, action, before, after, office)

    def find_by_id(self, entry_id: str) -> Optional[schemas.AuditLogEntry]:
        row = self.gateway.fetch_one(select(models.AuditLogEntry).where(models.AuditLogEntry.id == entry_id))
        return schemas.AuditLogEntry.model_validate(row) if row is not None else None

    def _filtered(self, query, office=None, table_name=None, since: Optional[datetime] = None):
        if office:
            query = query.where(models.AuditLogEntry.office == plain(office))
        if table_name:
            query = query.where(models.AuditLogEntry.table_name == plain(table_name))
        if since is not None:
            query = query.where(models.AuditLogEntry.timestamp >= since)
        return query

    def _entries(self, query) -> List[schemas.AuditLogEntry]:
        return [schemas.AuditLogEntry.model_validate(row) for row in self.gateway.fetch_many(query)]

    def find_all(self, office=None, table_name=None, limit: int = 100) -> List[schemas.AuditLogEntry]:
        query = self._filtered(select(models.AuditLogEntry), office, table_name)
        return self._entries(query.order_by(models.AuditLogEntry.timestamp.desc()).limit(limit))

    def find_by_record(self, table_name, record_id: str) -> List[schemas.AuditLogEntry]:
        query = self._filtered(select(models.AuditLogEntry), table_name=table_name)
        query = query.where(models.AuditLogEntry.record_id == record_id)
        return self._entries(query.order_by(models.AuditLogEntry.timestamp.desc()))

    def get_recent_activity(self, office=None, days: int = 7, limit: int = 50) -> List[schemas.AuditLogEntry]:
        query = self._filtered(select(models.AuditLogEntry), office, since=window_start(days))
        return self._entries(query.order_by(models.AuditLogEntry.timestamp.desc()).limit(limit))

    def get_action_counts(self, office=None, days: int = 30) -> List[schemas.ActionCount]:
        count = func.count(models.AuditLogEntry.id)
        query = select(models.AuditLogEntry.action.label("action"), count.label("count"))
        query = self._filtered(query, office, since=window_start(days))
        query = query.group_by(models.AuditLogEntry.action).order_by(count.desc())
        return [schemas.ActionCount(**row) for row in self.gateway.fetch_rows(query)]

    def get_table_activity(self, office=None, days: int = 30) -> List[schemas.TableActivity]:
        count = func.count(models.AuditLogEntry.id)
        query = select(models.AuditLogEntry.table_name.label("table_name"), count.label("activity_count"))
        query = self._filtered(query, office, since=window_start(days))
        query = query.group_by(models.AuditLogEntry.table_name).order_by(count.desc())
        return [schemas.TableActivity(**row) for row in self.gateway.fetch_rows(query)]
