"""Tests for the audit trail."""

from datetime import timedelta

import pytest
from sqlalchemy import insert

from sd_inventory_service import models
from sd_inventory_service.audit import AuditTrail, utcnow, window_start
from sd_inventory_service.database import StorageGateway
from sd_inventory_service.errors import ValidationFailure
from sd_inventory_service.items import ComputerRepository


def raw_entry(gateway: StorageGateway, **values) -> None:
    row = {
        "id": models.new_id(),
        "table_name": "computers",
        "record_id": "item-1",
        "action": "update",
        "office": "Office 1",
        "timestamp": utcnow(),
    }
    row.update(values)
    gateway.execute(insert(models.AuditLogEntry.__table__).values(**row))


class TestWindowStart:
    """Tests for look-back window validation."""

    @pytest.mark.parametrize("days", [0, -1, 366, "7", 2.5, True])
    def test_rejects_out_of_range(self, days) -> None:
        with pytest.raises(ValidationFailure):
            window_start(days)

    def test_accepts_bounds(self) -> None:
        assert window_start(1) < utcnow()
        assert window_start(365) < window_start(1)


class TestAuditTrail:
    """Tests for recording and querying audit entries."""

    def test_record_change_snapshots_records(self, audit: AuditTrail, computers: ComputerRepository) -> None:
        created = computers.create({"make": "Dell", "model": "XPS", "office": "Office 2", "serial_numbers": ["SN1"]})

        entry = audit.record_change("computers", created.id, "create", after=created)

        assert entry.office == "Office 2"
        assert entry.old_values is None
        assert entry.new_values["make"] == "Dell"
        assert entry.new_values["serial_numbers"][0]["serial_number"] == "SN1"

    def test_unknown_action_rejected(self, audit: AuditTrail) -> None:
        with pytest.raises(ValidationFailure):
            audit.create("computers", "item-1", "rename")

    def test_malformed_snapshot_reads_as_none(self, audit: AuditTrail, gateway: StorageGateway) -> None:
        raw_entry(gateway, old_values="{not json", new_values='{"quantity": 2}')

        [entry] = audit.find_all()

        assert entry.old_values is None
        assert entry.new_values == {"quantity": 2}

    def test_find_filters(self, audit: AuditTrail) -> None:
        audit.create("computers", "item-1", "create", new_values={"a": 1}, office="Office 1")
        audit.create("computers", "item-1", "update", office="Office 1")
        audit.create("peripherals", "item-2", "create", office="Office 2")

        assert len(audit.find_all()) == 3
        assert len(audit.find_all(office="Office 2")) == 1
        assert len(audit.find_all(table_name="computers")) == 2
        assert len(audit.find_all(limit=1)) == 1
        assert {entry.action for entry in audit.find_by_record("computers", "item-1")} == {"create", "update"}

    def test_windowed_queries_skip_old_entries(self, audit: AuditTrail, gateway: StorageGateway) -> None:
        audit.create("computers", "item-1", "create", office="Office 1")
        audit.create("computers", "item-1", "update", office="Office 1")
        audit.create("restock_requests", "req-1", "create", office="Office 1")
        raw_entry(gateway, action="delete", timestamp=utcnow() - timedelta(days=40))

        assert len(audit.get_recent_activity()) == 3
        assert len(audit.get_recent_activity(days=60)) == 4
        counts = {row.action: row.count for row in audit.get_action_counts()}
        assert counts == {"create": 2, "update": 1}
        tables = [(row.table_name, row.activity_count) for row in audit.get_table_activity()]
        assert tables == [("computers", 2), ("restock_requests", 1)]

    def test_windowed_queries_validate_days(self, audit: AuditTrail) -> None:
        with pytest.raises(ValidationFailure):
            audit.get_action_counts(days=0)
        with pytest.raises(ValidationFailure):
            audit.get_recent_activity(days=400)
