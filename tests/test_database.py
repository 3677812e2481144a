"""Tests for StorageGateway and engine error translation."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from sd_inventory_service import models
from sd_inventory_service.database import StorageGateway, translate_error
from sd_inventory_service.errors import ConstraintViolation, StorageError, StorageUnavailable


def make_insert(make_id: str, name: str, category: str = "computer"):
    return insert(models.Make.__table__).values(id=make_id, name=name, category=category)


# ============================================================================
# Error translation
# ============================================================================


class TestTranslateError:
    """Tests for mapping engine exceptions onto storage errors."""

    @pytest.mark.parametrize(
        "message, kind",
        [
            ("UNIQUE constraint failed: serial_numbers.serial_number", "unique"),
            ("CHECK constraint failed: ck_computers_quantity", "check"),
            ("FOREIGN KEY constraint failed", "foreign_key"),
            ("NOT NULL constraint failed: computers.make", "not_null"),
        ],
    )
    def test_integrity_errors_become_constraint_violations(self, message: str, kind: str) -> None:
        """Test each integrity failure is classified by kind."""
        error = translate_error(IntegrityError("INSERT", {}, Exception(message)))

        assert isinstance(error, ConstraintViolation)
        assert error.kind == kind
        assert error.status_code == 400

    def test_locked_database_is_unavailable(self) -> None:
        """Test a busy database maps to a storage failure reported as 500."""
        error = translate_error(OperationalError("UPDATE", {}, Exception("database is locked")))

        assert isinstance(error, StorageUnavailable)
        assert error.status_code == 500
        assert error.error == "Storage unavailable"

    def test_other_errors_are_storage_errors(self) -> None:
        """Test anything else maps to a generic storage error."""
        error = translate_error(ProgrammingError("SELECT", {}, Exception("no such table: gadgets")))

        assert type(error) is StorageError
        assert error.status_code == 500


# ============================================================================
# Statements and transactions
# ============================================================================


class TestStorageGateway:
    """Tests for execute/fetch and the transaction markers."""

    def test_execute_outside_transaction_commits(self, gateway: StorageGateway, session_factory) -> None:
        """Test a lone statement is visible to another session right away."""
        outcome = gateway.execute(make_insert("m-1", "Dell"))

        assert outcome.rows_affected == 1
        other = session_factory()
        try:
            assert other.execute(select(models.Make.name)).scalars().all() == ["Dell"]
        finally:
            other.close()

    def test_fetch_helpers(self, gateway: StorageGateway) -> None:
        """Test fetch_one, fetch_many and fetch_rows shapes."""
        gateway.execute(make_insert("m-1", "Dell"))
        gateway.execute(make_insert("m-2", "HP"))

        one = gateway.fetch_one(select(models.Make).where(models.Make.id == "m-1"))
        many = gateway.fetch_many(select(models.Make).order_by(models.Make.name))
        rows = gateway.fetch_rows(select(models.Make.id, models.Make.name).order_by(models.Make.name))

        assert one.name == "Dell"
        assert [make.name for make in many] == ["Dell", "HP"]
        assert rows == [{"id": "m-1", "name": "Dell"}, {"id": "m-2", "name": "HP"}]
        assert gateway.fetch_one(select(models.Make).where(models.Make.id == "missing")) is None

    def test_transaction_rolls_back_every_statement(self, gateway: StorageGateway) -> None:
        """Test a failure midway leaves nothing behind."""
        with pytest.raises(ConstraintViolation) as exc_info:
            with gateway.transaction():
                gateway.execute(make_insert("m-1", "Dell"))
                gateway.execute(make_insert("m-2", "Dell"))

        assert exc_info.value.kind == "unique"
        assert gateway.fetch_many(select(models.Make)) == []
        assert not gateway.in_transaction

    def test_nested_transaction_joins_outer(self, gateway: StorageGateway) -> None:
        """Test an inner unit is undone when the outer one fails."""
        with pytest.raises(RuntimeError):
            with gateway.transaction():
                with gateway.transaction():
                    gateway.execute(make_insert("m-1", "Dell"))
                assert gateway.in_transaction
                raise RuntimeError("boom")

        assert gateway.fetch_many(select(models.Make)) == []

    def test_explicit_markers(self, gateway: StorageGateway) -> None:
        """Test begin/commit/rollback without the context manager."""
        gateway.begin()
        gateway.execute(make_insert("m-1", "Dell"))
        gateway.rollback()
        gateway.begin()
        gateway.execute(make_insert("m-2", "HP"))
        gateway.commit()

        assert [make.name for make in gateway.fetch_many(select(models.Make))] == ["HP"]

    def test_foreign_keys_are_enforced(self, gateway: StorageGateway) -> None:
        """Test a model cannot point at a missing make."""
        statement = insert(models.Model.__table__).values(
            id="model-1", name="XPS", make_id="missing", category="computer"
        )

        with pytest.raises(ConstraintViolation) as exc_info:
            gateway.execute(statement)

        assert exc_info.value.kind == "foreign_key"


class TestBusyRetry:
    """Tests for retrying statements that hit a busy database."""

    def busy(self) -> OperationalError:
        return OperationalError("INSERT", {}, Exception("database is locked"))

    def test_retries_then_succeeds(self) -> None:
        """Test a transient busy error is retried outside transactions."""
        session = MagicMock()
        result = MagicMock(is_insert=False, rowcount=1)
        session.execute.side_effect = [self.busy(), result]
        gateway = StorageGateway(session, busy_retries=2, busy_backoff=0)

        outcome = gateway.execute("statement")

        assert outcome.rows_affected == 1
        assert session.execute.call_count == 2
        session.commit.assert_called_once()

    def test_gives_up_after_retries(self) -> None:
        """Test the busy error surfaces once retries are exhausted."""
        session = MagicMock()
        session.execute.side_effect = self.busy()
        gateway = StorageGateway(session, busy_retries=2, busy_backoff=0)

        with pytest.raises(StorageUnavailable):
            gateway.execute("statement")

        assert session.execute.call_count == 3

    def test_no_retry_inside_transaction(self) -> None:
        """Test a busy error inside a transaction fails the unit at once."""
        session = MagicMock()
        session.execute.side_effect = self.busy()
        gateway = StorageGateway(session, busy_retries=2, busy_backoff=0)

        with pytest.raises(StorageUnavailable):
            with gateway.transaction():
                gateway.execute("statement")

        assert session.execute.call_count == 1
        session.rollback.assert_called()
