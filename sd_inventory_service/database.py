import logging
import time
from collections import namedtuple
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from . import config
from .errors import ConstraintViolation, StorageError, StorageUnavailable

logger = logging.getLogger(__name__)

ExecuteResult = namedtuple("ExecuteResult", ["inserted_id", "rows_affected"])

_BUSY_MARKERS = ("database is locked", "database is busy", "database table is locked")

# SQLSTATE codes reported by PostgreSQL drivers
_SQLSTATE_KINDS = {
    "23505": "unique",
    "23514": "check",
    "23503": "foreign_key",
    "23502": "not_null",
}

_MESSAGE_KINDS = (
    ("UNIQUE", "unique"),
    ("CHECK", "check"),
    ("FOREIGN KEY", "foreign_key"),
    ("NOT NULL", "not_null"),
)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **kwargs):
    """Create an engine with the busy timeout and foreign key enforcement applied"""
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": config.DB_BUSY_TIMEOUT}
        engine = create_engine(database_url, connect_args=connect_args, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(database_url, pool_pre_ping=True, **kwargs)
    return engine


# Create SQLAlchemy engine and session
engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for SQLAlchemy models
Base = declarative_base()


def _is_busy(exc: SQLAlchemyError) -> bool:
    return isinstance(exc, OperationalError) and any(
        marker in str(exc.orig).lower() for marker in _BUSY_MARKERS
    )


def _constraint_kind(exc: IntegrityError) -> str:
    code = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    if code in _SQLSTATE_KINDS:
        return _SQLSTATE_KINDS[code]
    message = str(exc.orig).upper()
    for marker, kind in _MESSAGE_KINDS:
        if marker in message:
            return kind
    return "unknown"


def translate_error(exc: SQLAlchemyError) -> StorageError:
    """Map an engine exception onto the service's storage error kinds"""
    if isinstance(exc, IntegrityError):
        return ConstraintViolation(_constraint_kind(exc), str(exc.orig))
    if _is_busy(exc) or (isinstance(exc, DBAPIError) and exc.connection_invalidated):
        return StorageUnavailable(str(getattr(exc, "orig", exc)))
    return StorageError(str(exc))


class StorageGateway:
    """Request/response wrapper around a SQLAlchemy session.

    Statements are SQLAlchemy constructs. ``fetch_one``/``fetch_many`` return
    the first column of each row (ORM entities for entity selects) and
    ``fetch_rows`` returns plain dicts for grouped queries.

    Outside ``transaction()`` every ``execute`` is committed on its own and
    transient busy errors are retried with exponential backoff. Inside a
    transaction nothing is retried: the first failure rolls the whole unit back.
    """

    def __init__(self, session: Session, busy_retries: int = config.DB_BUSY_RETRIES,
                 busy_backoff: float = config.DB_BUSY_BACKOFF):
        self.session = session
        self.busy_retries = busy_retries
        self.busy_backoff = busy_backoff
        self._depth = 0

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def execute(self, statement, params=None) -> ExecuteResult:
        result = self._run(statement, params)
        inserted_id = None
        if getattr(result, "is_insert", False) and result.inserted_primary_key:
            inserted_id = result.inserted_primary_key[0]
        outcome = ExecuteResult(inserted_id=inserted_id, rows_affected=result.rowcount)
        if not self.in_transaction:
            self._commit_session()
        return outcome

    def fetch_one(self, statement, params=None):
        result = self._run(statement, params, execution_options={"populate_existing": True})
        return result.scalars().first()

    def fetch_many(self, statement, params=None) -> list:
        result = self._run(statement, params, execution_options={"populate_existing": True})
        return list(result.scalars().all())

    def fetch_rows(self, statement, params=None) -> list:
        result = self._run(statement, params)
        return [dict(row) for row in result.mappings().all()]

    def begin(self):
        self._depth += 1

    def commit(self):
        if self._depth > 0:
            self._depth -= 1
        if self._depth == 0:
            self._commit_session()

    def rollback(self):
        # A rollback always discards the outermost transaction
        self._depth = max(self._depth - 1, 0)
        self.session.rollback()

    @contextmanager
    def transaction(self):
        """Group statements into one unit; nested use joins the outer unit"""
        self.begin()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        self.commit()

    def _commit_session(self):
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"Commit failed: {exc}")
            raise translate_error(exc) from exc

    def _run(self, statement, params=None, **options):
        attempt = 0
        while True:
            try:
                return self.session.execute(statement, params, **options)
            except SQLAlchemyError as exc:
                if self.in_transaction:
                    raise translate_error(exc) from exc
                self.session.rollback()
                if _is_busy(exc) and attempt < self.busy_retries:
                    attempt += 1
                    delay = self.busy_backoff * 2 ** (attempt - 1)
                    logger.warning(f"Storage busy, retrying in {delay:.2f}s (attempt {attempt}/{self.busy_retries})")
                    time.sleep(delay)
                    continue
                logger.error(f"Storage operation failed: {exc}")
                raise translate_error(exc) from exc
