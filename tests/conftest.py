"""Shared fixtures: a fresh in-memory database per test."""

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sd_inventory_service import models
from sd_inventory_service.audit import AuditTrail
from sd_inventory_service.catalog import MakeCatalog, ModelCatalog
from sd_inventory_service.database import StorageGateway, build_engine
from sd_inventory_service.dependencies import get_db
from sd_inventory_service.items import ComputerRepository, PeripheralRepository, PrinterItemRepository
from sd_inventory_service.main import app
from sd_inventory_service.restock import RestockLedger
from sd_inventory_service.serials import SerialRegistry


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every connection of one test."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    models.Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session(session_factory) -> Iterator[Session]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway(session: Session) -> StorageGateway:
    return StorageGateway(session, busy_retries=0, busy_backoff=0)


@pytest.fixture
def serials(gateway: StorageGateway) -> SerialRegistry:
    return SerialRegistry(gateway)


@pytest.fixture
def computers(gateway: StorageGateway) -> ComputerRepository:
    return ComputerRepository(gateway)


@pytest.fixture
def peripherals(gateway: StorageGateway) -> PeripheralRepository:
    return PeripheralRepository(gateway)


@pytest.fixture
def printer_items(gateway: StorageGateway) -> PrinterItemRepository:
    return PrinterItemRepository(gateway)


@pytest.fixture
def makes(gateway: StorageGateway) -> MakeCatalog:
    return MakeCatalog(gateway)


@pytest.fixture
def model_catalog(gateway: StorageGateway) -> ModelCatalog:
    return ModelCatalog(gateway)


@pytest.fixture
def restock(gateway: StorageGateway) -> RestockLedger:
    return RestockLedger(gateway, strict_transitions=False)


@pytest.fixture
def audit(gateway: StorageGateway) -> AuditTrail:
    return AuditTrail(gateway)


@pytest.fixture
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    """HTTP client bound to the in-memory database.

    The client is not entered as a context manager, so the application
    lifespan (which creates tables on the configured database) does not run.
    """

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
