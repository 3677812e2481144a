from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from . import database
from .audit import AuditTrail
from .catalog import MakeCatalog, ModelCatalog
from .database import StorageGateway
from .items import ComputerRepository, PeripheralRepository, PrinterItemRepository
from .restock import RestockLedger


# Dependency to get database session
def get_db() -> Generator[Session, None, None]:
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_gateway(db: Session = Depends(get_db)) -> StorageGateway:
    return StorageGateway(db)


def get_computers(gateway: StorageGateway = Depends(get_gateway)) -> ComputerRepository:
    return ComputerRepository(gateway)


def get_peripherals(gateway: StorageGateway = Depends(get_gateway)) -> PeripheralRepository:
    return PeripheralRepository(gateway)


def get_printer_items(gateway: StorageGateway = Depends(get_gateway)) -> PrinterItemRepository:
    return PrinterItemRepository(gateway)


def get_makes(gateway: StorageGateway = Depends(get_gateway)) -> MakeCatalog:
    return MakeCatalog(gateway)


def get_models(gateway: StorageGateway = Depends(get_gateway)) -> ModelCatalog:
    return ModelCatalog(gateway)


def get_restock(gateway: StorageGateway = Depends(get_gateway)) -> RestockLedger:
    return RestockLedger(gateway)


def get_audit(gateway: StorageGateway = Depends(get_gateway)) -> AuditTrail:
    return AuditTrail(gateway)
