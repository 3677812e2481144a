import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from .. import schemas
from ..audit import AuditTrail
from ..dependencies import get_audit, get_peripherals
from ..enums import Office
from ..errors import NotFound
from ..items import PeripheralRepository
from .common import create_audited, delete_audited, update_audited

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/peripherals", tags=["Peripherals"])


@router.get("", response_model=schemas.ApiResponse[List[schemas.Peripheral]])
def read_peripherals(
    office: Optional[Office] = None,
    search: Optional[str] = Query(None, max_length=100),
    peripherals: PeripheralRepository = Depends(get_peripherals),
):
    """List peripherals; ``search`` matches the item name"""
    logger.info(f"Fetching peripherals with office={office}, search={search}")
    if search:
        items = peripherals.search_by_name(search, office)
    else:
        items = peripherals.find_all(office)
    return schemas.ApiResponse(data=items, count=len(items))


@router.get("/counts", response_model=schemas.ApiResponse[List[schemas.OfficeCount]])
def read_peripheral_counts(peripherals: PeripheralRepository = Depends(get_peripherals)):
    return schemas.ApiResponse(data=peripherals.get_counts_by_office())


@router.get("/{peripheral_id}", response_model=schemas.ApiResponse[schemas.Peripheral])
def read_peripheral(peripheral_id: UUID, peripherals: PeripheralRepository = Depends(get_peripherals)):
    logger.info(f"Fetching peripheral {peripheral_id}")
    peripheral = peripherals.find_by_id(str(peripheral_id))
    if peripheral is None:
        logger.warning(f"Peripheral {peripheral_id} not found")
        raise NotFound("Peripheral not found")
    return schemas.ApiResponse(data=peripheral)


@router.post("", response_model=schemas.ApiResponse[schemas.Peripheral], status_code=status.HTTP_201_CREATED)
def create_peripheral(
    peripheral: schemas.PeripheralCreate,
    peripherals: PeripheralRepository = Depends(get_peripherals),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Creating peripheral {peripheral.item_name} in {peripheral.office.value}")
    created = create_audited(peripherals, audit, peripheral)
    return schemas.ApiResponse(data=created, message="Peripheral created successfully")


@router.put("/{peripheral_id}", response_model=schemas.ApiResponse[schemas.Peripheral])
def update_peripheral(
    peripheral_id: UUID,
    peripheral: schemas.PeripheralUpdate,
    peripherals: PeripheralRepository = Depends(get_peripherals),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Updating peripheral {peripheral_id}")
    changes = peripheral.model_dump(mode="json", exclude_unset=True)
    updated = update_audited(peripherals, audit, str(peripheral_id), changes)
    return schemas.ApiResponse(data=updated, message="Peripheral updated successfully")


@router.delete("/{peripheral_id}", response_model=schemas.ApiResponse)
def delete_peripheral(
    peripheral_id: UUID,
    peripherals: PeripheralRepository = Depends(get_peripherals),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Deleting peripheral {peripheral_id}")
    delete_audited(peripherals, audit, str(peripheral_id))
    return schemas.ApiResponse(message="Peripheral deleted successfully")
