import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from .. import schemas
from ..audit import AuditTrail
from ..dependencies import get_audit, get_printer_items
from ..enums import Office
from ..errors import NotFound
from ..items import PrinterItemRepository
from .common import create_audited, delete_audited, update_audited

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/printer-items", tags=["Printer items"])


@router.get("", response_model=schemas.ApiResponse[List[schemas.PrinterItem]])
def read_printer_items(office: Optional[Office] = None, printer_items: PrinterItemRepository = Depends(get_printer_items)):
    logger.info(f"Fetching printer items with office={office}")
    items = printer_items.find_all(office)
    return schemas.ApiResponse(data=items, count=len(items))


@router.get("/counts", response_model=schemas.ApiResponse[List[schemas.OfficeCount]])
def read_printer_item_counts(printer_items: PrinterItemRepository = Depends(get_printer_items)):
    return schemas.ApiResponse(data=printer_items.get_counts_by_office())


@router.get("/by-type/{item_type}", response_model=schemas.ApiResponse[List[schemas.PrinterItem]])
def read_printer_items_by_type(
    item_type: str,
    office: Optional[Office] = None,
    printer_items: PrinterItemRepository = Depends(get_printer_items),
):
    """Printer items of one consumable type, e.g. toner"""
    items = printer_items.find_by_type(item_type, office)
    return schemas.ApiResponse(data=items, count=len(items))


@router.get("/{item_id}", response_model=schemas.ApiResponse[schemas.PrinterItem])
def read_printer_item(item_id: UUID, printer_items: PrinterItemRepository = Depends(get_printer_items)):
    item = printer_items.find_by_id(str(item_id))
    if item is None:
        logger.warning(f"Printer item {item_id} not found")
        raise NotFound("Printer item not found")
    return schemas.ApiResponse(data=item)


@router.post("", response_model=schemas.ApiResponse[schemas.PrinterItem], status_code=status.HTTP_201_CREATED)
def create_printer_item(
    item: schemas.PrinterItemCreate,
    printer_items: PrinterItemRepository = Depends(get_printer_items),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Creating printer item {item.item_type} in {item.office.value}")
    created = create_audited(printer_items, audit, item)
    return schemas.ApiResponse(data=created, message="Printer item created successfully")


@router.put("/{item_id}", response_model=schemas.ApiResponse[schemas.PrinterItem])
def update_printer_item(
    item_id: UUID,
    item: schemas.PrinterItemUpdate,
    printer_items: PrinterItemRepository = Depends(get_printer_items),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Updating printer item {item_id}")
    changes = item.model_dump(mode="json", exclude_unset=True)
    updated = update_audited(printer_items, audit, str(item_id), changes)
    return schemas.ApiResponse(data=updated, message="Printer item updated successfully")


@router.delete("/{item_id}", response_model=schemas.ApiResponse)
def delete_printer_item(
    item_id: UUID,
    printer_items: PrinterItemRepository = Depends(get_printer_items),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Deleting printer item {item_id}")
    delete_audited(printer_items, audit, str(item_id))
    return schemas.ApiResponse(message="Printer item deleted successfully")
