import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from .. import schemas
from ..audit import AuditTrail
from ..dependencies import get_audit, get_computers
from ..enums import Office
from ..errors import NotFound
from ..items import ComputerRepository
from .common import create_audited, delete_audited, update_audited

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/computers", tags=["Computers"])


@router.get("", response_model=schemas.ApiResponse[List[schemas.Computer]])
def read_computers(
    office: Optional[Office] = None,
    search: Optional[str] = Query(None, max_length=100),
    computers: ComputerRepository = Depends(get_computers),
):
    """List computers, optionally filtered by office or a make/model search term"""
    logger.info(f"Fetching computers with office={office}, search={search}")
    if search:
        items = computers.search_by_make_or_model(search, office)
    else:
        items = computers.find_all(office)
    return schemas.ApiResponse(data=items, count=len(items))


@router.get("/counts", response_model=schemas.ApiResponse[List[schemas.OfficeCount]])
def read_computer_counts(computers: ComputerRepository = Depends(get_computers)):
    """Active computers per office"""
    return schemas.ApiResponse(data=computers.get_counts_by_office())


@router.get("/{computer_id}", response_model=schemas.ApiResponse[schemas.Computer])
def read_computer(computer_id: UUID, computers: ComputerRepository = Depends(get_computers)):
    logger.info(f"Fetching computer {computer_id}")
    computer = computers.find_by_id(str(computer_id))
    if computer is None:
        logger.warning(f"Computer {computer_id} not found")
        raise NotFound("Computer not found")
    return schemas.ApiResponse(data=computer)


@router.post("", response_model=schemas.ApiResponse[schemas.Computer], status_code=status.HTTP_201_CREATED)
def create_computer(
    computer: schemas.ComputerCreate,
    computers: ComputerRepository = Depends(get_computers),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Creating computer {computer.make} {computer.model} in {computer.office.value}")
    created = create_audited(computers, audit, computer)
    return schemas.ApiResponse(data=created, message="Computer created successfully")


@router.put("/{computer_id}", response_model=schemas.ApiResponse[schemas.Computer])
def update_computer(
    computer_id: UUID,
    computer: schemas.ComputerUpdate,
    computers: ComputerRepository = Depends(get_computers),
    audit: AuditTrail = Depends(get_audit),
):
    """Update a computer; a serial_numbers list replaces the current serials"""
    logger.info(f"Updating computer {computer_id}")
    changes = computer.model_dump(mode="json", exclude_unset=True)
    updated = update_audited(computers, audit, str(computer_id), changes)
    return schemas.ApiResponse(data=updated, message="Computer updated successfully")


@router.delete("/{computer_id}", response_model=schemas.ApiResponse)
def delete_computer(
    computer_id: UUID,
    computers: ComputerRepository = Depends(get_computers),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Deleting computer {computer_id}")
    delete_audited(computers, audit, str(computer_id))
    return schemas.ApiResponse(message="Computer deleted successfully")
