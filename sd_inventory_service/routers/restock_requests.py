import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi import status as http_status

from .. import schemas
from ..audit import AuditTrail
from ..dependencies import get_audit, get_restock
from ..enums import ItemCategory, Office, Priority, RestockStatus
from ..errors import NotFound
from ..restock import RestockLedger
from .common import create_audited, delete_audited, update_audited

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/restock-requests", tags=["Restock requests"])


@router.get("", response_model=schemas.ApiResponse[List[schemas.RestockRequest]])
def read_restock_requests(
    office: Optional[Office] = None,
    status: Optional[RestockStatus] = None,
    priority: Optional[Priority] = None,
    item_category: Optional[ItemCategory] = None,
    restock: RestockLedger = Depends(get_restock),
):
    logger.info(f"Fetching restock requests with office={office}, status={status}, priority={priority}")
    requests = restock.find_all(office, status, priority, item_category)
    return schemas.ApiResponse(data=requests, count=len(requests))


@router.get("/status-counts", response_model=schemas.ApiResponse[List[schemas.StatusCount]])
def read_status_counts(office: Optional[Office] = None, restock: RestockLedger = Depends(get_restock)):
    return schemas.ApiResponse(data=restock.get_status_counts(office))


@router.get("/pending-priority", response_model=schemas.ApiResponse[List[schemas.PriorityCount]])
def read_pending_by_priority(office: Optional[Office] = None, restock: RestockLedger = Depends(get_restock)):
    """Pending requests per priority, most urgent first"""
    return schemas.ApiResponse(data=restock.get_pending_by_priority(office))


@router.get("/{request_id}", response_model=schemas.ApiResponse[schemas.RestockRequest])
def read_restock_request(request_id: UUID, restock: RestockLedger = Depends(get_restock)):
    request = restock.find_by_id(str(request_id))
    if request is None:
        logger.warning(f"Restock request {request_id} not found")
        raise NotFound("Restock request not found")
    return schemas.ApiResponse(data=request)


@router.post("", response_model=schemas.ApiResponse[schemas.RestockRequest], status_code=http_status.HTTP_201_CREATED)
def create_restock_request(
    request: schemas.RestockRequestCreate,
    restock: RestockLedger = Depends(get_restock),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Creating restock request for {request.item_category.value} in {request.office.value}")
    created = create_audited(restock, audit, request)
    return schemas.ApiResponse(data=created, message="Restock request created successfully")


@router.put("/{request_id}", response_model=schemas.ApiResponse[schemas.RestockRequest])
def update_restock_request(
    request_id: UUID,
    request: schemas.RestockRequestUpdate,
    restock: RestockLedger = Depends(get_restock),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Updating restock request {request_id}")
    changes = request.model_dump(mode="json", exclude_unset=True)
    updated = update_audited(restock, audit, str(request_id), changes)
    return schemas.ApiResponse(data=updated, message="Restock request updated successfully")


@router.delete("/{request_id}", response_model=schemas.ApiResponse)
def delete_restock_request(
    request_id: UUID,
    restock: RestockLedger = Depends(get_restock),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Deleting restock request {request_id}")
    delete_audited(restock, audit, str(request_id))
    return schemas.ApiResponse(message="Restock request deleted successfully")
