import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from .. import schemas
from ..audit import AuditTrail
from ..dependencies import get_audit
from ..enums import AuditedTable, Office

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/audit-log", tags=["Audit log"])


@router.get("", response_model=schemas.ApiResponse[List[schemas.AuditLogEntry]])
def read_audit_log(
    office: Optional[Office] = None,
    table_name: Optional[AuditedTable] = None,
    limit: int = Query(100, ge=1, le=1000),
    audit: AuditTrail = Depends(get_audit),
):
    logger.info(f"Fetching audit log with office={office}, table_name={table_name}, limit={limit}")
    entries = audit.find_all(office, table_name, limit)
    return schemas.ApiResponse(data=entries, count=len(entries))


@router.get("/recent", response_model=schemas.ApiResponse[List[schemas.AuditLogEntry]])
def read_recent_activity(
    office: Optional[Office] = None,
    days: int = 7,
    limit: int = Query(50, ge=1, le=1000),
    audit: AuditTrail = Depends(get_audit),
):
    entries = audit.get_recent_activity(office, days, limit)
    return schemas.ApiResponse(data=entries, count=len(entries))


@router.get("/action-counts", response_model=schemas.ApiResponse[List[schemas.ActionCount]])
def read_action_counts(office: Optional[Office] = None, days: int = 30, audit: AuditTrail = Depends(get_audit)):
    return schemas.ApiResponse(data=audit.get_action_counts(office, days))


@router.get("/table-activity", response_model=schemas.ApiResponse[List[schemas.TableActivity]])
def read_table_activity(office: Optional[Office] = None, days: int = 30, audit: AuditTrail = Depends(get_audit)):
    return schemas.ApiResponse(data=audit.get_table_activity(office, days))


@router.get("/{table_name}/{record_id}", response_model=schemas.ApiResponse[List[schemas.AuditLogEntry]])
def read_record_history(table_name: AuditedTable, record_id: str, audit: AuditTrail = Depends(get_audit)):
    """Every audit entry of one record, newest first"""
    entries = audit.find_by_record(table_name, record_id)
    return schemas.ApiResponse(data=entries, count=len(entries))
