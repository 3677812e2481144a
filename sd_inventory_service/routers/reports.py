import logging
from typing import Optional

from fastapi import APIRouter, Depends

from .. import reports, schemas
from ..database import StorageGateway
from ..dependencies import get_gateway
from ..enums import Office

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["Reports"])


@router.get("/inventory-summary", response_model=schemas.ApiResponse[dict])
def read_inventory_summary(office: Optional[Office] = None, gateway: StorageGateway = Depends(get_gateway)):
    logger.info(f"Generating inventory summary for office={office}")
    return schemas.ApiResponse(data=reports.inventory_summary(gateway, office))


@router.get("/restock-requests", response_model=schemas.ApiResponse[dict])
def read_restock_report(office: Optional[Office] = None, gateway: StorageGateway = Depends(get_gateway)):
    logger.info(f"Generating restock report for office={office}")
    return schemas.ApiResponse(data=reports.restock_report(gateway, office))


@router.get("/activity", response_model=schemas.ApiResponse[dict])
def read_activity_report(office: Optional[Office] = None, gateway: StorageGateway = Depends(get_gateway)):
    logger.info(f"Generating activity report for office={office}")
    return schemas.ApiResponse(data=reports.activity_report(gateway, office))


@router.get("/office-comparison", response_model=schemas.ApiResponse[dict])
def read_office_comparison(gateway: StorageGateway = Depends(get_gateway)):
    logger.info("Generating office comparison report")
    return schemas.ApiResponse(data=reports.office_comparison(gateway))
