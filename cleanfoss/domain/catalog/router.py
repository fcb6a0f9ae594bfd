"""Catalog router - Public service and car brand listings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("/services")
async def list_services(
    companyId: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    categoryId: Optional[str] = Query(None),
    service: CatalogService = Depends(get_catalog_service),
):
    """List active services with their extras"""
    services = service.list_services(companyId, search, categoryId)
    return {"success": True, "services": services, "total": len(services)}


@router.get("/car-brands")
async def list_car_brands(
    companyId: Optional[str] = Query(None),
    service: CatalogService = Depends(get_catalog_service),
):
    """List a company's car brands and models"""
    if not companyId:
        raise HTTPException(status_code=400, detail="companyId is required")
    brands = service.list_car_brands(companyId)
    return {"success": True, "data": brands, "total": len(brands)}
