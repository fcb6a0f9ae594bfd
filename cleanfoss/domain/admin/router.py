"""Admin router - Back office and super-admin endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import User
from ...permissions import Permission, require_permission
from .schemas import AdminUserCreate, BookingStatusUpdate, CompanyCreate, ExtraCreate, ServiceCreate
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])
super_admin_router = APIRouter(prefix="/super-admin", tags=["Super Admin"])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    """Dependency injection for AdminService"""
    return AdminService(db)


# ============================================================================
# USERS
# ============================================================================


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(Permission.MANAGE_USERS)),
    service: AdminService = Depends(get_admin_service),
):
    """List users, limited to the caller's company unless super admin"""
    return {"success": True, "data": service.list_users(current_user, page, limit, search)}


@router.post("/users", status_code=201)
async def create_user(
    data: AdminUserCreate,
    current_user: User = Depends(require_permission(Permission.CREATE_USERS)),
    service: AdminService = Depends(get_admin_service),
):
    """Add a user to a company"""
    return {"success": True, "data": {"user": service.create_user(current_user, data)}}


# ============================================================================
# SERVICES
# ============================================================================


@router.get("/services")
async def list_services(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query("ACTIVE"),
    search: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(Permission.MANAGE_SERVICES)),
    service: AdminService = Depends(get_admin_service),
):
    """List the company's services with booking counts"""
    return {"success": True, "data": service.list_services(current_user, page, limit, status, search)}


@router.post("/services", status_code=201)
async def create_service(
    data: ServiceCreate,
    current_user: User = Depends(require_permission(Permission.MANAGE_SERVICES)),
    service: AdminService = Depends(get_admin_service),
):
    """Add a service to the catalog"""
    created = service.create_service(current_user, data)
    return {"success": True, "message": "Service created successfully", "data": {"service": created}}


@router.post("/services/{service_id}/extras", status_code=201)
async def add_extra(
    service_id: str,
    data: ExtraCreate,
    current_user: User = Depends(require_permission(Permission.MANAGE_SERVICES)),
    service: AdminService = Depends(get_admin_service),
):
    """Add an extra to a service"""
    return {"success": True, "data": {"extra": service.add_extra(current_user, service_id, data)}}


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("/bookings")
async def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    current_user: User = Depends(require_permission(Permission.VIEW_ALL_BOOKINGS)),
    service: AdminService = Depends(get_admin_service),
):
    """List the company's bookings"""
    return {"success": True, "data": service.list_bookings(current_user, page, limit, status)}


@router.patch("/bookings/{booking_id}/status")
async def update_booking_status(
    booking_id: str,
    data: BookingStatusUpdate,
    current_user: User = Depends(require_permission(Permission.MANAGE_BOOKINGS)),
    service: AdminService = Depends(get_admin_service),
):
    """Move a booking through its lifecycle"""
    result = service.update_booking_status(current_user, booking_id, data.status)
    return {"success": True, **result}


# ============================================================================
# SUPER ADMIN
# ============================================================================


@super_admin_router.get("/companies")
async def list_companies(
    _: User = Depends(require_permission(Permission.VIEW_ALL_COMPANIES)),
    service: AdminService = Depends(get_admin_service),
):
    """List every company with its license"""
    return {"success": True, "data": service.list_companies()}


@super_admin_router.post("/companies", status_code=201)
async def create_company(
    data: CompanyCreate,
    _: User = Depends(require_permission(Permission.VIEW_ALL_COMPANIES)),
    service: AdminService = Depends(get_admin_service),
):
    """Onboard a company with a license and an admin user"""
    return {"success": True, **service.create_company(data)}
