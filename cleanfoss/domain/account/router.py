"""Account router - FastAPI endpoints for the signed-in user's own data"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import DeleteAccountRequest, ProfileUpdate, SettingsUpdate, VehicleCreate
from .service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Account"])


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db)


# ============================================================================
# PROFILE & SETTINGS
# ============================================================================


@router.get("/profile")
async def get_profile(
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Get the current user's profile"""
    return {"success": True, "data": {"user": service.get_profile(current_user)}}


@router.patch("/profile")
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Update name and phone"""
    user = service.update_profile(current_user, data)
    return {"success": True, "message": "Profile updated successfully", "data": {"user": user}}


@router.get("/settings")
async def get_settings(
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Get language, timezone and notification preferences"""
    return {"success": True, "data": service.get_settings(current_user)}


@router.patch("/settings")
async def update_settings(
    data: SettingsUpdate,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Update language, timezone and notification preferences"""
    return {"success": True, "data": service.update_settings(current_user, data)}


# ============================================================================
# VEHICLES
# ============================================================================


@router.get("/vehicles")
async def list_vehicles(
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """List saved vehicles, default first"""
    return {"success": True, "data": {"vehicles": service.list_vehicles(current_user)}}


@router.post("/vehicles", status_code=201)
async def add_vehicle(
    data: VehicleCreate,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Save a vehicle"""
    return {"success": True, "data": {"vehicle": service.add_vehicle(current_user, data)}}


# ============================================================================
# BOOKINGS
# ============================================================================


@router.get("/bookings")
async def list_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Booking history, newest first"""
    return {"success": True, "data": service.list_bookings(current_user, page, limit, status)}


@router.post("/bookings/{booking_id}/cancel")
async def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Cancel one of the user's own bookings"""
    booking = service.cancel_booking(current_user, booking_id)
    return {"success": True, "message": "Booking cancelled", "data": {"booking": booking}}


# ============================================================================
# DATA RIGHTS
# ============================================================================


@router.get("/export-data")
async def export_data(
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Download everything stored about the user as JSON"""
    return service.export_data(current_user)


@router.delete("/delete-account")
async def delete_account(
    data: DeleteAccountRequest,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Permanently delete the account and its data"""
    return service.delete_account(current_user, data)
