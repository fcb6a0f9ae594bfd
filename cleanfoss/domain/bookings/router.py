"""Booking router - FastAPI endpoints for booking intake and lookup"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_optional_user
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])

booking_rate_limit = create_rate_limiter(limit=10, window_seconds=60, key_prefix="bookings")


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: Any = Body(...),
    current_user: Optional[User] = Depends(get_optional_user),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(booking_rate_limit),
):
    """Create a booking from either the booking form or the booking wizard"""
    return service.create_booking(payload, current_user)


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    """Get the public summary of a booking"""
    return service.get_booking_details(booking_id)
