"""Bookings domain - Booking intake, lookup and lifecycle"""

from .router import router

__all__ = ["router"]
