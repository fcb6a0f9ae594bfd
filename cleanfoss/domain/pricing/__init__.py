"""Pricing domain - Price composition for services, vehicles and extras"""

from .router import router

__all__ = ["router"]
