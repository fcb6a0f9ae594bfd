"""Monitoring domain - Health and database checks"""

from .router import router

__all__ = ["router"]
