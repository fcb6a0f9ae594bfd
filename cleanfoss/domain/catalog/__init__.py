"""Catalog domain - Public service and car brand listings"""

from .router import router

__all__ = ["router"]
