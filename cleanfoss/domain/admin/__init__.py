"""Admin domain - Tenant back office and super-admin company management"""

from .router import router, super_admin_router

__all__ = ["router", "super_admin_router"]
