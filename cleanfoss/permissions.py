"""
Role hierarchy and authorization policy.

Every protected endpoint goes through ``authorize(actor, action, resource)``,
either directly or through the ``require_permission`` dependency, so the
role table below is the single place access rules live.
"""

import enum
import logging
from typing import Any, Optional

from fastapi import Depends, HTTPException

from .auth import get_current_user
from .models import User, UserRole

logger = logging.getLogger(__name__)


class Permission(str, enum.Enum):
    # User Management
    CREATE_USERS = "CREATE_USERS"
    MANAGE_USERS = "MANAGE_USERS"
    DELETE_USERS = "DELETE_USERS"

    # Company Management
    MANAGE_COMPANY = "MANAGE_COMPANY"
    VIEW_ALL_COMPANIES = "VIEW_ALL_COMPANIES"

    # Service Management
    MANAGE_SERVICES = "MANAGE_SERVICES"
    VIEW_SERVICES = "VIEW_SERVICES"

    # Booking Management
    CREATE_BOOKINGS = "CREATE_BOOKINGS"
    VIEW_ALL_BOOKINGS = "VIEW_ALL_BOOKINGS"
    VIEW_OWN_BOOKINGS = "VIEW_OWN_BOOKINGS"
    MANAGE_BOOKINGS = "MANAGE_BOOKINGS"

    # Vehicle Management
    MANAGE_VEHICLES = "MANAGE_VEHICLES"
    VIEW_VEHICLES = "VIEW_VEHICLES"

    # Financial Operations
    VIEW_PAYMENTS = "VIEW_PAYMENTS"
    MANAGE_PAYMENTS = "MANAGE_PAYMENTS"
    VIEW_FINANCIAL_REPORTS = "VIEW_FINANCIAL_REPORTS"

    # System Administration
    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    VIEW_LOGS = "VIEW_LOGS"


# Higher number = more permissions
ROLE_HIERARCHY = {
    UserRole.CUSTOMER: 1,
    UserRole.AGENT: 2,
    UserRole.FINANCE: 3,
    UserRole.ADMIN: 4,
    UserRole.SUPER_ADMIN: 5,
}

ROLE_PERMISSIONS = {
    UserRole.SUPER_ADMIN: set(Permission),
    UserRole.ADMIN: {
        Permission.CREATE_USERS,
        Permission.MANAGE_USERS,
        Permission.MANAGE_COMPANY,
        Permission.MANAGE_SERVICES,
        Permission.VIEW_SERVICES,
        Permission.VIEW_ALL_BOOKINGS,
        Permission.MANAGE_BOOKINGS,
        Permission.MANAGE_VEHICLES,
        Permission.VIEW_VEHICLES,
        Permission.VIEW_PAYMENTS,
        Permission.VIEW_FINANCIAL_REPORTS,
        Permission.CREATE_BOOKINGS,
    },
    UserRole.AGENT: {
        Permission.VIEW_SERVICES,
        Permission.VIEW_ALL_BOOKINGS,
        Permission.MANAGE_BOOKINGS,
        Permission.VIEW_VEHICLES,
        Permission.CREATE_BOOKINGS,
        Permission.VIEW_PAYMENTS,
    },
    UserRole.FINANCE: {
        Permission.VIEW_SERVICES,
        Permission.VIEW_ALL_BOOKINGS,
        Permission.VIEW_PAYMENTS,
        Permission.MANAGE_PAYMENTS,
        Permission.VIEW_FINANCIAL_REPORTS,
        Permission.VIEW_VEHICLES,
    },
    UserRole.CUSTOMER: {
        Permission.VIEW_OWN_BOOKINGS,
        Permission.CREATE_BOOKINGS,
        Permission.VIEW_SERVICES,
    },
}


def role_of(user: Optional[User]) -> Optional[UserRole]:
    """Parse a user's stored role, None for anonymous or unknown roles"""
    if user is None:
        return None
    try:
        return UserRole(user.role)
    except ValueError:
        logger.warning(f"⚠️ User {user.id} has unknown role {user.role!r}")
        return None


def has_permission(role: Optional[UserRole], permission: Permission) -> bool:
    if role is None:
        return False
    return permission in ROLE_PERMISSIONS.get(role, set())


def has_role_level(role: Optional[UserRole], required: UserRole) -> bool:
    if role is None:
        return False
    return ROLE_HIERARCHY[role] >= ROLE_HIERARCHY[required]


def can_access_company(user: User, company_id: Optional[str]) -> bool:
    """Super admins see every tenant, everyone else only their own"""
    if role_of(user) == UserRole.SUPER_ADMIN:
        return True
    return company_id is not None and user.company_id == company_id


def authorize(actor: Optional[User], action: Permission, resource: Any = None) -> bool:
    """
    Decide whether ``actor`` may perform ``action`` on ``resource``.

    ``resource`` is optional; when it carries a ``company_id`` attribute the
    actor must belong to that tenant (super admins excepted). Customers acting
    on their own bookings are checked on ``customer_id``.
    """
    role = role_of(actor)
    if not has_permission(role, action):
        return False

    if resource is None:
        return True

    if action == Permission.VIEW_OWN_BOOKINGS:
        return getattr(resource, "customer_id", None) == actor.id

    company_id = getattr(resource, "company_id", None)
    if company_id is not None and not can_access_company(actor, company_id):
        return False

    return True


def ensure_authorized(actor: Optional[User], action: Permission, resource: Any = None) -> None:
    """Raise 403 unless ``authorize`` allows the action"""
    if not authorize(actor, action, resource):
        logger.warning(
            f"🚫 Access denied: user={getattr(actor, 'id', None)} role={getattr(actor, 'role', None)} action={action.value}"
        )
        raise HTTPException(status_code=403, detail="Insufficient permissions")


def require_permission(action: Permission):
    """
    Create a dependency that authenticates the caller and checks ``action``.

    Example usage:
        @router.get("/users")
        async def list_users(user: User = Depends(require_permission(Permission.MANAGE_USERS))):
            ...
    """

    async def permission_checker(user: User = Depends(get_current_user)) -> User:
        ensure_authorized(user, action)
        return user

    return permission_checker
