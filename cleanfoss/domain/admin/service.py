"""Admin service - Back office business logic with tenant scoping"""

import logging
import secrets
import string
import time
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Booking, Company, License, Service, ServiceExtra, User, UserRole, isoformat_utc, utcnow
from ...permissions import Permission, ROLE_HIERARCHY, ensure_authorized, role_of
from ...shared.pagination import paginate
from ...shared.serializers import booking_to_dict, user_to_dict
from ...shared.validators import slugify
from ..bookings.service import transition_booking
from ..catalog.repository import CatalogRepository
from ..catalog.service import extra_to_dict, service_to_dict
from .repository import AdminRepository
from .schemas import AdminUserCreate, CompanyCreate, ExtraCreate, ServiceCreate

logger = logging.getLogger(__name__)

LICENSE_DURATIONS = {
    "MONTHLY": timedelta(days=30),
    "YEARLY": timedelta(days=365),
    "LIFETIME": None,
}


def scope_company_id(actor: User) -> Optional[str]:
    """Company filter for list queries; None means every tenant"""
    if role_of(actor) == UserRole.SUPER_ADMIN:
        return None
    if not actor.company_id:
        raise HTTPException(status_code=403, detail="User is not assigned to a company")
    return actor.company_id


def generate_license_key() -> str:
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(9))
    return f"LICENSE_{int(time.time() * 1000)}_{suffix}"


class AdminService:
    """Service layer for the tenant back office"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AdminRepository()
        self.catalog = CatalogRepository()

    def _target_company_id(self, actor: User, requested: Optional[str]) -> str:
        """Super admins may pick a company; everyone else writes into their own"""
        if role_of(actor) == UserRole.SUPER_ADMIN:
            company_id = requested or actor.company_id
            if not company_id:
                raise HTTPException(status_code=400, detail="companyId is required")
        else:
            company_id = scope_company_id(actor)
        if not self.catalog.get_company(self.db, company_id):
            raise HTTPException(status_code=404, detail="Company not found")
        return company_id

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self, actor: User, page: int, limit: int, search: Optional[str]) -> dict:
        query = self.repo.users_query(self.db, scope_company_id(actor), search)
        users, pagination = paginate(query, page, limit)
        return {
            "users": [
                {**user_to_dict(u), "company": {"name": u.company.name} if u.company else None}
                for u in users
            ],
            "pagination": pagination,
        }

    def create_user(self, actor: User, data: AdminUserCreate) -> dict:
        if ROLE_HIERARCHY[data.role] > ROLE_HIERARCHY[role_of(actor)]:
            raise HTTPException(status_code=403, detail="Cannot assign a role above your own")

        company_id = self._target_company_id(actor, data.companyId)

        if self.repo.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail="A user with this email already exists")

        user = User(
            name=data.name,
            email=data.email,
            role=data.role.value,
            company_id=company_id,
            status="ACTIVE",
        )
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="A user with this email already exists") from e

        self.db.refresh(user)
        logger.info(f"👤 {actor.email} created {user.role} {user.email} in company {company_id}")
        return user_to_dict(user)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def list_services(
        self, actor: User, page: int, limit: int, status: Optional[str], search: Optional[str]
    ) -> dict:
        query = self.repo.services_query(self.db, scope_company_id(actor), status, search)
        services, pagination = paginate(query, page, limit)
        counts = self.repo.booking_counts(self.db, [s.id for s in services])
        return {
            "services": [
                {
                    **service_to_dict(s, include_inactive_extras=True),
                    "bookingCount": counts.get(s.id, 0),
                    "createdAt": isoformat_utc(s.created_at),
                    "updatedAt": isoformat_utc(s.updated_at),
                }
                for s in services
            ],
            "pagination": pagination,
        }

    def create_service(self, actor: User, data: ServiceCreate) -> dict:
        company_id = self._target_company_id(actor, data.companyId)

        if self.repo.service_name_taken(self.db, company_id, data.name):
            raise HTTPException(status_code=409, detail="Service with this name already exists")

        if data.categoryId and not self.catalog.get_category(self.db, data.categoryId, company_id):
            raise HTTPException(status_code=400, detail="Category not found or not accessible")

        if data.maxCapacity < data.minCapacity:
            raise HTTPException(status_code=400, detail="maxCapacity must not be below minCapacity")

        service = Service(
            company_id=company_id,
            category_id=data.categoryId,
            name=data.name,
            description=data.description,
            price=data.price,
            deposit=data.deposit,
            duration=data.duration,
            image=data.image,
            background_color=data.backgroundColor,
            min_capacity=data.minCapacity,
            max_capacity=data.maxCapacity,
            status="ACTIVE",
        )
        try:
            self.db.add(service)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=409, detail="Service with this name already exists") from e

        self.db.refresh(service)
        logger.info(f"🧽 Created service {service.name} in company {company_id}")
        return service_to_dict(service, include_inactive_extras=True)

    def add_extra(self, actor: User, service_id: str, data: ExtraCreate) -> dict:
        service = self.db.get(Service, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        ensure_authorized(actor, Permission.MANAGE_SERVICES, service)

        extra = ServiceExtra(
            company_id=service.company_id,
            service_id=service.id,
            name=data.name,
            description=data.description,
            price=data.price,
            duration=data.duration,
        )
        try:
            self.db.add(extra)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(extra)
        return extra_to_dict(extra)

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def list_bookings(self, actor: User, page: int, limit: int, status: Optional[str]) -> dict:
        query = self.repo.bookings_query(self.db, scope_company_id(actor), status)
        bookings, pagination = paginate(query, page, limit)
        return {
            "bookings": [booking_to_dict(b, include_customer=True) for b in bookings],
            "pagination": pagination,
        }

    def update_booking_status(self, actor: User, booking_id: str, status: str) -> dict:
        booking = self.db.get(Booking, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        ensure_authorized(actor, Permission.MANAGE_BOOKINGS, booking)

        try:
            changed = transition_booking(booking, status)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        return {"booking": booking_to_dict(booking, include_customer=True), "changed": changed}

    # ------------------------------------------------------------------
    # Companies (super admin)
    # ------------------------------------------------------------------

    def list_companies(self) -> list[dict]:
        return [
            {
                **self._company_to_dict(company),
                "userCount": user_count,
            }
            for company, user_count in self.repo.list_companies(self.db)
        ]

    def _unique_slug(self, name: str) -> str:
        base = slugify(name) or "company"
        slug, n = base, 2
        while self.repo.slug_taken(self.db, slug):
            slug = f"{base}-{n}"
            n += 1
        return slug

    def create_company(self, data: CompanyCreate) -> dict:
        """Create a license, the company and its first admin in one transaction"""
        if self.repo.get_company_by_email(self.db, data.email):
            raise HTTPException(status_code=400, detail="Company email already exists")
        if self.repo.get_user_by_email(self.db, data.email):
            raise HTTPException(status_code=409, detail="A user with this email already exists")

        duration = LICENSE_DURATIONS[data.licenseType]
        try:
            new_license = License(
                key=generate_license_key(),
                type=data.licenseType,
                status="ACTIVE",
                expires_at=utcnow() + duration if duration else None,
            )
            self.db.add(new_license)
            self.db.flush()

            company = Company(
                name=data.name,
                slug=self._unique_slug(data.name),
                email=data.email,
                phone=data.phone,
                license_id=new_license.id,
            )
            self.db.add(company)
            self.db.flush()

            self.db.add(
                User(
                    name="Administrator",
                    email=data.email,
                    role=UserRole.ADMIN.value,
                    company_id=company.id,
                )
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"❌ Company creation conflict for {data.email}: {str(e)}")
            raise HTTPException(status_code=409, detail="Company already exists") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(company)
        logger.info(f"🏢 Created company {company.slug} with {new_license.type} license")
        return {
            "company": self._company_to_dict(company),
            "license": self._license_to_dict(new_license),
            "adminCreated": True,
        }

    @staticmethod
    def _license_to_dict(record: Optional[License]) -> Optional[dict]:
        if record is None:
            return None
        return {
            "id": record.id,
            "key": record.key,
            "type": record.type,
            "status": record.status,
            "expiresAt": isoformat_utc(record.expires_at),
        }

    def _company_to_dict(self, company: Company) -> dict:
        return {
            "id": company.id,
            "name": company.name,
            "slug": company.slug,
            "email": company.email,
            "phone": company.phone,
            "status": company.status,
            "licenseId": company.license_id,
            "license": self._license_to_dict(company.license),
            "createdAt": isoformat_utc(company.created_at),
        }
