"""Catalog service - Public listings of services and car brands"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_COMPANY_ID
from ...models import CarBrand, Service, ServiceExtra
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


def extra_to_dict(extra: ServiceExtra) -> dict:
    return {
        "id": extra.id,
        "name": extra.name,
        "description": extra.description,
        "price": extra.price,
        "duration": extra.duration,
    }


def service_to_dict(service: Service, include_inactive_extras: bool = False) -> dict:
    extras = [e for e in service.extras if include_inactive_extras or e.status == "ACTIVE"]
    return {
        "id": service.id,
        "name": service.name,
        "description": service.description,
        "price": service.price,
        "deposit": service.deposit,
        "duration": service.duration,
        "image": service.image,
        "backgroundColor": service.background_color,
        "minCapacity": service.min_capacity,
        "maxCapacity": service.max_capacity,
        "status": service.status,
        "companyId": service.company_id,
        "categoryId": service.category_id,
        "category": (
            {"id": service.category.id, "name": service.category.name, "slug": service.category.slug}
            if service.category
            else None
        ),
        "pricing": {
            "basePrice": service.price,
            "baseDuration": service.duration,
            "finalPrice": service.price,
            "finalDuration": service.duration,
        },
        "extras": [extra_to_dict(e) for e in extras],
    }


def brand_to_dict(brand: CarBrand) -> dict:
    return {
        "id": brand.id,
        "name": brand.name,
        "slug": brand.slug,
        "logo": brand.logo,
        "models": [
            {
                "id": m.id,
                "name": m.name,
                "slug": m.slug,
                "vehicleType": m.vehicle_type,
                "vehicleSize": m.vehicle_size,
            }
            for m in brand.models
            if m.status == "ACTIVE"
        ],
    }


class CatalogService:
    """Service layer for the public catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def list_services(
        self,
        company_id: Optional[str] = None,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> list[dict]:
        services = self.repo.list_services(
            self.db, company_id or DEFAULT_COMPANY_ID, search=search, category_id=category_id
        )
        return [service_to_dict(s) for s in services]

    def list_car_brands(self, company_id: str) -> list[dict]:
        return [brand_to_dict(b) for b in self.repo.list_car_brands(self.db, company_id)]
