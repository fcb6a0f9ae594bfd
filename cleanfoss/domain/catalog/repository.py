"""Catalog repository - Database operations for services, extras and car brands"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import CarBrand, CarModel, Company, Service, ServiceCategory, ServiceExtra
from ...shared.validators import slugify


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def get_company(db: Session, company_id: str) -> Optional[Company]:
        return db.query(Company).filter(Company.id == company_id).first()

    @staticmethod
    def get_service(db: Session, service_id: str, company_id: Optional[str] = None) -> Optional[Service]:
        """Get an active service, optionally restricted to one tenant"""
        query = db.query(Service).filter(Service.id == service_id, Service.status == "ACTIVE")
        if company_id:
            query = query.filter(Service.company_id == company_id)
        return query.first()

    @staticmethod
    def get_extras(
        db: Session, extra_ids: list[str], company_id: Optional[str] = None
    ) -> list[ServiceExtra]:
        """Get the active extras among ``extra_ids``; unknown ids are skipped"""
        if not extra_ids:
            return []
        query = db.query(ServiceExtra).filter(
            ServiceExtra.id.in_(extra_ids), ServiceExtra.status == "ACTIVE"
        )
        if company_id:
            query = query.filter(ServiceExtra.company_id == company_id)
        return query.all()

    @staticmethod
    def list_services(
        db: Session,
        company_id: Optional[str] = None,
        search: Optional[str] = None,
        category_id: Optional[str] = None,
        include_inactive: bool = False,
    ) -> list[Service]:
        query = db.query(Service).options(joinedload(Service.extras), joinedload(Service.category))
        if not include_inactive:
            query = query.filter(Service.status == "ACTIVE")
        if company_id:
            query = query.filter(Service.company_id == company_id)
        if category_id:
            query = query.filter(Service.category_id == category_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Service.name.ilike(pattern), Service.description.ilike(pattern)))
        return query.order_by(Service.name).all()

    @staticmethod
    def get_category(db: Session, category_id: str, company_id: str) -> Optional[ServiceCategory]:
        return (
            db.query(ServiceCategory)
            .filter(ServiceCategory.id == category_id, ServiceCategory.company_id == company_id)
            .first()
        )

    @staticmethod
    def list_car_brands(db: Session, company_id: str) -> list[CarBrand]:
        return (
            db.query(CarBrand)
            .options(joinedload(CarBrand.models))
            .filter(CarBrand.company_id == company_id, CarBrand.status == "ACTIVE")
            .order_by(CarBrand.name)
            .all()
        )

    @staticmethod
    def get_or_create_brand(db: Session, company_id: str, name: str) -> CarBrand:
        """Find a tenant brand by case-insensitive name, adding it when missing (no commit)"""
        slug = slugify(name)
        brand = (
            db.query(CarBrand)
            .filter(CarBrand.company_id == company_id, CarBrand.slug == slug)
            .first()
        )
        if brand:
            return brand
        brand = CarBrand(company_id=company_id, name=name.strip(), slug=slug)
        db.add(brand)
        db.flush()
        return brand

    @staticmethod
    def get_or_create_model(db: Session, brand: CarBrand, name: str) -> CarModel:
        """Find a model of ``brand`` by name, adding it when missing (no commit)"""
        slug = slugify(name)
        model = (
            db.query(CarModel)
            .filter(CarModel.brand_id == brand.id, CarModel.slug == slug)
            .first()
        )
        if model:
            return model
        model = CarModel(brand_id=brand.id, name=name.strip(), slug=slug)
        db.add(model)
        db.flush()
        return model
