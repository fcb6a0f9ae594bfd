"""Admin repository - Database queries for the back office"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Booking, BookingService, Company, CustomerVehicle, Service, User


class AdminRepository:
    """Repository for back office database operations"""

    @staticmethod
    def users_query(db: Session, company_id: Optional[str], search: Optional[str]) -> Query:
        query = db.query(User).options(joinedload(User.company))
        if company_id is not None:
            query = query.filter(User.company_id == company_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        return query.order_by(User.created_at.desc())

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def services_query(
        db: Session, company_id: Optional[str], status: Optional[str], search: Optional[str]
    ) -> Query:
        query = db.query(Service).options(joinedload(Service.category), joinedload(Service.extras))
        if company_id is not None:
            query = query.filter(Service.company_id == company_id)
        if status:
            query = query.filter(Service.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Service.name.ilike(pattern), Service.description.ilike(pattern)))
        return query.order_by(Service.created_at.desc())

    @staticmethod
    def booking_counts(db: Session, service_ids: list[str]) -> dict[str, int]:
        if not service_ids:
            return {}
        rows = (
            db.query(BookingService.service_id, func.count(BookingService.id))
            .filter(BookingService.service_id.in_(service_ids))
            .group_by(BookingService.service_id)
            .all()
        )
        return dict(rows)

    @staticmethod
    def service_name_taken(db: Session, company_id: str, name: str) -> bool:
        return (
            db.query(Service.id)
            .filter(Service.company_id == company_id, func.lower(Service.name) == name.lower())
            .first()
            is not None
        )

    @staticmethod
    def bookings_query(db: Session, company_id: Optional[str], status: Optional[str]) -> Query:
        query = db.query(Booking).options(
            joinedload(Booking.customer),
            joinedload(Booking.vehicle).joinedload(CustomerVehicle.brand),
            joinedload(Booking.vehicle).joinedload(CustomerVehicle.model),
            joinedload(Booking.location),
            joinedload(Booking.services),
        )
        if company_id is not None:
            query = query.filter(Booking.company_id == company_id)
        if status:
            query = query.filter(Booking.status == status.upper())
        return query.order_by(Booking.scheduled_at.desc())

    @staticmethod
    def list_companies(db: Session) -> list[tuple[Company, int]]:
        user_counts = (
            db.query(User.company_id, func.count(User.id).label("user_count"))
            .group_by(User.company_id)
            .subquery()
        )
        return (
            db.query(Company, func.coalesce(user_counts.c.user_count, 0))
            .outerjoin(user_counts, user_counts.c.company_id == Company.id)
            .options(joinedload(Company.license))
            .order_by(Company.created_at.desc())
            .all()
        )

    @staticmethod
    def get_company_by_email(db: Session, email: str) -> Optional[Company]:
        return db.query(Company).filter(Company.email == email).first()

    @staticmethod
    def slug_taken(db: Session, slug: str) -> bool:
        return db.query(Company.id).filter(Company.slug == slug).first() is not None
