"""Account repository - Database operations for a user's own data"""

from typing import Optional

from sqlalchemy.orm import Query, Session, joinedload

from ...models import (
    Account,
    Booking,
    BookingService,
    CarBrand,
    CarModel,
    CustomerVehicle,
    Payment,
    User,
    UserSession,
)


class AccountRepository:
    """Repository for account database operations"""

    @staticmethod
    def get_vehicles(db: Session, user_id: str) -> list[CustomerVehicle]:
        return (
            db.query(CustomerVehicle)
            .options(joinedload(CustomerVehicle.brand), joinedload(CustomerVehicle.model))
            .filter(CustomerVehicle.customer_id == user_id)
            .order_by(CustomerVehicle.is_default.desc(), CustomerVehicle.created_at.desc())
            .all()
        )

    @staticmethod
    def get_brand(db: Session, brand_id: str, company_id: str) -> Optional[CarBrand]:
        return (
            db.query(CarBrand)
            .filter(CarBrand.id == brand_id, CarBrand.company_id == company_id)
            .first()
        )

    @staticmethod
    def get_model(db: Session, model_id: str, brand_id: str) -> Optional[CarModel]:
        return (
            db.query(CarModel)
            .filter(CarModel.id == model_id, CarModel.brand_id == brand_id)
            .first()
        )

    @staticmethod
    def plate_taken(db: Session, company_id: str, license_plate: str) -> bool:
        return (
            db.query(CustomerVehicle.id)
            .filter(
                CustomerVehicle.company_id == company_id,
                CustomerVehicle.license_plate == license_plate,
            )
            .first()
            is not None
        )

    @staticmethod
    def clear_default_vehicle(db: Session, user_id: str) -> None:
        db.query(CustomerVehicle).filter(
            CustomerVehicle.customer_id == user_id, CustomerVehicle.is_default.is_(True)
        ).update({CustomerVehicle.is_default: False}, synchronize_session="fetch")

    @staticmethod
    def bookings_query(db: Session, user_id: str, company_id: Optional[str] = None) -> Query:
        query = (
            db.query(Booking)
            .options(
                joinedload(Booking.vehicle).joinedload(CustomerVehicle.brand),
                joinedload(Booking.vehicle).joinedload(CustomerVehicle.model),
                joinedload(Booking.location),
                joinedload(Booking.services),
                joinedload(Booking.payments),
            )
            .filter(Booking.customer_id == user_id)
        )
        if company_id:
            query = query.filter(Booking.company_id == company_id)
        return query.order_by(Booking.created_at.desc())

    @staticmethod
    def get_own_booking(db: Session, booking_id: str, user_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.customer_id == user_id)
            .first()
        )

    @staticmethod
    def delete_user_data(db: Session, user_id: str) -> None:
        """Delete a user and everything hanging off it, children first (no commit)"""
        booking_ids = db.query(Booking.id).filter(Booking.customer_id == user_id).scalar_subquery()

        db.query(Payment).filter(Payment.booking_id.in_(booking_ids)).delete(synchronize_session=False)
        db.query(BookingService).filter(BookingService.booking_id.in_(booking_ids)).delete(
            synchronize_session=False
        )
        db.query(Booking).filter(Booking.customer_id == user_id).delete(synchronize_session=False)
        db.query(CustomerVehicle).filter(CustomerVehicle.customer_id == user_id).delete(
            synchronize_session=False
        )
        db.query(UserSession).filter(UserSession.user_id == user_id).delete(synchronize_session=False)
        db.query(Account).filter(Account.user_id == user_id).delete(synchronize_session=False)
        db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
