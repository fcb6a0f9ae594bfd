"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking, BookingService, CustomerVehicle, Location


class BookingRepository:
    """Repository for booking database operations.

    Writers only add and flush; the caller owns the transaction.
    """

    @staticmethod
    def get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(
                joinedload(Booking.customer),
                joinedload(Booking.vehicle).joinedload(CustomerVehicle.brand),
                joinedload(Booking.vehicle).joinedload(CustomerVehicle.model),
                joinedload(Booking.services).joinedload(BookingService.service),
                joinedload(Booking.location),
            )
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def create_location(db: Session, company_id: str, **location_data) -> Location:
        location = Location(company_id=company_id, **location_data)
        db.add(location)
        db.flush()
        return location

    @staticmethod
    def get_customer_vehicle(
        db: Session, vehicle_id: str, customer_id: str, company_id: str
    ) -> Optional[CustomerVehicle]:
        return (
            db.query(CustomerVehicle)
            .filter(
                CustomerVehicle.id == vehicle_id,
                CustomerVehicle.customer_id == customer_id,
                CustomerVehicle.company_id == company_id,
            )
            .first()
        )

    @staticmethod
    def get_vehicle_by_plate(db: Session, company_id: str, license_plate: str) -> Optional[CustomerVehicle]:
        return (
            db.query(CustomerVehicle)
            .filter(
                CustomerVehicle.company_id == company_id,
                CustomerVehicle.license_plate == license_plate,
            )
            .first()
        )

    @staticmethod
    def create_vehicle(db: Session, customer_id: str, company_id: str, **vehicle_data) -> CustomerVehicle:
        vehicle = CustomerVehicle(customer_id=customer_id, company_id=company_id, **vehicle_data)
        db.add(vehicle)
        db.flush()
        return vehicle

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def add_line_item(db: Session, booking_id: str, **line_data) -> BookingService:
        line = BookingService(booking_id=booking_id, **line_data)
        db.add(line)
        return line
