"""Booking service - Business logic for booking intake and lifecycle"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Union

from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...config import DEFAULT_BOOKING_DURATION_MINUTES, DEFAULT_COMPANY_ID, DEFAULT_COUNTRY
from ...models import Booking, BookingStatus, CustomerVehicle, User, isoformat_utc, to_naive_utc
from ..catalog.repository import CatalogRepository
from ..pricing.service import DEFAULT_VEHICLE_TYPE, PriceQuote, PricingComposer, to_number
from .identity import resolve_customer
from .repository import BookingRepository
from .schemas import (
    ENHANCED,
    WIZARD,
    BookingSubmissionAdapter,
    EnhancedBookingRequest,
    WizardBookingRequest,
    detect_format,
)

logger = logging.getLogger(__name__)

BookingRequest = Union[EnhancedBookingRequest, WizardBookingRequest]

# Allowed next states; CANCELLED is terminal
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED},
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


def transition_booking(booking: Booking, target: Union[BookingStatus, str]) -> bool:
    """
    Move ``booking`` to ``target`` without committing.

    Returns False when the booking already has that status. Raises 400 for an
    unknown status and 409 for a move the lifecycle does not allow.
    """
    try:
        target = BookingStatus(target)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Unknown booking status: {target}") from e

    current = BookingStatus(booking.status)
    if current == target:
        return False
    if target not in BOOKING_TRANSITIONS[current]:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot change booking status from {current.value} to {target.value}",
        )

    logger.info(f"🔄 Booking {booking.id}: {current.value} -> {target.value}")
    booking.status = target.value
    return True


def parse_booking_submission(payload: Any) -> BookingRequest:
    """
    Detect the submission format and validate it.

    Every violation is collected; pydantic errors are re-raised as a request
    validation error with paths relative to the body (``customerInfo.email``).
    """
    if detect_format(payload) is None:
        raise HTTPException(status_code=400, detail="Unrecognized booking format")

    try:
        return BookingSubmissionAdapter.validate_python(payload)
    except ValidationError as e:
        errors = []
        for error in e.errors(include_url=False, include_context=False):
            loc = list(error["loc"])
            if loc and loc[0] in (ENHANCED, WIZARD):
                loc = loc[1:]
            errors.append({**error, "loc": ("body", *loc)})
        raise RequestValidationError(errors) from e


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.catalog = CatalogRepository()
        self.pricing = PricingComposer(db)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def resolve_company_id(self, current_user: Optional[User], submission: BookingRequest) -> str:
        """Signed-in user's company, then an explicit companyId, then the default tenant"""
        company_id = None
        if current_user is not None:
            company_id = current_user.company_id
        if not company_id and isinstance(submission, WizardBookingRequest):
            company_id = submission.companyId
        company_id = company_id or DEFAULT_COMPANY_ID

        if not self.catalog.get_company(self.db, company_id):
            raise HTTPException(status_code=404, detail="Company not found")
        return company_id

    def create_booking(self, payload: Any, current_user: Optional[User]) -> dict:
        """Validate a submission and write its rows in one transaction"""
        submission = parse_booking_submission(payload)
        source_format = ENHANCED if isinstance(submission, EnhancedBookingRequest) else WIZARD
        logger.info(
            f"📥 Creating {source_format} booking "
            f"({'user ' + current_user.id if current_user else 'guest'})"
        )

        company_id = self.resolve_company_id(current_user, submission)

        try:
            customer = resolve_customer(self.db, current_user, submission.contact)
            self.db.flush()

            if isinstance(submission, EnhancedBookingRequest):
                booking = self._write_enhanced(submission, customer, company_id)
            else:
                booking = self._write_wizard(submission, customer, company_id)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Created booking {booking.id} for company {company_id}")
        return {
            "success": True,
            "bookingId": booking.id,
            "booking": {"id": booking.id},
            "message": "Booking created successfully",
            "format": source_format,
        }

    def _write_enhanced(self, data: EnhancedBookingRequest, customer: User, company_id: str) -> Booking:
        address = data.customerInfo.address
        location = self.repo.create_location(
            self.db,
            company_id,
            name=f"{data.customerInfo.name}'s Location",
            address=address.street,
            city=address.city,
            postal_code=address.postalCode,
            country=DEFAULT_COUNTRY,
        )

        vehicle = self._vehicle_from_info(data, customer, company_id)
        quote = self.pricing.compose(
            data.serviceId, self._vehicle_type(vehicle), data.extra_ids, company_id
        )
        return self._write_booking(
            data,
            quote,
            customer=customer,
            company_id=company_id,
            vehicle=vehicle,
            location_id=location.id,
            scheduled_at=data.selectedDateTime,
            duration=DEFAULT_BOOKING_DURATION_MINUTES,
            notes=data.specialRequests,
            source_format=ENHANCED,
        )

    def _write_wizard(self, data: WizardBookingRequest, customer: User, company_id: str) -> Booking:
        loc = data.location
        location = self.repo.create_location(
            self.db,
            company_id,
            name=loc.name,
            address=loc.address,
            city=loc.city,
            postal_code=loc.postalCode,
            country=loc.country,
        )

        vehicle = self.repo.get_customer_vehicle(self.db, data.vehicleId, customer.id, company_id)
        if vehicle is None:
            # The wizard does not collect vehicle details
            vehicle = self.repo.create_vehicle(
                self.db, customer.id, company_id, year=2020, color="Unknown"
            )

        quote = self.pricing.compose(
            data.serviceId, self._vehicle_type(vehicle), data.extra_ids, company_id
        )
        return self._write_booking(
            data,
            quote,
            customer=customer,
            company_id=company_id,
            vehicle=vehicle,
            location_id=location.id,
            scheduled_at=data.scheduledAt,
            duration=data.duration,
            notes=data.notes,
            source_format=WIZARD,
        )

    def _vehicle_from_info(
        self, data: EnhancedBookingRequest, customer: User, company_id: str
    ) -> CustomerVehicle:
        info = data.vehicleInfo
        plate = (info.licensePlate or "").strip().upper() or None

        if plate:
            existing = self.repo.get_vehicle_by_plate(self.db, company_id, plate)
            if existing is not None:
                if existing.customer_id != customer.id:
                    raise HTTPException(
                        status_code=409, detail="License plate is already registered to another customer"
                    )
                return existing

        brand = self.catalog.get_or_create_brand(self.db, company_id, info.make)
        model = self.catalog.get_or_create_model(self.db, brand, info.model)
        return self.repo.create_vehicle(
            self.db,
            customer.id,
            company_id,
            brand_id=brand.id,
            model_id=model.id,
            year=info.year,
            color=info.color,
            license_plate=plate,
        )

    @staticmethod
    def _vehicle_type(vehicle: CustomerVehicle) -> str:
        if vehicle.model is not None:
            return vehicle.model.vehicle_type
        return DEFAULT_VEHICLE_TYPE

    def _write_booking(
        self,
        data: BookingRequest,
        quote: PriceQuote,
        customer: User,
        company_id: str,
        vehicle: CustomerVehicle,
        scheduled_at: datetime,
        **booking_data,
    ) -> Booking:
        submitted_total = Decimal(str(data.submitted_total))
        if submitted_total != quote.total:
            logger.warning(
                f"⚠️ Submitted total {submitted_total} differs from catalog price {quote.total} "
                f"for service {data.serviceId}; storing submitted total"
            )

        booking = self.repo.create_booking(
            self.db,
            company_id=company_id,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            status=BookingStatus.PENDING.value,
            total_price=float(submitted_total),
            scheduled_at=to_naive_utc(scheduled_at),
            **booking_data,
        )

        for line in quote.lines:
            self.repo.add_line_item(
                self.db,
                booking.id,
                service_id=line.item_id if line.kind == "service" else None,
                extra_id=line.item_id if line.kind == "extra" else None,
                name=line.name,
                quantity=line.quantity,
                unit_price=float(line.unit_price),
                total_price=float(line.total),
            )
        self.db.flush()
        return booking

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_booking_details(self, booking_id: str) -> dict:
        """Public booking summary used by the confirmation page"""
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        customer = booking.customer
        vehicle = booking.vehicle
        service_line = next((line for line in booking.services if line.service_id), None)

        return {
            "success": True,
            "booking": {
                "id": booking.id,
                "status": booking.status,
                "totalPrice": to_number(booking.total_price),
                "customerInfo": {
                    "name": customer.name,
                    "email": customer.email,
                    "phone": customer.phone or "",
                },
                "pricing": {"total": to_number(booking.total_price)},
                "service": {"name": service_line.name if service_line else "Service"},
                "vehicle": {
                    "make": vehicle.brand.name if vehicle and vehicle.brand else "Standard",
                    "model": vehicle.model.name if vehicle and vehicle.model else "Bil",
                },
                "selectedDateTime": isoformat_utc(booking.scheduled_at),
                "specialRequests": booking.notes,
                "format": booking.source_format,
            },
        }
