"""Account service - Business logic for a signed-in user's own data"""

import json
import logging
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import (
    DEFAULT_COMPANY_ID,
    DEFAULT_LANGUAGE,
    DEFAULT_TIMEZONE,
    DELETE_ACCOUNT_CONFIRMATION,
)
from ...models import Booking, BookingStatus, CustomerVehicle, User, isoformat_utc, utcnow
from ...shared.pagination import paginate
from ...shared.serializers import booking_to_dict, user_to_dict, vehicle_to_dict
from ...shared.validators import validate_dk_phone
from ..bookings.service import transition_booking
from .repository import AccountRepository
from .schemas import DeleteAccountRequest, ProfileUpdate, SettingsUpdate, VehicleCreate

logger = logging.getLogger(__name__)

# API name -> User column
NOTIFICATION_FIELDS = {
    "emailBookingConfirmations": "notify_email_booking_confirmations",
    "emailBookingReminders": "notify_email_booking_reminders",
    "emailPromotionalOffers": "notify_email_promotional_offers",
    "smsBookingConfirmations": "notify_sms_booking_confirmations",
    "smsBookingReminders": "notify_sms_booking_reminders",
}


class AccountService:
    """Service layer for profile, settings, vehicles and data rights"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AccountRepository()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # ------------------------------------------------------------------
    # Profile and settings
    # ------------------------------------------------------------------

    def get_profile(self, user: User) -> dict:
        data = user_to_dict(user)
        data["company"] = (
            {"id": user.company.id, "name": user.company.name, "slug": user.company.slug}
            if user.company
            else None
        )
        return data

    def update_profile(self, user: User, data: ProfileUpdate) -> dict:
        if data.name is not None:
            user.name = data.name
        if data.phone is not None:
            try:
                user.phone = validate_dk_phone(data.phone) if data.phone.strip() else None
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
        self._commit()
        self.db.refresh(user)
        logger.info(f"✅ Updated profile for user {user.id}")
        return self.get_profile(user)

    def get_settings(self, user: User) -> dict:
        return {
            "user": {
                "id": user.id,
                "email": user.email,
                "name": user.name,
                "phone": user.phone,
                "language": user.language or DEFAULT_LANGUAGE,
                "timezone": user.timezone or DEFAULT_TIMEZONE,
            },
            "notifications": {
                name: getattr(user, column) for name, column in NOTIFICATION_FIELDS.items()
            },
        }

    def update_settings(self, user: User, data: SettingsUpdate) -> dict:
        if data.language:
            user.language = data.language
        if data.timezone:
            user.timezone = data.timezone
        if data.notifications:
            for name, value in data.notifications.model_dump(exclude_none=True).items():
                setattr(user, NOTIFICATION_FIELDS[name], value)
        self._commit()
        self.db.refresh(user)
        return self.get_settings(user)

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def list_vehicles(self, user: User) -> list[dict]:
        return [vehicle_to_dict(v) for v in self.repo.get_vehicles(self.db, user.id)]

    def add_vehicle(self, user: User, data: VehicleCreate) -> dict:
        """Save a vehicle; a new default replaces the previous default in the same transaction"""
        company_id = user.company_id or DEFAULT_COMPANY_ID

        brand = self.repo.get_brand(self.db, data.brandId, company_id)
        if not brand:
            raise HTTPException(status_code=400, detail="Unknown car brand")
        if not self.repo.get_model(self.db, data.modelId, brand.id):
            raise HTTPException(status_code=400, detail="Unknown car model for this brand")

        if data.licensePlate and self.repo.plate_taken(self.db, company_id, data.licensePlate):
            raise HTTPException(status_code=409, detail="License plate is already registered")

        try:
            if data.isDefault:
                self.repo.clear_default_vehicle(self.db, user.id)
            vehicle = CustomerVehicle(
                customer_id=user.id,
                company_id=company_id,
                brand_id=brand.id,
                model_id=data.modelId,
                year=data.year,
                color=data.color,
                license_plate=data.licensePlate,
                nickname=data.nickname,
                is_default=data.isDefault,
            )
            self.db.add(vehicle)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save vehicle for user {user.id}: {str(e)}")
            raise HTTPException(status_code=409, detail="Vehicle conflicts with an existing one") from e
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(vehicle)
        logger.info(f"🚗 Added vehicle {vehicle.id} for user {user.id}")
        return vehicle_to_dict(vehicle)

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    def list_bookings(self, user: User, page: int, limit: int, status: Optional[str]) -> dict:
        query = self.repo.bookings_query(self.db, user.id, user.company_id)
        if status:
            query = query.filter(Booking.status == status.upper())
        bookings, pagination = paginate(query, page, limit)
        return {
            "bookings": [
                {
                    **booking_to_dict(b),
                    "payments": [
                        {
                            "id": p.id,
                            "amount": p.amount,
                            "status": p.status,
                            "paymentMethod": p.payment_method,
                            "createdAt": isoformat_utc(p.created_at),
                        }
                        for p in b.payments
                    ],
                }
                for b in bookings
            ],
            "pagination": pagination,
        }

    def cancel_booking(self, user: User, booking_id: str) -> dict:
        booking = self.repo.get_own_booking(self.db, booking_id, user.id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        try:
            transition_booking(booking, BookingStatus.CANCELLED)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        return booking_to_dict(booking)

    # ------------------------------------------------------------------
    # Data rights
    # ------------------------------------------------------------------

    def build_export(self, user: User) -> dict:
        bookings = self.repo.bookings_query(self.db, user.id).all()
        vehicles = self.repo.get_vehicles(self.db, user.id)

        return {
            "exportedAt": isoformat_utc(utcnow()),
            "user": {
                "id": user.id,
                "email": user.email,
                "name": user.name,
                "phone": user.phone,
                "role": user.role,
                "language": user.language,
                "timezone": user.timezone,
                "accountCreated": isoformat_utc(user.created_at),
                "lastUpdated": isoformat_utc(user.updated_at),
            },
            "bookings": [
                {
                    "id": b.id,
                    "status": b.status,
                    "scheduledAt": isoformat_utc(b.scheduled_at),
                    "duration": b.duration,
                    "totalPrice": b.total_price,
                    "notes": b.notes,
                    "createdAt": isoformat_utc(b.created_at),
                    "updatedAt": isoformat_utc(b.updated_at),
                    "services": [
                        {
                            "name": line.name,
                            "quantity": line.quantity,
                            "unitPrice": line.unit_price,
                            "totalPrice": line.total_price,
                        }
                        for line in b.services
                    ],
                    "vehicle": vehicle_to_dict(b.vehicle),
                    "location": (
                        {
                            "name": b.location.name,
                            "address": b.location.address,
                            "city": b.location.city,
                            "postalCode": b.location.postal_code,
                        }
                        if b.location
                        else None
                    ),
                    "payments": [
                        {
                            "id": p.id,
                            "amount": p.amount,
                            "status": p.status,
                            "paymentMethod": p.payment_method,
                            "createdAt": isoformat_utc(p.created_at),
                        }
                        for p in b.payments
                    ],
                }
                for b in bookings
            ],
            "vehicles": [vehicle_to_dict(v) for v in vehicles],
            "statistics": {
                "totalBookings": len(bookings),
                "totalVehicles": len(vehicles),
                "totalAmountSpent": sum(b.total_price for b in bookings),
                # Newest first
                "firstBooking": isoformat_utc(bookings[-1].created_at) if bookings else None,
                "lastBooking": isoformat_utc(bookings[0].created_at) if bookings else None,
            },
        }

    def export_data(self, user: User) -> Response:
        """Return the user's data as a downloadable JSON file"""
        payload = json.dumps(self.build_export(user), indent=2, ensure_ascii=False)
        filename = f"cleanfoss-data-{user.id}-{utcnow().date().isoformat()}.json"
        logger.info(f"📤 Exported data for user {user.id}")
        return Response(
            content=payload.encode("utf-8"),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    def delete_account(self, user: User, data: DeleteAccountRequest) -> dict:
        """Hard-delete the user and all dependent rows in one transaction"""
        if data.confirmation != DELETE_ACCOUNT_CONFIRMATION:
            raise HTTPException(status_code=400, detail="Invalid confirmation text")

        user_id = user.id
        try:
            self.repo.delete_user_data(self.db, user_id)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"❌ Account deletion blocked for user {user_id}: {str(e)}")
            raise HTTPException(
                status_code=400,
                detail="Cannot delete account due to existing dependencies. Please contact support.",
            ) from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🗑️ Deleted account {user_id}")
        return {"success": True, "message": "Account deleted successfully"}
