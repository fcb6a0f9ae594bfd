"""Payment service - Reconciles Stripe PaymentIntents with bookings"""

import logging
from decimal import Decimal
from typing import Optional

import stripe
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Booking, BookingStatus, Payment, PaymentStatus, utcnow
from ...shared.serializers import booking_to_dict, payment_to_dict
from ..pricing.service import round_currency
from .schemas import ConfirmPaymentRequest, CreatePaymentIntentRequest
from .stripe_service import StripeService, stripe_service

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_DESCRIPTION = "CleanFoss booking payment"


def intent_metadata_value(intent, key: str) -> Optional[str]:
    """Read a metadata entry; StripeObject is not a dict so ``.get`` is unavailable"""
    metadata = intent.metadata
    if metadata is None or key not in metadata:
        return None
    return metadata[key]


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session, stripe_client: StripeService = stripe_service):
        self.db = db
        self.stripe = stripe_client

    def _ensure_stripe(self) -> None:
        if not self.stripe.is_available():
            raise HTTPException(status_code=503, detail="Payment processing is not configured")

    async def create_intent(self, data: CreatePaymentIntentRequest) -> dict:
        """Mint a PaymentIntent; booking state is untouched"""
        self._ensure_stripe()
        amount_minor = int(round_currency(Decimal(str(data.amount)) * 100))

        try:
            intent = await self.stripe.create_payment_intent(
                amount_minor=amount_minor,
                currency=data.currency,
                receipt_email=data.customerEmail,
                description=data.description or DEFAULT_PAYMENT_DESCRIPTION,
                metadata={
                    "bookingId": data.bookingId or "",
                    "customerEmail": data.customerEmail,
                    "customerName": data.customerName,
                },
            )
        except stripe.StripeError as e:
            raise HTTPException(status_code=502, detail=e.user_message or str(e)) from e

        return {
            "success": True,
            "clientSecret": intent.client_secret,
            "paymentIntentId": intent.id,
        }

    def _existing_payment(self, booking_id: str, transaction_id: str):
        return (
            self.db.query(Payment)
            .filter(Payment.booking_id == booking_id, Payment.transaction_id == transaction_id)
            .first()
        )

    def _already_confirmed(self, booking: Booking, payment: Payment) -> dict:
        logger.info(f"🔁 Payment {payment.transaction_id} already recorded for booking {booking.id}")
        return {
            "success": True,
            "booking": booking_to_dict(booking, include_customer=True),
            "payment": payment_to_dict(payment),
            "message": "Payment already confirmed",
            "alreadyConfirmed": True,
        }

    def _lost_confirmation_race(self, booking: Booking, payment_intent_id: str) -> dict:
        """Another request moved the booking first; report its payment or refuse"""
        self.db.refresh(booking)
        existing = self._existing_payment(booking.id, payment_intent_id)
        if existing:
            return self._already_confirmed(booking, existing)
        logger.warning(f"⚠️ Booking {booking.id} left PENDING before {payment_intent_id} was recorded")
        raise HTTPException(
            status_code=409,
            detail=f"Booking is {booking.status} and cannot be confirmed again",
        )

    async def confirm_payment(self, data: ConfirmPaymentRequest) -> dict:
        """
        Confirm a booking once Stripe reports its PaymentIntent as succeeded.

        The client's word is never trusted: the intent is re-read from Stripe.
        Repeating a confirmation with the same intent returns the recorded
        payment instead of writing a second one.
        """
        booking = self.db.get(Booking, data.bookingId)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")

        existing = self._existing_payment(booking.id, data.paymentIntentId)
        if existing:
            return self._already_confirmed(booking, existing)

        if booking.status != BookingStatus.PENDING.value:
            raise HTTPException(
                status_code=409,
                detail=f"Booking is {booking.status} and cannot be confirmed again",
            )

        self._ensure_stripe()
        try:
            intent = await self.stripe.retrieve_payment_intent(data.paymentIntentId)
        except stripe.StripeError as e:
            raise HTTPException(status_code=502, detail=e.user_message or str(e)) from e

        if intent.status != "succeeded":
            logger.warning(
                f"⚠️ Payment intent {intent.id} for booking {booking.id} is {intent.status}, not confirming"
            )
            raise HTTPException(
                status_code=400,
                detail={"error": "Payment has not succeeded", "status": intent.status},
            )

        intent_booking_id = intent_metadata_value(intent, "bookingId")
        if intent_booking_id and intent_booking_id != booking.id:
            logger.warning(
                f"🚫 Payment intent {intent.id} belongs to booking {intent_booking_id}, not {booking.id}"
            )
            raise HTTPException(status_code=400, detail="Payment intent does not belong to this booking")

        try:
            # Conditional update so only one confirmation can leave PENDING
            moved = (
                self.db.query(Booking)
                .filter(Booking.id == booking.id, Booking.status == BookingStatus.PENDING.value)
                .update(
                    {Booking.status: BookingStatus.CONFIRMED.value, Booking.updated_at: utcnow()},
                    synchronize_session=False,
                )
            )
            if moved == 0:
                self.db.rollback()
                return self._lost_confirmation_race(booking, data.paymentIntentId)
            logger.info(f"🔄 Booking {booking.id}: PENDING -> CONFIRMED")

            payment = Payment(
                booking_id=booking.id,
                company_id=booking.company_id,
                amount=float(Decimal(intent.amount) / 100),
                currency=intent.currency.upper(),
                payment_method="CARD",
                transaction_id=intent.id,
                status=PaymentStatus.COMPLETED.value,
                processed_at=utcnow(),
            )
            self.db.add(payment)
            self.db.commit()
        except IntegrityError:
            # A parallel confirmation with the same intent won the insert
            self.db.rollback()
            return self._lost_confirmation_race(booking, data.paymentIntentId)
        except HTTPException:
            raise
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"✅ Payment {payment.transaction_id} confirmed booking {booking.id}")
        return {
            "success": True,
            "booking": booking_to_dict(booking, include_customer=True),
            "payment": payment_to_dict(payment),
            "message": "Payment confirmed successfully",
        }
