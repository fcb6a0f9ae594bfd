"""Payment router - FastAPI endpoints for Stripe payments"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .schemas import ConfirmPaymentRequest, CreatePaymentIntentRequest
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])

payment_intent_rate_limit = create_rate_limiter(limit=20, window_seconds=60, key_prefix="payment_intents")


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.post("/create-intent")
async def create_payment_intent(
    data: CreatePaymentIntentRequest,
    service: PaymentService = Depends(get_payment_service),
    _: None = Depends(payment_intent_rate_limit),
):
    """Create a Stripe PaymentIntent for the booking checkout"""
    return await service.create_intent(data)


@router.post("/confirm")
async def confirm_payment(
    data: ConfirmPaymentRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Confirm a booking after Stripe reports the payment as succeeded"""
    return await service.confirm_payment(data)
