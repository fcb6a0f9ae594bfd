"""Payment domain schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class CreatePaymentIntentRequest(BaseModel):
    """Schema for requesting a Stripe PaymentIntent"""

    amount: float
    currency: str = "dkk"
    bookingId: Optional[str] = None
    customerEmail: str
    customerName: str
    description: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Amount must be positive")
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        v = v.strip().lower()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("Currency must be a three-letter ISO code")
        return v

    @field_validator("customerEmail")
    @classmethod
    def validate_customer_email(cls, v):
        if not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("customerName")
    @classmethod
    def validate_customer_name(cls, v):
        if not v.strip():
            raise ValueError("Customer name is required")
        return v.strip()


class ConfirmPaymentRequest(BaseModel):
    """Schema for reporting a completed client-side payment"""

    paymentIntentId: str
    bookingId: str

    @field_validator("paymentIntentId", "bookingId")
    @classmethod
    def validate_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Field is required")
        return v.strip()
