"""Booking domain schemas - The two booking submission shapes

Booking clients send one of two JSON contracts: the one-page booking form
("enhanced") and the step-by-step booking wizard ("wizard"). ``detect_format``
tells them apart by which top-level keys are present, and
``BookingSubmissionAdapter`` validates a payload against the matching model.
"""

from datetime import datetime
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, Discriminator, Tag, TypeAdapter, field_validator

from ...shared.validators import validate_email

ENHANCED = "enhanced"
WIZARD = "wizard"

ENHANCED_MARKERS = ("customerInfo", "vehicleInfo", "selectedDateTime", "pricing")
WIZARD_MARKERS = ("customer", "location", "scheduledAt", "totalPrice")


def detect_format(payload: Any) -> Optional[str]:
    """
    Classify a raw booking payload.

    A format matches when all of its marker keys are present with a non-null
    value. Enhanced wins when both match. Returns None for anything else,
    including non-object payloads.
    """
    if isinstance(payload, BaseModel):
        return ENHANCED if isinstance(payload, EnhancedBookingRequest) else WIZARD
    if not isinstance(payload, dict):
        return None
    if all(payload.get(key) is not None for key in ENHANCED_MARKERS):
        return ENHANCED
    if all(payload.get(key) is not None for key in WIZARD_MARKERS):
        return WIZARD
    return None


def normalize_extra_ids(value: Any) -> Any:
    """Extras arrive as plain ids or as objects carrying an ``id``"""
    if value is None:
        return value
    if not isinstance(value, list):
        raise ValueError("Extras must be a list")
    ids = []
    for item in value:
        if isinstance(item, str):
            ids.append(item)
        elif isinstance(item, dict) and isinstance(item.get("id"), str):
            ids.append(item["id"])
        else:
            raise ValueError("Each extra must be an id or an object with an id")
    return ids


# ============================================================================
# ENHANCED BOOKING FORM
# ============================================================================


class Address(BaseModel):
    street: str
    postalCode: str
    city: str


class CustomerInfo(BaseModel):
    name: str
    email: str
    phone: str
    address: Address

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)


class VehicleInfo(BaseModel):
    make: str
    model: str
    year: int
    color: str
    licensePlate: Optional[str] = None


class PricingLineItem(BaseModel):
    id: str
    name: str
    price: float
    productId: str
    type: str


class SubmittedPricing(BaseModel):
    lineItems: list[PricingLineItem]
    subtotal: float
    discount: float
    total: float
    vat: float


class EnhancedBookingRequest(BaseModel):
    """Schema for the one-page booking form"""

    customerInfo: CustomerInfo
    serviceId: str
    vehicleInfo: VehicleInfo
    selectedDateTime: datetime
    selectedExtras: Optional[list[str]] = None
    pricing: SubmittedPricing
    specialRequests: Optional[str] = None

    @field_validator("selectedExtras", mode="before")
    @classmethod
    def normalize_extras(cls, v):
        return normalize_extra_ids(v)

    @property
    def contact(self) -> "ContactInfo":
        return ContactInfo(
            name=self.customerInfo.name, email=self.customerInfo.email, phone=self.customerInfo.phone
        )

    @property
    def extra_ids(self) -> list[str]:
        return self.selectedExtras or []

    @property
    def submitted_total(self) -> float:
        return self.pricing.total


# ============================================================================
# BOOKING WIZARD
# ============================================================================


class ContactInfo(BaseModel):
    name: str
    email: str
    phone: str

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        if not v or not v.strip():
            raise ValueError("Email is required")
        return validate_email(v)


class LocationInfo(BaseModel):
    name: str
    address: str
    city: str
    postalCode: str
    country: str


class WizardBookingRequest(BaseModel):
    """Schema for the step-by-step booking wizard"""

    serviceId: str
    extras: Optional[list[str]] = None
    vehicleId: str
    scheduledAt: datetime
    duration: int
    customer: ContactInfo
    location: LocationInfo
    totalPrice: float
    notes: Optional[str] = None
    companyId: Optional[str] = None

    @field_validator("extras", mode="before")
    @classmethod
    def normalize_extras(cls, v):
        return normalize_extra_ids(v)

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        if v <= 0:
            raise ValueError("Duration must be positive")
        return v

    @property
    def contact(self) -> ContactInfo:
        return self.customer

    @property
    def extra_ids(self) -> list[str]:
        return self.extras or []

    @property
    def submitted_total(self) -> float:
        return self.totalPrice


BookingSubmission = Annotated[
    Union[
        Annotated[EnhancedBookingRequest, Tag(ENHANCED)],
        Annotated[WizardBookingRequest, Tag(WIZARD)],
    ],
    Discriminator(detect_format),
]

BookingSubmissionAdapter = TypeAdapter(BookingSubmission)
