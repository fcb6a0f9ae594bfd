"""Admin domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import UserRole
from ...shared.validators import validate_email


def _required_text(v: str, message: str) -> str:
    if not v or not v.strip():
        raise ValueError(message)
    return v.strip()


class AdminUserCreate(BaseModel):
    """Schema for adding a staff member or customer"""

    name: str
    email: str
    role: UserRole
    companyId: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "Name is required")

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(_required_text(v, "Email is required"))


class ServiceCreate(BaseModel):
    """Schema for adding a service to a company catalog"""

    name: str
    description: Optional[str] = None
    price: float
    deposit: Optional[float] = None
    duration: int
    image: Optional[str] = None
    backgroundColor: Optional[str] = None
    categoryId: Optional[str] = None
    minCapacity: int = 1
    maxCapacity: int = 1
    companyId: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "Service name is required")

    @field_validator("price", "deposit")
    @classmethod
    def validate_non_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("Must be non-negative")
        return v

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v):
        if v < 1:
            raise ValueError("Duration must be at least 1 minute")
        return v

    @field_validator("minCapacity", "maxCapacity")
    @classmethod
    def validate_capacity(cls, v):
        if v < 1:
            raise ValueError("Capacity must be at least 1")
        return v

    @field_validator("image")
    @classmethod
    def validate_image_url(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Image must be a URL")
        return v


class ExtraCreate(BaseModel):
    """Schema for adding an extra to a service"""

    name: str
    description: Optional[str] = None
    price: float
    duration: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "Extra name is required")

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v < 0:
            raise ValueError("Price must be non-negative")
        return v


class BookingStatusUpdate(BaseModel):
    status: str


class CompanyCreate(BaseModel):
    """Schema for onboarding a new tenant"""

    name: str
    email: str
    licenseType: str
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _required_text(v, "Company name is required")

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v):
        return validate_email(_required_text(v, "Email is required"))

    @field_validator("licenseType")
    @classmethod
    def validate_license_type(cls, v):
        v = v.strip().upper()
        if v not in ("MONTHLY", "YEARLY", "LIFETIME"):
            raise ValueError("License type must be MONTHLY, YEARLY or LIFETIME")
        return v
