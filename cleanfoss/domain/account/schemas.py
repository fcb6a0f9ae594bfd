"""Account domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator


class ProfileUpdate(BaseModel):
    """Schema for updating the signed-in user's profile"""

    name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name is required")
        return v.strip() if v else v


class NotificationSettings(BaseModel):
    emailBookingConfirmations: Optional[bool] = None
    emailBookingReminders: Optional[bool] = None
    emailPromotionalOffers: Optional[bool] = None
    smsBookingConfirmations: Optional[bool] = None
    smsBookingReminders: Optional[bool] = None


class SettingsUpdate(BaseModel):
    """Schema for updating language, timezone and notification preferences"""

    language: Optional[str] = None
    timezone: Optional[str] = None
    notifications: Optional[NotificationSettings] = None

    @field_validator("language")
    @classmethod
    def validate_language(cls, v):
        if v is not None and not (2 <= len(v.strip()) <= 10):
            raise ValueError("Invalid language code")
        return v.strip() if v else v


class VehicleCreate(BaseModel):
    """Schema for saving a vehicle to the user's garage"""

    brandId: str
    modelId: str
    year: Optional[int] = None
    color: Optional[str] = None
    licensePlate: Optional[str] = None
    nickname: Optional[str] = None
    isDefault: bool = False

    @field_validator("year")
    @classmethod
    def validate_year(cls, v):
        if v is not None and not (1900 <= v <= 2100):
            raise ValueError("Year must be between 1900 and 2100")
        return v

    @field_validator("licensePlate")
    @classmethod
    def normalize_plate(cls, v):
        if v is None:
            return v
        return v.strip().upper() or None


class DeleteAccountRequest(BaseModel):
    confirmation: str
