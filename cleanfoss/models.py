import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a unique string primary key"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    """ISO 8601 with a Z suffix for stored naive UTC timestamps"""
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"


class UserRole(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    AGENT = "AGENT"
    FINANCE = "FINANCE"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class License(Base):
    __tablename__ = "licenses"

    id = Column(String(36), primary_key=True, default=generate_id)
    key = Column(String(100), unique=True, nullable=False)
    type = Column(String(20), nullable=False)  # MONTHLY, YEARLY, LIFETIME
    status = Column(String(20), default="ACTIVE", nullable=False)
    expires_at = Column(DateTime, nullable=True)  # NULL for LIFETIME
    created_at = Column(DateTime, default=utcnow, server_default=func.now())

    company = relationship("Company", back_populates="license", uselist=False)


class Company(Base):
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(50), nullable=True)
    status = Column(String(20), default="ACTIVE", nullable=False)
    license_id = Column(String(36), ForeignKey("licenses.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    license = relationship("License", back_populates="company")
    users = relationship("User", back_populates="company")
    services = relationship("Service", back_populates="company")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), default=UserRole.CUSTOMER.value, nullable=False)
    status = Column(String(20), default="ACTIVE", nullable=False)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=True, index=True)
    language = Column(String(10), nullable=True)  # e.g. "da"
    timezone = Column(String(64), nullable=True)  # e.g. "Europe/Copenhagen"
    # Notification preferences
    notify_email_booking_confirmations = Column(Boolean, default=True, nullable=False)
    notify_email_booking_reminders = Column(Boolean, default=True, nullable=False)
    notify_email_promotional_offers = Column(Boolean, default=False, nullable=False)
    notify_sms_booking_confirmations = Column(Boolean, default=False, nullable=False)
    notify_sms_booking_reminders = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    company = relationship("Company", back_populates="users")
    accounts = relationship("Account", back_populates="user")
    sessions = relationship("UserSession", back_populates="user")
    vehicles = relationship("CustomerVehicle", back_populates="customer")
    bookings = relationship("Booking", back_populates="customer")


class Account(Base):
    """Link between a user and an external identity provider"""

    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("provider", "provider_account_id", name="uq_account_provider"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    provider = Column(String(50), nullable=False)  # firebase
    provider_account_id = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())

    user = relationship("User", back_populates="accounts")


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    session_key = Column(String(255), unique=True, nullable=False)  # "<uid>:<auth_time>"
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    last_seen_at = Column(DateTime, default=utcnow, nullable=True)

    user = relationship("User", back_populates="sessions")


class CarBrand(Base):
    __tablename__ = "car_brands"

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    logo = Column(String(500), nullable=True)
    status = Column(String(20), default="ACTIVE", nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())

    models = relationship("CarModel", back_populates="brand", order_by="CarModel.name")


class CarModel(Base):
    __tablename__ = "car_models"

    id = Column(String(36), primary_key=True, default=generate_id)
    brand_id = Column(String(36), ForeignKey("car_brands.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    vehicle_type = Column(String(20), default="CAR", nullable=False)  # CAR, SUV, VAN, TRUCK, MOTORCYCLE
    vehicle_size = Column(String(20), nullable=True)
    status = Column(String(20), default="ACTIVE", nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())

    brand = relationship("CarBrand", back_populates="models")


class CustomerVehicle(Base):
    __tablename__ = "customer_vehicles"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    brand_id = Column(String(36), ForeignKey("car_brands.id"), nullable=True)
    model_id = Column(String(36), ForeignKey("car_models.id"), nullable=True)
    year = Column(Integer, nullable=True)
    color = Column(String(50), nullable=True)
    license_plate = Column(String(20), nullable=True, index=True)
    nickname = Column(String(100), nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    customer = relationship("User", back_populates="vehicles")
    brand = relationship("CarBrand")
    model = relationship("CarModel")


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("company_id", "name", name="uq_service_company_name"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("service_categories.id"), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    price = Column(Float, nullable=False)
    deposit = Column(Float, nullable=True)
    duration = Column(Integer, nullable=False)  # Minutes
    image = Column(String(500), nullable=True)
    background_color = Column(String(7), nullable=True)  # e.g. #3B82F6
    min_capacity = Column(Integer, default=1, nullable=False)
    max_capacity = Column(Integer, default=1, nullable=False)
    status = Column(String(20), default="ACTIVE", nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    company = relationship("Company", back_populates="services")
    category = relationship("ServiceCategory")
    extras = relationship("ServiceExtra", back_populates="service", order_by="ServiceExtra.name")
    booking_services = relationship("BookingService", back_populates="service")


class ServiceExtra(Base):
    __tablename__ = "service_extras"

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    price = Column(Float, nullable=False)
    duration = Column(Integer, nullable=True)  # Minutes
    status = Column(String(20), default="ACTIVE", nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())

    service = relationship("Service", back_populates="extras")


class Location(Base):
    __tablename__ = "locations"

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    city = Column(String(255), nullable=False)
    postal_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("customer_vehicles.id"), nullable=True)
    location_id = Column(String(36), ForeignKey("locations.id"), nullable=True)
    scheduled_at = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)  # Minutes
    total_price = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(20), default=BookingStatus.PENDING.value, nullable=False, index=True)
    source_format = Column(String(20), nullable=True)  # enhanced, wizard
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    customer = relationship("User", back_populates="bookings")
    vehicle = relationship("CustomerVehicle")
    location = relationship("Location")
    services = relationship("BookingService", back_populates="booking")
    payments = relationship("Payment", back_populates="booking", order_by="Payment.created_at")


class BookingService(Base):
    """Priced line item of a booking (a service or one of its extras)"""

    __tablename__ = "booking_services"

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=True)
    extra_id = Column(String(36), ForeignKey("service_extras.id"), nullable=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)

    booking = relationship("Booking", back_populates="services")
    service = relationship("Service", back_populates="booking_services")
    extra = relationship("ServiceExtra")


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("booking_id", "transaction_id", name="uq_payment_booking_transaction"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False)
    payment_method = Column(String(20), default="CARD", nullable=False)
    transaction_id = Column(String(255), nullable=False, index=True)  # Stripe PaymentIntent id
    status = Column(String(20), nullable=False)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())

    booking = relationship("Booking", back_populates="payments")
