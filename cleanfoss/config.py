import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cleanfoss.db")

# Firebase Configuration (identity provider)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Stripe Configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY")
STRIPE_API_VERSION = os.getenv("STRIPE_API_VERSION")  # None = account default
STRIPE_TIMEOUT_SECONDS = int(os.getenv("STRIPE_TIMEOUT_SECONDS", "30"))

# Tenant and booking defaults
DEFAULT_COMPANY_ID = os.getenv("DEFAULT_COMPANY_ID", "default-company")
DEFAULT_BOOKING_DURATION_MINUTES = int(os.getenv("DEFAULT_BOOKING_DURATION_MINUTES", "120"))
DEFAULT_COUNTRY = os.getenv("DEFAULT_COUNTRY", "Denmark")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "DKK")
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "da")
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Europe/Copenhagen")
# Danish VAT, applied to the pricing subtotal
TAX_RATE = os.getenv("TAX_RATE", "0.25")

# Account deletion must be confirmed with this exact phrase
DELETE_ACCOUNT_CONFIRMATION = os.getenv("DELETE_ACCOUNT_CONFIRMATION", "SLET MIN KONTO")

# Monitoring endpoints - open when no secret is configured
HEALTH_CHECK_SECRET = os.getenv("HEALTH_CHECK_SECRET")
MONITORING_SECRET = os.getenv("MONITORING_SECRET") or HEALTH_CHECK_SECRET

# Seed data
SUPER_ADMIN_EMAIL = os.getenv("SUPER_ADMIN_EMAIL", "admin@cleanfoss.com")
SUPER_ADMIN_NAME = os.getenv("SUPER_ADMIN_NAME", "CleanFoss Super Administrator")

# Frontend base URL, used for CORS defaults
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS",
        f"{FRONTEND_URL},https://cleanfoss.dk,https://www.cleanfoss.dk",
    ).split(",")
    if origin.strip()
]

# Security toggles
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"

APP_VERSION = "1.0.0"

# Redis backs the rate limiter
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
