"""Shared validation utilities"""

import re
from typing import Optional


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_dk_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a Danish phone number to E.164 format.

    Accepts 8 digits with an optional +45 / 0045 prefix and any spacing.

    Returns:
        Normalized phone number (+45XXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    if digits.startswith("0045") and len(digits) == 12:
        digits = digits[4:]
    elif digits.startswith("45") and len(digits) == 10:
        digits = digits[2:]

    if len(digits) != 8:
        raise ValueError("Phone number must be 8 digits for Danish numbers")

    return f"+45{digits}"


def slugify(value: str) -> str:
    """Lowercase slug with runs of non-alphanumerics collapsed to single dashes"""
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower())
    return slug.strip("-")
