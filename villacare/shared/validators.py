"""Shared validation utilities"""

import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number to E.164 format.

    Spanish numbers may be given without a country code (9 digits, +34 is
    assumed). Anything else must carry a country code.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    phone = phone.strip()
    has_plus = phone.startswith("+")
    digits = re.sub(r"\D", "", phone)

    if phone.startswith("00"):
        digits = digits[2:]
        has_plus = True

    if not has_plus and len(digits) == 9:
        digits = f"34{digits}"
        has_plus = True

    if not has_plus or not 8 <= len(digits) <= 15:
        raise ValueError("Phone number must include a country code, e.g. +34 612 345 678")

    return f"+{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_time(value: str) -> str:
    """Validate a 24h "HH:MM" time string"""
    if not value or not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value
