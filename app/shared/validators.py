"""Shared validation utilities"""

import re
from typing import Optional

DEFAULT_COUNTRY_CODE = "1"

# Loose E.164 check on the bare digits: no leading zero, 2-15 digits total
PHONE_DIGITS_PATTERN = re.compile(r"^[1-9]\d{1,14}$")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_phone(phone: Optional[str]) -> bool:
    """
    Check that a phone number looks like an E.164 number once formatting is removed.

    Not a carrier validity check.
    """
    if not phone:
        return False

    digits = re.sub(r"\D", "", phone)
    return bool(PHONE_DIGITS_PATTERN.match(digits))


def normalize_phone(phone: Optional[str]) -> str:
    """
    Normalize a phone number to E.164 format.

    Args:
        phone: Phone number string in various formats

    Returns:
        "+1" followed by the digits for 10-digit (US) numbers, otherwise "+" followed by the digits

    Raises:
        ValueError: If the input contains no digits

    Normalization does not reject malformed numbers; call validate_phone first.
    """
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValueError("Phone number is required")

    if len(digits) == 10:
        return f"+{DEFAULT_COUNTRY_CODE}{digits}"
    return f"+{digits}"


def validate_email(email: Optional[str]) -> str:
    """
    Validate email format.

    Returns:
        Stripped email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        raise ValueError("Email address is required")

    email = email.strip()
    if not EMAIL_PATTERN.match(email):
        raise ValueError(f"{email} is not a valid email address!")

    return email
