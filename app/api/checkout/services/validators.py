import re
from typing import Dict, Optional

from app.api.orders.schemas.schema_order import CustomerDetails
from app.utils.phone import is_valid_phone

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# letters from any alphabet plus whitespace
NAME_PATTERN = re.compile(r"^(?:[^\W\d_]|\s)+$")
OTP_PATTERN = re.compile(r"^\d{6}$")


def validate_name(name: Optional[str]) -> Optional[str]:
    value = (name or "").strip()
    if not value:
        return "Name is required"
    if len(value) < 2:
        return "Name must be at least 2 characters"
    if not NAME_PATTERN.match(value):
        return "Name can only contain letters and spaces"
    return None


def validate_email(email: Optional[str]) -> Optional[str]:
    value = (email or "").strip()
    if not value:
        return "Email is required"
    if not EMAIL_PATTERN.match(value):
        return "Please enter a valid email address"
    return None


def validate_phone(phone: Optional[str]) -> Optional[str]:
    if not (phone or "").strip():
        return "Phone number is required"
    if not is_valid_phone(phone):
        return "Please enter a valid phone number (at least 10 digits)"
    return None


def validate_otp_code(code: Optional[str]) -> Optional[str]:
    if not OTP_PATTERN.match(code or ""):
        return "Please enter the 6-digit code"
    return None


def validate_customer_details(details: CustomerDetails) -> Dict[str, str]:
    """Field name -> message for every invalid field. Empty when all pass."""
    errors = {}
    for field, check in (("name", validate_name), ("email", validate_email), ("phone", validate_phone)):
        message = check(getattr(details, field))
        if message:
            errors[field] = message
    return errors
