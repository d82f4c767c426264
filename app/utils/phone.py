import re
from typing import List, Optional, Set

MIN_PHONE_DIGITS = 10
# Characters a customer may type as formatting around the digits
_FORMATTING = re.compile(r"[\s().\-]")
_PHONE_PATTERN = re.compile(r"^\+?\d+$")


def strip_formatting(phone: Optional[str]) -> str:
    """Removes spaces, parentheses, dots and hyphens, keeping a leading '+'."""
    if phone is None:
        return ""
    return _FORMATTING.sub("", str(phone).strip())


def only_digits(phone: Optional[str]) -> str:
    return re.sub(r"\D", "", phone or "")


def is_valid_phone(phone: Optional[str]) -> bool:
    """
    Digits with an optional leading '+', at least 10 digits once formatting
    is stripped. "+1 (555) 123-4567" and "5551234567" pass, "555-1234" does not.
    """
    cleaned = strip_formatting(phone)
    if not cleaned or not _PHONE_PATTERN.match(cleaned):
        return False
    return len(only_digits(cleaned)) >= MIN_PHONE_DIGITS


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Canonical form used as the account natural key.

    - Formatting is removed.
    - A number typed with '+' keeps it ("+15551234567").
    - A bare number is kept as digits ("5551234567").
    """
    if phone is None:
        return None
    cleaned = strip_formatting(phone)
    if not cleaned:
        return cleaned
    digits = only_digits(cleaned)
    if cleaned.startswith("+"):
        return "+" + digits
    return digits


def phone_variants_for_lookup(phone: Optional[str]) -> List[str]:
    """
    Variants accepted when looking an account up by phone:
    - with/without '+'
    - with/without the North American country code "1" for 10-digit numbers

    So an account stored as "+15551234567" is found when the customer types
    "(555) 123-4567" and vice versa.
    """
    base = normalize_phone(phone)
    if not base:
        return []

    digits = only_digits(base)
    out: Set[str] = {base, digits, "+" + digits}

    if len(digits) == 11 and digits.startswith("1"):
        national = digits[1:]
        out.add(national)
    elif len(digits) == 10:
        out.add("1" + digits)
        out.add("+1" + digits)

    return sorted(out, key=lambda s: (len(s), s))
