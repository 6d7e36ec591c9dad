"""Identity, phone and email validation for South African clients."""

import re
from datetime import date
from typing import Optional

_STRIP_ID = re.compile(r"[\s-]")
_STRIP_PHONE = re.compile(r"[\s\-()]")

SA_PHONE_PATTERNS = (
    re.compile(r"^0\d{9}$"),       # 0821234567
    re.compile(r"^\+27\d{9}$"),    # +27821234567
    re.compile(r"^27\d{9}$"),      # 27821234567
)
INTERNATIONAL_PHONE = re.compile(r"^\+[1-9]\d{1,2}\d{4,14}$")
EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSPORT = re.compile(r"^[A-Z0-9]{6,9}$", re.IGNORECASE)


def _clean_id(id_number: str) -> str:
    return _STRIP_ID.sub("", id_number)


def validate_sa_id_number(id_number: Optional[str]) -> bool:
    """Check a 13-digit SA ID: YYMMDD date part and Luhn checksum."""
    if not id_number:
        return False

    clean = _clean_id(id_number)
    if not re.fullmatch(r"\d{13}", clean):
        return False

    month = int(clean[2:4])
    day = int(clean[4:6])
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return False

    total = 0
    for i, ch in enumerate(reversed(clean)):
        digit = int(ch)
        if i % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def date_of_birth_from_id(id_number: str, today: Optional[date] = None) -> Optional[date]:
    """Birth date encoded in an SA ID (two-digit years up to this year are 2000s)."""
    if not validate_sa_id_number(id_number):
        return None

    clean = _clean_id(id_number)
    yy, month, day = int(clean[0:2]), int(clean[2:4]), int(clean[4:6])
    current_yy = (today or date.today()).year % 100
    year = 2000 + yy if yy <= current_yy else 1900 + yy

    try:
        return date(year, month, day)
    except ValueError:
        return None


def validate_sa_phone(phone: Optional[str]) -> bool:
    if not phone:
        return False
    clean = _STRIP_PHONE.sub("", phone)
    return any(p.match(clean) for p in SA_PHONE_PATTERNS)


def validate_international_phone(phone: Optional[str]) -> bool:
    if not phone:
        return False
    return bool(INTERNATIONAL_PHONE.match(_STRIP_PHONE.sub("", phone)))


def validate_phone(phone: Optional[str]) -> bool:
    """SA formats first, then E.164."""
    return validate_sa_phone(phone) or validate_international_phone(phone)


def format_sa_phone(phone: Optional[str]) -> str:
    """Format as ``+27 82 123 4567``; unrecognised input is returned unchanged."""
    if not phone:
        return ""

    clean = _STRIP_PHONE.sub("", phone)
    normalized = clean
    if clean.startswith("0"):
        normalized = "27" + clean[1:]
    elif clean.startswith("+27"):
        normalized = clean[1:]

    if len(normalized) == 11 and normalized.startswith("27"):
        return f"+{normalized[:2]} {normalized[2:4]} {normalized[4:7]} {normalized[7:]}"
    return phone


def validate_email(email: Optional[str]) -> bool:
    return bool(email) and bool(EMAIL.match(email))


def validate_passport_number(passport_number: Optional[str]) -> bool:
    if not passport_number:
        return False
    return bool(PASSPORT.match(_clean_id(passport_number)))


def validate_client_identity(
    id_number: Optional[str] = None,
    passport_number: Optional[str] = None,
) -> Optional[str]:
    """Return an error message, or None when the identity is acceptable."""
    if not id_number and not passport_number:
        return "Please provide either a South African ID number or passport number"
    if id_number and not validate_sa_id_number(id_number):
        return "Invalid South African ID number"
    if passport_number and not validate_passport_number(passport_number):
        return "Invalid passport number (must be 6-9 alphanumeric characters)"
    return None
