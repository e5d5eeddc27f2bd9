import re
from typing import Optional

_NON_NAME_CHARS = re.compile(r"[^\w\s'-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_HH_MM = re.compile(r"^\d{2}:\d{2}$")


def sanitize_business_name(name: str) -> str:
    """Normalise a business name for matching.

    Lower-cases, drops everything except word characters, whitespace,
    apostrophes and hyphens, collapses whitespace runs and trims.
    """
    cleaned = _NON_NAME_CHARS.sub("", name.lower())
    return _WHITESPACE_RUN.sub(" ", cleaned).strip()


def validate_time_of_day(value: str) -> bool:
    """Validate a 24h ``HH:MM`` clock time."""
    if not _HH_MM.match(value):
        return False
    hours, minutes = (int(part) for part in value.split(":"))
    return 0 <= hours <= 23 and 0 <= minutes <= 59


def validate_phone_number(phone: Optional[str]) -> bool:
    """Validate phone number format (international or local)."""
    if not phone:
        return True  # Allow empty/null

    phone_pattern = r"^[\+]?[\d\-\s\(\)\.]{8,20}$"
    return bool(re.match(phone_pattern, phone))


def validate_url_format(url: Optional[str]) -> bool:
    """Validate URL format."""
    if not url:
        return True  # Allow empty/null

    url_pattern = r"^https?://[^\s/$.?#][^\s]*$"
    return bool(re.match(url_pattern, url))
