"""
Form validators shared by the request schemas.

Each validate_* function returns an error message, or None when the value
is acceptable.
"""

import re
from typing import Optional, Union

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NEPTUN_RE = re.compile(r"^[A-Z0-9]{6}$")

MIN_PASSWORD_LENGTH = 12
MIN_YEAR = 1950
MAX_YEAR = 2100


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email.strip()))


def normalize_neptun(code: str) -> str:
    return code.strip().upper()


def validate_neptun_optional(code: Optional[str]) -> Optional[str]:
    """Neptun code is optional, but if given it is exactly 6 of A-Z/0-9."""
    normalized = normalize_neptun(code or "")
    if not normalized:
        return None
    if not NEPTUN_RE.match(normalized):
        return "Neptun code must be exactly 6 characters (A-Z, 0-9)."
    return None


def validate_password(password: str, min_length: int = MIN_PASSWORD_LENGTH) -> Optional[str]:
    if len(password) < min_length:
        return f"Password must be at least {min_length} characters."
    return None


def validate_required(value: str, field_name: str) -> Optional[str]:
    if not value.strip():
        return f"{field_name} is required."
    return None


def validate_year(year: Union[int, str, None], field_name: str = "Year") -> Optional[str]:
    if year in ("", None):
        return f"{field_name} is required."
    if isinstance(year, int) and not (MIN_YEAR <= year <= MAX_YEAR):
        return f"{field_name} does not look right."
    return None
