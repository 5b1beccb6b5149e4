"""
Date helpers for position deadlines and timestamps.

The backend sends ISO-8601 strings, but older records carry empty or
garbage values. Nothing here raises on bad input: an unparseable value is
simply "no date".
"""

import re
from datetime import datetime, timezone, tzinfo
from typing import Optional, Union

DateLike = Union[str, datetime, None]

NO_DATE = "—"

# fromisoformat before 3.11 only takes 3 or 6 fractional digits
FRACTION_RE = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


def parse_date(value: DateLike) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware datetime (naive values are UTC)."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        text = FRACTION_RE.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_expired(deadline: DateLike, now: Optional[datetime] = None) -> bool:
    """True only for a parseable deadline that lies strictly in the past."""
    parsed = parse_date(deadline)
    if parsed is None:
        return False
    return parsed < (now or utc_now())


def timestamp(value: DateLike) -> float:
    """Epoch seconds, or 0 when the value is missing or unparseable."""
    parsed = parse_date(value)
    return parsed.timestamp() if parsed else 0.0


def format_hu_date(value: DateLike, tz: Optional[tzinfo] = None) -> str:
    """
    Format as Hungarian short date: "2024.08.15."

    Returns an em dash for missing/unparseable input. When `tz` is given the
    date is taken in that zone, otherwise in the value's own offset.
    """
    parsed = parse_date(value)
    if parsed is None:
        return NO_DATE
    if tz is not None:
        parsed = parsed.astimezone(tz)
    return f"{parsed.year:04d}.{parsed.month:02d}.{parsed.day:02d}."
