"""
core/dates.py -- UTC date rules for allowlist expiration.

Every comparison happens on timezone-aware UTC datetimes so results do not
depend on the machine's local timezone. The current time is always passed
in; utc_now() is the only wall-clock read and only the CLI calls it.

Fail-closed policy: an allowlist entry without a parseable `expires` value is
treated as already expired. Entries must carry an explicit, valid expiration
date to be honored.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

EXPIRING_SOON_DAYS = 30
MAX_EXPIRING_DAYS = 36500

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def parse_utc_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 date or datetime string into an aware UTC datetime.

    "2025-06-01"              -> 2025-06-01T00:00:00+00:00
    "2025-06-01T12:30:00"     -> assumed UTC
    "2025-06-01T12:30:00Z"    -> UTC
    "2025-06-01T14:30:00+02:00" -> converted to 12:30 UTC

    Returns None for empty or unparseable input -- never raises.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()

    if _DATE_ONLY_RE.match(text):
        try:
            return datetime.combine(date.fromisoformat(text), datetime.min.time(), tzinfo=timezone.utc)
        except ValueError:
            return None

    # fromisoformat() only learned the "Z" suffix in Python 3.11.
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return as_utc(parsed)


def is_expired(expires: Optional[str], now: datetime) -> bool:
    """True when `expires` is missing, unparseable, or strictly before `now`."""
    expiration = parse_utc_date(expires)
    if expiration is None:
        return True
    return expiration < as_utc(now)


def will_expire_soon(expires: Optional[str], now: datetime, days_threshold: int = EXPIRING_SOON_DAYS) -> bool:
    """True iff now < expires <= now + days_threshold.

    Missing, unparseable, and already-expired values are never "expiring
    soon" -- they are expired, which is a stronger condition.
    """
    expiration = parse_utc_date(expires)
    if expiration is None:
        return False
    current = as_utc(now)
    if expiration < current:
        return False
    try:
        horizon = current + timedelta(days=days_threshold)
    except OverflowError:
        # Past datetime.max: every later expiration is inside the window.
        return current < expiration
    return current < expiration <= horizon
