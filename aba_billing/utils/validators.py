"""Deterministic parsers and sanitizers shared by schemas and billing logic."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation

DATE_ONLY_LENGTH = len("YYYY-MM-DD")


def sanitize_text(value: str | None, max_len: int = 2000) -> str:
    """Sanitize free-form content before sending or displaying it."""
    if value is None:
        return ""
    cleaned = str(value).replace("\x00", "").strip()
    return cleaned[:max_len]


def is_date_only(value: str | date | datetime | None) -> bool:
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    return isinstance(value, str) and len(value.strip()) == DATE_ONLY_LENGTH


def parse_iso(value: str | date | datetime | None) -> datetime | None:
    """Parse an ISO 8601 date or timestamp.

    Date-only values become local midnight. Returns None for empty or
    unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def align_to(moment: datetime, reference: datetime) -> datetime:
    """Make `moment` comparable with `reference` (both naive or both aware)."""
    if (moment.tzinfo is None) == (reference.tzinfo is None):
        return moment
    if moment.tzinfo is None:
        return moment.replace(tzinfo=reference.tzinfo)
    return moment.astimezone().replace(tzinfo=None)


def to_utc_iso(moment: datetime) -> str:
    """UTC timestamp with millisecond precision and a `Z` suffix; naive values are local time."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def local_day(value: str | date | datetime | None, reference: datetime) -> date | None:
    """Calendar day of `value` as seen from `reference`'s timezone."""
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_iso(value)
    if parsed is None:
        return None
    if is_date_only(value):
        return parsed.date()
    aligned = align_to(parsed, reference)
    if aligned.tzinfo is not None and reference.tzinfo is not None:
        aligned = aligned.astimezone(reference.tzinfo)
    return aligned.date()


def to_decimal(value: object, default: Decimal | None = Decimal("0")) -> Decimal | None:
    """Normalize a numeric or decimal-string amount."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    if not parsed.is_finite():
        return default
    return parsed
