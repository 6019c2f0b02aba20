"""Calendar and half-open interval helpers shared by the scheduling services."""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clinic_api.core.exceptions import ValidationException

# Index matches date.isoweekday() % 7 (0 = Sunday)
DAY_NAMES = ("domingo", "segunda", "terca", "quarta", "quinta", "sexta", "sabado")


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test: [a_start, a_end) and [b_start, b_end)."""
    return a_start < b_end and a_end > b_start


def weekday_name(day: date) -> str:
    """Return the schedule key for a calendar date."""
    return DAY_NAMES[day.isoweekday() % 7]


def weekday_index(day_name: str) -> int:
    """Return 0 (Sunday) .. 6 (Saturday) for a schedule key."""
    return DAY_NAMES.index(day_name)


def parse_calendar_date(value: str) -> date:
    """
    Parse a strict ``YYYY-MM-DD`` calendar date.

    Raises:
        ValidationException: If the value is not a valid calendar date
    """
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").date()
        if parsed.isoformat() != value:
            raise ValueError(value)
        return parsed
    except (TypeError, ValueError):
        raise ValidationException(f"Invalid date '{value}', expected YYYY-MM-DD") from None


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA timezone name."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationException(f"Unknown timezone '{name}'") from None


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def at_local_time(day: date, wall_time: time, tz: ZoneInfo) -> datetime:
    """Combine a local calendar date and wall time into a UTC instant."""
    return datetime.combine(day, wall_time, tzinfo=tz).astimezone(UTC)


def local_day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return the local day ``[00:00, next 00:00)`` as UTC instants."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def local_today(tz: ZoneInfo) -> date:
    """Today's calendar date in the given timezone."""
    return datetime.now(tz).date()
