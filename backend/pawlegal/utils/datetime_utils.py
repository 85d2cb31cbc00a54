"""Datetime conversion and French display formatting."""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from pawlegal.config import get_settings

MONTHS_FR = (
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
)
WEEKDAYS_FR = ("lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche")


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite returns them naive)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def datetime_to_iso(value: datetime | None) -> str | None:
    """Convert a datetime to an ISO-8601 string, or None."""
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def datetime_from_iso(value: str | None) -> datetime | None:
    """Convert an ISO-8601 string to a datetime, or None."""
    if not value:
        return None
    return datetime.fromisoformat(value)


def to_local(value: datetime) -> datetime:
    """Convert to the display timezone used in exported documents."""
    return ensure_utc(value).astimezone(ZoneInfo(get_settings().DISPLAY_TIMEZONE))


def local_day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open UTC interval covering *day* as a calendar day in the display timezone."""
    zone = ZoneInfo(get_settings().DISPLAY_TIMEZONE)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return start.astimezone(UTC), end.astimezone(UTC)


def format_date_fr(value: date | datetime | None = None) -> str:
    """``06 octobre 2025``: letterhead date format."""
    if value is None:
        value = datetime.now(UTC)
    if isinstance(value, datetime):
        value = to_local(value)
    return f"{value.day:02d} {MONTHS_FR[value.month - 1]} {value.year}"


def format_long_date_fr(value: date) -> str:
    """``mercredi 25 décembre 2024``."""
    return f"{WEEKDAYS_FR[value.weekday()]} {value.day} {MONTHS_FR[value.month - 1]} {value.year}"


def format_short_date_fr(value: datetime | None) -> str:
    """``25/12/2024``, or ``N/A``."""
    if value is None:
        return "N/A"
    return to_local(value).strftime("%d/%m/%Y")


def format_time_fr(value: datetime) -> str:
    return to_local(value).strftime("%H:%M:%S")


def format_datetime_fr(value: datetime) -> str:
    """``25/12/2024 14:03:05``."""
    return to_local(value).strftime("%d/%m/%Y %H:%M:%S")
