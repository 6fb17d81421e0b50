"""
core/dates.py: calendar-day helpers.

Stored diary dates come in two shapes: an ISO string ("2024-05-01") or a
timestamp struct ({"_seconds": ..., "_nanoseconds": ...}). Everything here
reduces both to a plain ``datetime.date``.
"""
import calendar
import logging
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, List, Optional, Tuple
from zoneinfo import ZoneInfo

from app.config import DIARY_TIMEZONE, DISPLAY_DATE_FORMAT, UNKNOWN_DATE_LABEL

logger = logging.getLogger(__name__)


def get_timezone(name: Optional[str] = None) -> tzinfo:
    name = name or DIARY_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_today(tz: Optional[tzinfo] = None) -> date:
    """Today in the diary timezone, the same zone stored timestamps resolve in."""
    return datetime.now(tz or get_timezone()).date()


def _epoch_seconds(value: Any) -> Optional[float]:
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
    else:
        seconds = getattr(value, "seconds", None)
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    return seconds


def normalize_date(value: Any, tz: Optional[tzinfo] = None) -> Optional[date]:
    """Return the calendar day of a stored date, or None when it cannot be resolved."""
    tz = tz or get_timezone()

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(tz).date()
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable diary date string: {value!r}")
            return None
        if parsed.tzinfo is not None:
            return parsed.astimezone(tz).date()
        return parsed.date()

    seconds = _epoch_seconds(value)
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=tz).date()
    except (OverflowError, OSError, ValueError):
        logger.debug(f"Out-of-range diary timestamp: {value!r}")
        return None


def month_bounds(current: date) -> Tuple[date, date]:
    """First and last day of the month containing ``current``."""
    last_day = calendar.monthrange(current.year, current.month)[1]
    return current.replace(day=1), current.replace(day=last_day)


def calendar_days(current: date) -> List[date]:
    """Days shown on a Sunday-first month grid, padded to whole weeks."""
    start, end = month_bounds(current)
    # date.weekday(): Monday=0 … Sunday=6; shift so that Sunday=0
    start -= timedelta(days=(start.weekday() + 1) % 7)
    end += timedelta(days=6 - (end.weekday() + 1) % 7)
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def parse_month(value: Optional[str], today: Optional[date] = None) -> date:
    """Parse ``YYYY-MM`` (or a full ISO date) to the first day of that month."""
    if not value:
        return (today or local_today()).replace(day=1)
    text = value.strip()
    if len(text) == 7:
        text = f"{text}-01"
    return date.fromisoformat(text).replace(day=1)


def format_display_date(day: Optional[date]) -> str:
    if day is None:
        return UNKNOWN_DATE_LABEL
    return day.strftime(DISPLAY_DATE_FORMAT)
