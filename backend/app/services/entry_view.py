"""
Calendar / list derivation over a loaded set of entries.

Everything here is a pure function of its inputs. Entries are compared by
their normalized ``day`` only; an entry whose date could not be resolved is
never placed on the calendar or in a month list.

The public/private toggle is a display filter over whatever was loaded for the
viewer; it is not an authorization check.
"""
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from app.config import MOOD_ICONS, MOOD_LABELS, WEATHER_LABELS
from ..core.dates import calendar_days, format_display_date, local_today, month_bounds
from ..models.diary import DiaryEntry


def _visible(entry: DiaryEntry, public_view: bool) -> bool:
    return entry.isPublic if public_view else True


def has_entry_on(entries: Iterable[DiaryEntry], day: date, public_view: bool = False) -> bool:
    return any(entry.day == day and _visible(entry, public_view) for entry in entries)


def entries_for_month(
    entries: Iterable[DiaryEntry], current: date, public_view: bool = False
) -> List[DiaryEntry]:
    """Entries of the month containing ``current``, most recent day first."""
    start, end = month_bounds(current)
    filtered = [
        entry for entry in entries
        if entry.day is not None and start <= entry.day <= end and _visible(entry, public_view)
    ]
    # sorted() 是稳定排序，同一天的条目保持载入顺序
    return sorted(filtered, key=lambda entry: entry.day, reverse=True)


def calendar_month(
    entries: Iterable[DiaryEntry], current: date, public_view: bool = False,
    today: Optional[date] = None,
) -> List[List[Dict[str, Any]]]:
    """Sunday-first weeks for the month containing ``current``."""
    today = today or local_today()
    marked = {entry.day for entry in entries if entry.day is not None and _visible(entry, public_view)}

    cells = [
        {
            "date": day.isoformat(),
            "day": day.day,
            "inMonth": day.month == current.month and day.year == current.year,
            "isToday": day == today,
            "hasEntry": day in marked,
        }
        for day in calendar_days(current)
    ]
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def find_entry_for_date(entries: Iterable[DiaryEntry], target: date) -> Optional[DiaryEntry]:
    for entry in entries:
        if entry.day == target:
            return entry
    return None


def entry_path(day: str) -> str:
    return f"/diary/{day}"


def edit_path(day: str) -> str:
    return f"/diary/edit?date={day}"


def navigation_path(day: str, has_entry: bool) -> str:
    return entry_path(day) if has_entry else edit_path(day)


def weather_label(weather: str) -> str:
    return WEATHER_LABELS.get(weather, WEATHER_LABELS["sunny"])


def mood_icon(mood: str) -> str:
    return MOOD_ICONS.get(mood, MOOD_ICONS["good"])


def present_entry(entry: DiaryEntry) -> Dict[str, Any]:
    """Entry plus the strings the calendar/list/detail views render."""
    data = entry.to_public()
    data.update({
        "displayDate": format_display_date(entry.day),
        "weatherLabel": weather_label(entry.weather),
        "moodIcon": mood_icon(entry.mood),
        "moodLabel": MOOD_LABELS.get(entry.mood, MOOD_LABELS["good"]),
    })
    return data
