"""
Timezone-aware date/time helpers.

Stored timestamps are naive wall-clock strings in the configured TIMEZONE
('YYYY-MM-DD HH:MM:SS'), so every calendar window below is built in that
zone and compared lexically in SQL.
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

FRENCH_MONTHS = [
    'janvier', 'février', 'mars', 'avril', 'mai', 'juin',
    'juillet', 'août', 'septembre', 'octobre', 'novembre', 'décembre'
]


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'Europe/Paris')
    return ZoneInfo(tz_name)


def get_today() -> date:
    """Get today's date in the configured timezone."""
    return datetime.now(get_timezone()).date()


def get_now() -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(get_timezone())


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is not None:
        value = value.astimezone(get_timezone()).replace(tzinfo=None)
    return value.replace(microsecond=0)


def elapsed_hours(start: datetime, end: datetime) -> float:
    """
    Real elapsed hours between two naive local datetimes.

    Both ends are placed in the configured timezone and compared in UTC, so
    a booking across a DST change counts the hour skipped or repeated.
    Ambiguous wall times (the repeated hour in autumn) resolve to their
    first occurrence.
    """
    tz = get_timezone()
    start_utc = start.replace(tzinfo=tz).astimezone(timezone.utc)
    end_utc = end.replace(tzinfo=tz).astimezone(timezone.utc)
    return (end_utc - start_utc).total_seconds() / 3600


def format_timestamp(value: datetime | date) -> str:
    """Format a datetime (or date, at midnight) as a stored timestamp string."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    return to_local_naive(value).strftime(TIMESTAMP_FORMAT)


def now_timestamp() -> str:
    """Current local time as a stored timestamp string."""
    return format_timestamp(get_now())


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp string."""
    return datetime.strptime(value, TIMESTAMP_FORMAT)


def get_week_start(day: date) -> date:
    """Monday of the ISO week containing day."""
    return day - timedelta(days=day.weekday())


def get_month_start(day: date) -> date:
    """First day of the month containing day."""
    return day.replace(day=1)


def add_months(day: date, months: int) -> date:
    """First day of the month `months` away from day's month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def get_month_bounds(year: int, month: int) -> tuple[date, date]:
    """
    Half-open bounds of a calendar month.

    Returns:
        (first day of month, first day of next month)
    """
    start = date(year, month, 1)
    return start, add_months(start, 1)


def get_temporal_windows(today: date | None = None) -> dict:
    """
    Half-open [start, end) timestamp windows for dashboard buckets.

    Args:
        today: Reference day (defaults to today in the configured timezone)

    Returns:
        dict with 'today', 'week', 'month' and 'last_month' keys, each a
        (start, end) tuple of timestamp strings
    """
    if today is None:
        today = get_today()

    tomorrow = today + timedelta(days=1)
    week_start = get_week_start(today)
    month_start = get_month_start(today)
    last_month_start = add_months(today, -1)

    return {
        'today': (format_timestamp(today), format_timestamp(tomorrow)),
        'week': (format_timestamp(week_start), format_timestamp(week_start + timedelta(days=7))),
        'month': (format_timestamp(month_start), format_timestamp(add_months(today, 1))),
        'last_month': (format_timestamp(last_month_start), format_timestamp(month_start)),
    }


def format_month_label(year: int, month: int) -> str:
    """French month label, e.g. 'mars 2026'."""
    return f'{FRENCH_MONTHS[month - 1]} {year}'


def format_display(value, fmt: str = '%d/%m/%Y %H:%M') -> str:
    """Format a stored timestamp string or datetime for display."""
    if not value:
        return ''
    if isinstance(value, str):
        try:
            value = parse_timestamp(value)
        except ValueError:
            return value
    return value.strftime(fmt)
