# backend/modules/analytics/utils/period_utils.py

"""
Date window and period-key helpers.

Period keys are strings that sort in time order within a granularity:
day ``2024-01-05``, ISO week ``2024-W01``, month ``2024-01``.
"""

import re
import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from ..constants import ERROR_MESSAGES
from ..exceptions import InvalidPeriodError

_TOKEN_PATTERN = re.compile(r"^(\d+)([dwmy])$")
_WEEK_PATTERN = re.compile(r"^(\d{4})-W(\d{2})$")
_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def _granularity_value(granularity) -> str:
    return getattr(granularity, "value", granularity)


def shift_months(day: date, months: int) -> date:
    """Move a date by whole months, clamping to the end of shorter months"""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def resolve_period(token: str, today: Optional[date] = None) -> Tuple[date, date]:
    """
    Resolve a relative period token into an inclusive (start, end) window.

    Supports the dashboard presets (7d, 30d, 90d, 1y) and the generic forms
    <N>d, <N>w, <N>m and <N>y. The window ends today.
    """
    today = today or date.today()
    normalized = (token or "").strip().lower()

    match = _TOKEN_PATTERN.match(normalized)
    if not match or int(match.group(1)) <= 0:
        raise InvalidPeriodError(
            token, ERROR_MESSAGES["invalid_period_token"].format(token=token)
        )

    amount, unit = int(match.group(1)), match.group(2)
    if unit == "d":
        start = today - timedelta(days=amount)
    elif unit == "w":
        start = today - timedelta(weeks=amount)
    elif unit == "m":
        start = shift_months(today, -amount)
    else:
        start = shift_months(today, -12 * amount)
    return start, today


def previous_window(start: date, end: date) -> Tuple[date, date]:
    """Window of the same length that ends the day before ``start``"""
    length = (end - start).days
    previous_end = start - timedelta(days=1)
    return previous_end - timedelta(days=length), previous_end


def in_window(timestamp: datetime, start: date, end: date) -> bool:
    day = timestamp.date() if isinstance(timestamp, datetime) else timestamp
    return start <= day <= end


def period_key(timestamp: datetime, granularity) -> str:
    """Bucket a timestamp into its period key"""
    granularity = _granularity_value(granularity)
    day = timestamp.date() if isinstance(timestamp, datetime) else timestamp

    if granularity == "week":
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if granularity == "month":
        return f"{day.year:04d}-{day.month:02d}"
    return day.isoformat()


def period_start(key: str, granularity) -> date:
    """First day of the period a key names; ValueError when it cannot be parsed"""
    granularity = _granularity_value(granularity)

    if granularity == "week":
        match = _WEEK_PATTERN.match(key)
        if not match:
            raise ValueError(f"Not a week key: {key}")
        return date.fromisocalendar(int(match.group(1)), int(match.group(2)), 1)
    if granularity == "month":
        match = _MONTH_PATTERN.match(key)
        if not match:
            raise ValueError(f"Not a month key: {key}")
        return date(int(match.group(1)), int(match.group(2)), 1)
    return date.fromisoformat(key)


def next_period_key(key: str, granularity, steps: int = 1) -> Optional[str]:
    """Key ``steps`` periods after ``key``, or None when ``key`` is not parseable"""
    granularity = _granularity_value(granularity)
    try:
        start = period_start(key, granularity)
    except ValueError:
        return None

    if granularity == "week":
        return period_key(start + timedelta(weeks=steps), granularity)
    if granularity == "month":
        return period_key(shift_months(start, steps), granularity)
    return period_key(start + timedelta(days=steps), granularity)
