# tajiri/utils/dates.py
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tajiri.core.config import settings


@dataclass(frozen=True)
class DateRange:
    start: Optional[datetime]  # None means "since the beginning"
    end: datetime
    label: str


def normalize_to_naive_utc(dt: datetime) -> datetime:
    """Database columns hold naive UTC; aware values are converted, naive ones kept."""
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def get_zone(tz_name: Optional[str]) -> ZoneInfo:
    """Zone for ``tz_name``, falling back to the configured default for empty or unknown names"""
    try:
        return ZoneInfo(tz_name or settings.DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(settings.DEFAULT_TIMEZONE)


def is_valid_timezone(tz_name: str) -> bool:
    try:
        ZoneInfo(tz_name)
        return True
    except (ZoneInfoNotFoundError, ValueError):
        return False


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)


def date_range_from_text(text: str, now: datetime) -> DateRange:
    """
    Resolve the time frame a user mentions in free text.

    `now` should be an aware datetime in the user's zone. Recognised phrases,
    first match wins: this month, last month, last week, this week,
    yesterday, today. Anything else is treated as all time. Weeks start on
    Monday.
    """
    lowered = (text or "").lower()
    today = start_of_day(now)

    if "this month" in lowered:
        return DateRange(today.replace(day=1), now, "for this month")
    if "last month" in lowered:
        this_month = today.replace(day=1)
        last_month = (this_month - timedelta(days=1)).replace(day=1)
        return DateRange(last_month, this_month - timedelta(milliseconds=1), "for last month")
    if "last week" in lowered:
        this_week = today - timedelta(days=today.weekday())
        return DateRange(this_week - timedelta(days=7), this_week - timedelta(milliseconds=1), "for last week")
    if "this week" in lowered:
        return DateRange(today - timedelta(days=today.weekday()), now, "for this week")
    if "yesterday" in lowered:
        return DateRange(today - timedelta(days=1), today - timedelta(milliseconds=1), "for yesterday")
    if "today" in lowered:
        return DateRange(today, now, "for today")
    return DateRange(None, now, "of all time")
