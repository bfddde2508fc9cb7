"""
Calendar-day helpers shared by the streak calculator, the alignment
provider, and the rules.

Everything works on whole calendar days (``datetime.date``); log and
reflection dates arrive as ISO ``yyyy-MM-dd`` strings.
"""

import math
from datetime import date, datetime, timedelta
from typing import Optional

import pandas as pd


DAY_FORMAT = "%Y-%m-%d"

SUNDAY = 6  # date.weekday() / Timestamp.dayofweek


def parse_day(value) -> Optional[date]:
    """
    Coerce a date, datetime, Timestamp or ISO string to a calendar day.

    Unparseable or empty values return None instead of raising, so a
    single malformed record drops out of date-based rules on its own.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(value, format=DAY_FORMAT, exact=False, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def parse_timestamp(value) -> Optional[datetime]:
    """
    Coerce an ISO 8601 timestamp to a naive datetime; None when unparseable.

    Offsets are converted to UTC before the timezone is dropped.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    ts = pd.to_datetime(value, format="ISO8601", errors="coerce")
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.to_pydatetime()


def format_day(day: date) -> str:
    return day.strftime(DAY_FORMAT)


def days_before(day: date, n: int) -> date:
    return day - timedelta(days=n)


def days_between(later: date, earlier: date) -> int:
    """Whole calendar days from `earlier` to `later` (negative if reversed)."""
    return (later - earlier).days


def week_start(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def calendar_weeks_spanned(start: date, end: date) -> int:
    """
    Number of Monday-start calendar weeks touched by [start, end], min 1.

    A range from Sunday to the following Monday spans two weeks even
    though it is only two days long.
    """
    weeks = (week_start(end) - week_start(start)).days // 7 + 1
    return max(1, weeks)


def round_half_up(value: float) -> int:
    """Round to the nearest whole number with .5 going up (display rounding)."""
    return int(math.floor(value + 0.5))
