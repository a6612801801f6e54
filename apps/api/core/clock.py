"""
Gym-local calendar helpers.

"Today" is always computed here, in GYM_TIMEZONE, instead of asking the
database (CURDATE() and friends follow the server zone and drift a day).
"""
from calendar import monthrange
from datetime import date, datetime
from zoneinfo import ZoneInfo

from core.config import settings


def gym_timezone() -> ZoneInfo:
    return ZoneInfo(settings.GYM_TIMEZONE)


def local_now() -> datetime:
    """Naive wall-clock time in the gym's zone (stored as-is in DateTime columns)."""
    return datetime.now(gym_timezone()).replace(tzinfo=None, microsecond=0)


def local_today() -> date:
    return datetime.now(gym_timezone()).date()


def add_months(start: date, months: int) -> date:
    """
    Add calendar months, clamping the day (Jan 31 + 1 month => Feb 28/29).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, monthrange(year, month)[1])
    return date(year, month, day)
