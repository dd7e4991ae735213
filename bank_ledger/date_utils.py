"""Date helpers for the ledger: input parsing and calendar month arithmetic"""

from datetime import date, datetime, timedelta
from typing import Tuple
import calendar

from .exceptions import ValidationError

DATE_FORMAT = "%Y%m%d"
MONTH_FORMAT = "%Y%m"


def parse_date(value: str) -> date:
    """Parse a YYYYMMdd string into a date"""
    value = (value or "").strip()
    if len(value) != 8 or not value.isdigit():
        raise ValidationError(f"Invalid date '{value}', expected YYYYMMdd", field="date")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid date '{value}', expected YYYYMMdd", field="date")


def parse_year_month(value: str) -> Tuple[int, int]:
    """Parse a YYYYMM string into (year, month)"""
    value = (value or "").strip()
    if len(value) != 6 or not value.isdigit():
        raise ValidationError(f"Invalid month '{value}', expected YYYYMM", field="month")
    year, month = int(value[:4]), int(value[4:])
    if not 1 <= month <= 12 or year < 1:
        raise ValidationError(f"Invalid month '{value}', expected YYYYMM", field="month")
    return year, month


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """
    Get the first and last calendar day of a month
    
    Raises:
        ValidationError: If year/month do not name a calendar month
    """
    try:
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, 1), date(year, month, last_day)
    except (ValueError, calendar.IllegalMonthError):
        raise ValidationError(f"Invalid month {year:04d}-{month:02d}", field="month")


def days_inclusive(start: date, end: date) -> int:
    """Number of calendar days in [start, end]"""
    return (end - start).days + 1


def previous_day(value: date) -> date:
    return value - timedelta(days=1)


def as_date(value) -> date:
    """Normalize date-like values; datetimes lose their time component"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise ValidationError(f"Expected a calendar date, got {value!r}", field="date")
