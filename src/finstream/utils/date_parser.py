"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from finstream.domain.errors import ValidationError

PERIODS = (
    "this-month",
    "this-quarter",
    "this-year",
    "last-month",
    "last-quarter",
    "last-year",
)


def _quarter_start(day: date) -> date:
    return day.replace(month=3 * ((day.month - 1) // 3) + 1, day=1)


def parse_date(date_str: str, today: date | None = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative forms "today", "yesterday", "tomorrow", "in N days" and
    "N days ago", which are handy for due dates and sweeps.

    Args:
        date_str: Date string in various formats
        today: Reference date for relative forms, defaults to date.today()

    Returns:
        Date object

    Raises:
        ValidationError: If date string cannot be parsed
    """
    text = date_str.strip().lower()
    today = today or date.today()

    named = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in named:
        return named[text]

    words = text.split()
    if len(words) == 3 and words[0] == "in" and words[2] in ("day", "days") and words[1].isdigit():
        return today + timedelta(days=int(words[1]))
    if len(words) == 3 and words[2] == "ago" and words[1] in ("day", "days") and words[0].isdigit():
        return today - timedelta(days=int(words[0]))

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError) as e:
        raise ValidationError(f"Could not parse date '{date_str}': {e}") from e


def get_date_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Current periods end today; past periods end on their last calendar day.

    Raises:
        ValidationError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "this-month":
        return today.replace(day=1), today
    if period == "this-quarter":
        return _quarter_start(today), today
    if period == "this-year":
        return today.replace(month=1, day=1), today
    if period == "last-month":
        end = today.replace(day=1) - timedelta(days=1)
        return end.replace(day=1), end
    if period == "last-quarter":
        start = _quarter_start(today) - relativedelta(months=3)
        return start, _quarter_start(today) - timedelta(days=1)
    if period == "last-year":
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        return start, today.replace(month=1, day=1) - timedelta(days=1)

    raise ValidationError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")


def as_date(value: date | datetime) -> date:
    """Return the calendar date of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value
