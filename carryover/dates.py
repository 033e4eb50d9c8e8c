"""Date utilities for carryover.

Pure functions for month arithmetic and formatting. All arithmetic goes
through MonthKey.ordinal so December/January rollover is never special-cased.
"""

from datetime import date, datetime, timedelta

from carryover.domain.models import MonthKey


def parse_month(text: str) -> MonthKey:
    """Parse a month string.

    Args:
        text: Month in YYYY-MM format.

    Returns:
        The corresponding MonthKey.

    Raises:
        ValueError: If the string is not a valid YYYY-MM month.
    """
    dt = datetime.strptime(text.strip(), "%Y-%m")
    return MonthKey(dt.year, dt.month)


def month_of(day: date) -> MonthKey:
    """Return the month containing a date."""
    return MonthKey(day.year, day.month)


def add_months(key: MonthKey, count: int) -> MonthKey:
    """Shift a month forwards (positive count) or backwards (negative count)."""
    return MonthKey.from_ordinal(key.ordinal + count)


def next_month(key: MonthKey) -> MonthKey:
    return add_months(key, 1)


def prev_month(key: MonthKey) -> MonthKey:
    return add_months(key, -1)


def months_between(start: MonthKey, end: MonthKey) -> int:
    """Number of months from start to end (negative if end is earlier)."""
    return end.ordinal - start.ordinal


def month_range(key: MonthKey) -> tuple[str, str, str]:
    """Calculate date range and label for a month.

    Args:
        key: The month.

    Returns:
        Tuple of (since_date, until_date, label) where:
        - since_date: First day of month (YYYY-MM-DD)
        - until_date: First day of next month (YYYY-MM-DD)
        - label: Human-readable month (e.g., "January 2025")
    """
    dt = datetime(key.year, key.month, 1)
    since = dt.strftime("%Y-%m-01")
    next_dt = (dt.replace(day=28) + timedelta(days=4)).replace(day=1)
    until = next_dt.strftime("%Y-%m-%d")
    label = dt.strftime("%B %Y")
    return since, until, label


def month_label(key: MonthKey) -> str:
    """Human-readable month (e.g., "December 2025")."""
    return month_range(key)[2]
