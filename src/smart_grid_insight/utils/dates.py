# stdlib
from datetime import date, datetime
from typing import Iterator, Optional
# thirdpartylib
import pandas as pd
# projectlib
from smart_grid_insight.utils.typing import DateLike

def parse_date(value: DateLike) -> Optional[date]:
    """
    Parse a date-like value into a ``datetime.date``.

    Strings are parsed with ``pandas.to_datetime`` so the usual ISO,
    slash and textual month formats are accepted. Anything that cannot
    be interpreted as a calendar date yields ``None`` rather than
    raising, which lets callers count bad rows instead of aborting.

    Parameters
    ----------
    value : DateLike
        String, ``date``, ``datetime`` or ``pandas.Timestamp``.

    Returns
    -------
    datetime.date or None
        Parsed calendar date, or ``None`` if unparsable.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            ts = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    elif isinstance(value, (datetime, date)):
        ts = pd.Timestamp(value)
    else:
        return None
    if pd.isna(ts):
        return None
    return ts.date()

def month_start(value: date) -> date:
    """Canonical first-of-month date for ``value``."""
    return date(value.year, value.month, 1)

def add_months(value: date, months: int) -> date:
    """Month start ``months`` calendar months after ``value``."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)

def months_between(start: date, end: date) -> int:
    """Number of calendar months from ``start`` to ``end``."""
    return (end.year - start.year) * 12 + (end.month - start.month)

def month_range(start: date, end: date) -> Iterator[date]:
    """Yield every month start from ``start`` to ``end`` inclusive."""
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        yield current
        current = add_months(current, 1)
