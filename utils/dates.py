# orderbook/utils/dates.py

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

# Orders are booked in India; stored timestamps carry the +05:30 offset.
IST = timezone(timedelta(hours=5, minutes=30), name="IST")


def now_local() -> datetime:
    return datetime.now(IST)


def format_date(value: Optional[Union[date, datetime]]) -> str:
    """
    Long en-GB style used on reports and print-outs.
    Example: 2024-03-05 -> "5 March 2024"
    """
    if value is None:
        return ""
    return f"{value.day} {value.strftime('%B %Y')}"
