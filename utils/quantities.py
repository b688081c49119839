# orderbook/utils/quantities.py

from typing import Iterable


def remaining(total: float, fulfilled: Iterable[float]) -> float:
    """Total minus everything received so far, rounded to 2 decimals."""
    received = sum(value or 0 for value in fulfilled)
    return round(total - received, 2)
