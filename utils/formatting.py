# orderbook/utils/formatting.py

def format_amount(n: float) -> str:
    """
    Two decimals with ',' as thousands separator.
    Example: 1234567.5 -> "1,234,567.50"
    """
    return f"{n:,.2f}"


def format_meters(n: float) -> str:
    """Drop the decimals when the quantity is whole: 120.0 -> "120", 12.5 -> "12.5"."""
    return str(int(n)) if float(n).is_integer() else f"{n:g}"
