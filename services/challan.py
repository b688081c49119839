# orderbook/services/challan.py

from typing import Dict, List

from domain.errors import ValidationError
from domain.models import Challan, ChallanLine


def line_total(line: ChallanLine, discount_pct: float = 0.0) -> float:
    return line.price * line.meters * line.pieces * (1 - discount_pct / 100)


def build_line(design: str, meters: str, pieces: str, price: str) -> ChallanLine:
    """Validate one line typed into the challan form."""
    if not design or not meters or not pieces or not price:
        raise ValidationError("Please fill all fields before adding an entry.")
    try:
        return ChallanLine(design=design, meters=float(meters), pieces=float(pieces), price=float(price))
    except ValueError:
        raise ValidationError("Meters, pieces and price must be numbers.")


def validate_challan(challan: Challan) -> None:
    required = (challan.challan_no, challan.bill_to, challan.ship_to, challan.broker, challan.transport)
    if any(not value for value in required) or not challan.lines:
        raise ValidationError("All fields must be filled and at least one entry must be added.")
    if not 0 <= challan.discount <= 100:
        raise ValidationError("Discount must be between 0 and 100.")


def challan_totals(challan: Challan) -> Dict[str, float]:
    """
    Returns:
      {"meters": ..., "pieces": ..., "amount": ...}
    with `amount` already discounted.
    """
    lines: List[ChallanLine] = challan.lines
    return {
        "meters": sum(line.meters for line in lines),
        "pieces": sum(line.pieces for line in lines),
        "amount": round(sum(line_total(line, challan.discount) for line in lines), 2),
    }
