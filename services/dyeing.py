# orderbook/services/dyeing.py

from domain.models import DyeingProgram, GoodsReceipt
from utils.quantities import remaining


def remaining_meters(program: DyeingProgram) -> float:
    return remaining(program.total_meters, (r.meters_received for r in program.receipts))


def remaining_takas(program: DyeingProgram) -> float:
    return remaining(program.total_takas, (r.taka_received for r in program.receipts))


def is_complete(program: DyeingProgram) -> bool:
    return remaining_meters(program) <= 0


def add_receipt(program: DyeingProgram, receipt: GoodsReceipt) -> float:
    """Record a goods receipt and return the metres still pending."""
    program.receipts.append(receipt)
    return remaining_meters(program)
