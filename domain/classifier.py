# orderbook/domain/classifier.py

import math
import re
from enum import Enum
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")

_DESIGN_NUMBER_RE = re.compile(r"^\d+$")


class Category(str, Enum):
    REGULAR = "regular"
    PRINT = "print"
    DIGITAL = "digital"
    DESIGN_NUMBER = "design_no"
    OTHER = "other"


# Interactive filter modes. "all" and "prefix" are not categories.
FILTER_MODES = ("all", "regular", "print", "digital", "design_no", "prefix")


def is_digital(code: str) -> bool:
    # both marker conventions are still in the designs table
    return "D-" in code or code.startswith("D DBY-") or "DDBY-" in code


def is_print(code: str) -> bool:
    if "-" not in code:
        return False
    suffix = code.rsplit("-", 1)[1]
    return len(suffix) >= 3 and suffix[-3:].isdigit()


def classify(code: Optional[str]) -> Category:
    code = (code or "").strip()
    if not code:
        return Category.OTHER
    if _DESIGN_NUMBER_RE.match(code):
        return Category.DESIGN_NUMBER
    if is_digital(code):
        return Category.DIGITAL
    if is_print(code):
        return Category.PRINT
    return Category.REGULAR


def suffix_number(code: str) -> float:
    """Number after the last hyphen; codes without one sort last."""
    tail = code.rsplit("-", 1)[-1]
    try:
        return float(tail)
    except ValueError:
        return math.inf


def sort_key(category: Category) -> Callable[[str], object]:
    if category == Category.DESIGN_NUMBER:
        return lambda code: int(code)
    if category in (Category.DIGITAL, Category.PRINT):
        return lambda code: (suffix_number(code), code)
    return lambda code: code


def design_list_key(code: str):
    """
    Default report ordering: named designs alphabetically (case-insensitive),
    then purely numeric designs ascending.
    """
    if _DESIGN_NUMBER_RE.match(code):
        return (1, int(code), "")
    return (0, 0, code.lower())


def filter_designs(
        items: Iterable[T],
        mode: str,
        prefix: str = "",
        key: Callable[[T], str] = lambda item: item,
) -> List[T]:
    """
    Filter and sort `items` for one of FILTER_MODES.
    `key` extracts the design code from an item (identity for plain strings).
    """
    if mode not in FILTER_MODES:
        raise ValueError(f"Unknown filter mode: {mode}")

    items = list(items)

    if mode == "all":
        return sorted(items, key=key)

    if mode == "prefix":
        picked = [item for item in items if key(item).startswith(prefix)]
        return sorted(picked, key=key)

    category = Category(mode)
    picked = [item for item in items if classify(key(item)) == category]
    code_key = sort_key(category)
    return sorted(picked, key=lambda item: code_key(key(item)))
