# orderbook/services/pagination.py

import math
from typing import List, Sequence

from domain.models import DesignEntry

SHADES_PER_ROW = 8  # shade cells per printed row
ROWS_PER_PAGE = 12  # printed shade rows per order-form page


def rows_for(entry: DesignEntry, shades_per_row: int = SHADES_PER_ROW) -> int:
    return math.ceil(entry.shades.non_empty_count() / shades_per_row)


def paginate(
        entries: Sequence[DesignEntry],
        shades_per_row: int = SHADES_PER_ROW,
        rows_per_page: int = ROWS_PER_PAGE,
) -> List[List[DesignEntry]]:
    """
    Split entries into pages of at most `rows_per_page` shade rows.

    Entries are never split across pages and keep their input order. An
    entry taller than a whole page gets a page to itself.
    """
    pages: List[List[DesignEntry]] = []
    current: List[DesignEntry] = []
    used = 0

    for entry in entries:
        rows = rows_for(entry, shades_per_row)

        if current and used + rows > rows_per_page:
            pages.append(current)
            current, used = [], 0

        current.append(entry)
        used += rows

        if rows > rows_per_page:
            pages.append(current)
            current, used = [], 0

    if current:
        pages.append(current)

    return pages
