# orderbook/services/price_resolver.py
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from domain.errors import PersistenceError
from domain.models import Result

logger = logging.getLogger(__name__)


class SuggestionKind(str, Enum):
    EXACT = "exact"
    FAMILY = "family"  # "old price" from another design of the same family
    NONE = "none"


@dataclass
class PriceSuggestion:
    kind: SuggestionKind
    price: Optional[str] = None
    source_design: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kind == SuggestionKind.EXACT:
            return f"Price: {self.price}"
        if self.kind == SuggestionKind.FAMILY:
            return f"Old Price: {self.price}"
        return "Enter Price"


def design_family(design: str) -> str:
    """Text before the first hyphen: "PR-1020" -> "PR"."""
    return design.split("-")[0]


class PriceResolver:
    """Suggest a price for a party/design from that party's latest prices."""

    def __init__(self, store):
        self.store = store
        self._history: Dict[Any, List[Dict[str, Any]]] = {}

    def history(self, party_id: Any) -> Result:
        if party_id in self._history:
            return Result.success("Cached", self._history[party_id])

        ok, msg, rows = self.store.latest_prices_by_party(party_id)
        if not ok:
            logger.error("Price history for party %s failed: %s", party_id, msg)
            return Result.failure(PersistenceError(msg), [])

        self._history[party_id] = list(rows)
        return Result.success("Fetched", self._history[party_id])

    def refresh(self, party_id: Any) -> None:
        self._history.pop(party_id, None)

    def suggest_price(self, party_id: Any, design: str) -> Result:
        """`data` is a PriceSuggestion, of kind NONE when the history cannot be fetched."""
        result = self.history(party_id)
        if not result.ok:
            result.data = PriceSuggestion(SuggestionKind.NONE)
            return result
        return Result.success("Suggested", match_price(result.data, design))


def match_price(history: List[Dict[str, Any]], design: str) -> PriceSuggestion:
    rows = [r for r in history if r.get("price") not in (None, "")]

    for row in rows:
        if row["design"] == design:
            return PriceSuggestion(SuggestionKind.EXACT, str(row["price"]), row["design"])

    family = design_family(design)
    for row in rows:
        if design_family(row["design"]) == family:
            return PriceSuggestion(SuggestionKind.FAMILY, str(row["price"]), row["design"])

    return PriceSuggestion(SuggestionKind.NONE)
