# orderbook/domain/shade_ledger.py

from typing import Dict, Iterable, List, Optional, Tuple

from domain.errors import DuplicateShadeError, ValidationError

ALL_COLOURS = "All Colours"
DEFAULT_SHADE_COUNT = 30


def _is_numeric_name(name: str) -> bool:
    return name.isdigit()


def _as_int(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_float(value: str) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class ShadeLedger:
    """
    Ordered, name-unique list of (shade name, metres) pairs.

    Quantities are kept as strings: "" means unset, anything else is
    whatever the user typed. Storage order is insertion order; use
    `ordered()` for the display order.

    Uniqueness is only checked by `add_custom`. Numeric shades produced by
    `add_more_shades` / `apply_broadcast` or read from the wire are trusted.
    """

    def __init__(self, pairs: Optional[Iterable[Tuple[str, str]]] = None):
        self._pairs: List[List[str]] = [[name, qty] for name, qty in (pairs or [])]

    # ------------------------------------------------------------------
    # Construction / wire format
    # ------------------------------------------------------------------

    @classmethod
    def create_default(cls, shade_count: int = DEFAULT_SHADE_COUNT) -> "ShadeLedger":
        pairs = [(ALL_COLOURS, "")]
        pairs += [(str(i), "") for i in range(1, shade_count + 1)]
        return cls(pairs)

    @classmethod
    def from_wire(cls, data: Optional[List[Dict[str, str]]]) -> "ShadeLedger":
        """
        Build a ledger from the stored shape:
          [{"All Colours": ""}, {"1": "50"}, {"101A": "20"}]
        """
        pairs = []
        for item in data or []:
            for name, qty in item.items():
                pairs.append((str(name), "" if qty is None else str(qty)))
        return cls(pairs)

    def to_wire(self) -> List[Dict[str, str]]:
        return [{name: qty} for name, qty in self._pairs]

    def copy(self) -> "ShadeLedger":
        return ShadeLedger(self.items())

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def items(self) -> List[Tuple[str, str]]:
        return [(name, qty) for name, qty in self._pairs]

    def names(self) -> List[str]:
        return [name for name, _ in self._pairs]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        for shade, qty in self._pairs:
            if shade == name:
                return qty
        return default

    def __contains__(self, name: str) -> bool:
        return any(shade == name for shade, _ in self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __iter__(self):
        return iter(self.items())

    def __eq__(self, other) -> bool:
        if not isinstance(other, ShadeLedger):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"ShadeLedger({self.items()!r})"

    def ordered(self) -> List[Tuple[str, str]]:
        """All Colours first, then custom names as inserted, then numeric ascending."""
        head = [(n, q) for n, q in self._pairs if n == ALL_COLOURS]
        custom = [(n, q) for n, q in self._pairs if n != ALL_COLOURS and not _is_numeric_name(n)]
        numeric = sorted(
            ((n, q) for n, q in self._pairs if _is_numeric_name(n)),
            key=lambda pair: int(pair[0]),
        )
        return head + custom + numeric

    def non_empty(self) -> List[Tuple[str, str]]:
        return [(n, q) for n, q in self.ordered() if q != ""]

    def non_empty_count(self) -> int:
        return sum(1 for _, qty in self._pairs if qty != "")

    def max_quantity(self) -> float:
        """Largest single shade quantity, 0 when nothing parses."""
        best = 0.0
        for _, qty in self._pairs:
            value = _as_float(qty)
            if value is not None and value > best:
                best = value
        return best

    def total(self) -> float:
        return sum(_as_float(qty) or 0.0 for _, qty in self._pairs)

    def group_by_quantity(self) -> Dict[str, List[str]]:
        """
        Map each distinct non-empty quantity to the shades sharing it,
        smallest groups first. Ties keep first-seen order.
        """
        groups: Dict[str, List[str]] = {}
        for name, qty in self.ordered():
            if qty == "":
                continue
            groups.setdefault(qty, []).append(name)

        ranked = sorted(groups.items(), key=lambda item: len(item[1]))
        return dict(ranked)

    def format_groups(self, unit: str = "m") -> List[str]:
        return [f"{'-'.join(names)}: {qty}{unit}" for qty, names in self.group_by_quantity().items()]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _index(self, name: str) -> int:
        for i, (shade, _) in enumerate(self._pairs):
            if shade == name:
                return i
        raise KeyError(name)

    def add_custom(self, name: str) -> str:
        """
        Insert a custom shade right after "All Colours" (or at the head).
        Returns the stored (upper-cased) name.
        """
        clean = (name or "").strip().upper()
        if not clean:
            raise ValidationError("Shade name cannot be empty")

        existing = {shade.upper() for shade, _ in self._pairs}
        if clean in existing:
            raise DuplicateShadeError(clean)

        position = 0
        if ALL_COLOURS in self:
            position = self._index(ALL_COLOURS) + 1
        self._pairs.insert(position, [clean, ""])
        return clean

    def add_more_shades(self, count: int = 10) -> List[str]:
        """Append `count` numeric shades after the current highest one."""
        highest = max((int(n) for n, _ in self._pairs if _is_numeric_name(n)), default=0)
        added = [str(highest + i) for i in range(1, count + 1)]
        self._pairs.extend([name, ""] for name in added)
        return added

    def remove(self, name: str) -> None:
        self._pairs.pop(self._index(name))

    def set_quantity(self, name: str, value: str) -> None:
        self._pairs[self._index(name)][1] = "" if value is None else str(value)

    def increment(self, name: str, delta: Optional[int]) -> str:
        """
        Add `delta` metres to a shade. A `None` delta is the "clear" button.
        """
        i = self._index(name)
        if delta is None:
            self._pairs[i][1] = ""
            return ""

        new_value = str(_as_int(self._pairs[i][1]) + delta)
        self._pairs[i][1] = new_value
        return new_value

    def clear(self, names: Iterable[str]) -> None:
        for name in names:
            self.set_quantity(name, "")

    def apply_broadcast(self, total_count: int) -> bool:
        """
        Copy the "All Colours" value onto numeric shades 1..total_count.

        Numeric shades inside that range are replaced by fresh entries
        appended at the end; everything outside it is left alone. The
        "All Colours" value is reset afterwards. Returns False (and changes
        nothing) when there is no numeric value to broadcast.
        """
        value = self.get(ALL_COLOURS)
        if not value or _as_float(value) is None:
            return False
        if total_count is None or total_count < 1:
            return False

        kept = [
            pair for pair in self._pairs
            if not (_is_numeric_name(pair[0]) and 1 <= int(pair[0]) <= total_count)
        ]
        kept.extend([str(i), value] for i in range(1, total_count + 1))

        for pair in kept:
            if pair[0] == ALL_COLOURS:
                pair[1] = ""

        self._pairs = kept
        return True
