# orderbook/services/aggregation.py
import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from domain.classifier import design_list_key, filter_designs
from domain.errors import NotFoundError, PersistenceError, ValidationError
from domain.models import (
    BatchCount,
    DesignCount,
    DesignEntry,
    PartyCount,
    ProgramGroup,
    Result,
    parse_timestamp,
)
from services.workflow import DEFAULT_COLOUR_COUNT, WorkflowContext

logger = logging.getLogger(__name__)

METERS_PER_LUMP = 100


def _store_failed(action: str, msg: str, data: Any = None) -> Result:
    logger.error("%s failed: %s", action, msg)
    return Result.failure(PersistenceError(msg), data)


# ---------------------------------------------------------------------------
# Counting
# ---------------------------------------------------------------------------

def count_by_design(entries: Iterable[DesignEntry]) -> List[DesignCount]:
    """
    Count active entries (order not cancelled) per design.
    has_part is set when any entry of the design is a part order.
    """
    counts: Dict[str, DesignCount] = {}
    for entry in entries:
        if not entry.is_active:
            continue
        row = counts.setdefault(entry.design, DesignCount(design=entry.design, count=0))
        row.count += 1
        row.has_part = row.has_part or entry.part

    return sorted(counts.values(), key=lambda c: design_list_key(c.design))


def design_counts_from_rows(rows: Iterable[Dict[str, Any]]) -> List[DesignCount]:
    """Rows of get_design_entry_count: {design, count, part} with part counted server side."""
    counts = [
        DesignCount(
            design=row["design"],
            count=int(row["count"]),
            has_part=int(row.get("part") or 0) > 0,
        )
        for row in rows
    ]
    return sorted(counts, key=lambda c: design_list_key(c.design))


def load_design_counts(store) -> Result:
    ok, msg, rows = store.design_entry_counts()
    if not ok:
        return _store_failed("Fetching design counts", msg, [])
    return Result.success("Fetched", design_counts_from_rows(rows))


def load_entries_for_design(store, design: str) -> Result:
    ok, msg, rows = store.orders_by_design(design)
    if not ok:
        return _store_failed(f"Fetching orders for {design}", msg, [])

    entries = []
    for row in rows:
        entry = DesignEntry.from_row(row)
        entry.design = design
        entries.append(entry)
    return Result.success("Fetched", entries)


def load_selected_design(store, context: WorkflowContext) -> Result:
    if not context.selected_design:
        return Result.failure(ValidationError("Select a design first"), [])
    return load_entries_for_design(store, context.selected_design)


def filter_design_counts(counts: Iterable[DesignCount], mode: str, prefix: str = "") -> List[DesignCount]:
    return filter_designs(counts, mode, prefix, key=lambda c: c.design)


class PartyIndex:
    """
    Entry counts per bill-to party, with the entries of each party fetched
    only when that party is expanded.

    Fetched entries are memoised per party; `refresh(party)` is the only
    way to drop one.
    """

    def __init__(self, store):
        self.store = store
        self.counts: List[PartyCount] = []
        self._entries: Dict[str, List[DesignEntry]] = {}

    def load_counts(self) -> Result:
        ok, msg, rows = self.store.party_design_entry_counts()
        if not ok:
            return _store_failed("Fetching party counts", msg, self.counts)

        self.counts = sorted(
            (PartyCount(r["party_name"], int(r["design_entry_count"])) for r in rows),
            key=lambda p: p.party_name.lower(),
        )
        return Result.success("Fetched", self.counts)

    def is_cached(self, party_name: str) -> bool:
        return party_name in self._entries

    def entries_for(self, party_name: str) -> Result:
        if party_name in self._entries:
            return Result.success("Cached", self._entries[party_name])

        ok, msg, rows = self.store.designs_by_party(party_name)
        if not ok:
            return _store_failed(f"Fetching designs for {party_name}", msg, [])

        entries = []
        for row in rows:
            entry = DesignEntry.from_row(row)
            entry.party_name = party_name
            entries.append(entry)

        self._entries[party_name] = entries
        logger.info("Loaded %d entries for %s", len(entries), party_name)
        return Result.success("Fetched", entries)

    def refresh(self, party_name: str) -> Result:
        self._entries.pop(party_name, None)
        return self.entries_for(party_name)


def count_by_party(store) -> Result:
    """Load the party counts; `data` is the PartyIndex either way."""
    index = PartyIndex(store)
    result = index.load_counts()
    result.data = index
    return result


def bhiwandi_batches(entries: Iterable[DesignEntry]) -> List[BatchCount]:
    """Staged entries per Bhiwandi timestamp, newest batch first."""
    counts: Dict[Any, int] = {}
    for entry in bhiwandi_list(entries):
        counts[entry.bhiwandi_date] = counts.get(entry.bhiwandi_date, 0) + 1
    batches = [BatchCount(bhiwandi_date=ts, count=n) for ts, n in counts.items()]
    return sorted(batches, key=lambda b: b.bhiwandi_date, reverse=True)


def load_batch_counts(store) -> Result:
    ok, msg, rows = store.bhiwandi_date_counts()
    if not ok:
        return _store_failed("Fetching Bhiwandi batches", msg, [])
    batches = [BatchCount(parse_timestamp(r["bhiwandi_date"]), int(r["count"])) for r in rows]
    return Result.success("Fetched", batches)


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

def bhiwandi_list(entries: Iterable[DesignEntry], mode: str = "all", prefix: str = "") -> List[DesignEntry]:
    picked = [
        e for e in entries
        if e.bhiwandi_date is not None and e.dispatch_date is None and e.is_active
    ]
    return _by_design_mode(picked, mode, prefix)


def dispatch_list(entries: Iterable[DesignEntry], mode: str = "all", prefix: str = "") -> List[DesignEntry]:
    picked = [e for e in entries if e.dispatch_date is not None]
    return _by_design_mode(picked, mode, prefix)


def pending_list(entries: Iterable[DesignEntry], mode: str = "all", prefix: str = "") -> List[DesignEntry]:
    picked = [
        e for e in entries
        if e.bhiwandi_date is None and e.dispatch_date is None and e.is_active
    ]
    return _by_design_mode(picked, mode, prefix)


def _by_design_mode(entries: List[DesignEntry], mode: str, prefix: str) -> List[DesignEntry]:
    if mode == "all":
        return entries
    return filter_designs(entries, mode, prefix, key=lambda e: e.design)


def find_entry(entries: Iterable[DesignEntry], entry_id: Any) -> DesignEntry:
    for entry in entries:
        if entry.id == entry_id:
            return entry
    raise NotFoundError(f"Design entry {entry_id} not found")


# ---------------------------------------------------------------------------
# Program report
# ---------------------------------------------------------------------------

def group_program(
        entries: Iterable[DesignEntry],
        colour_counts: Optional[Dict[str, int]] = None,
) -> List[ProgramGroup]:
    """
    Group the selected entries by design.

    total_meters adds up the single largest shade of each entry, not every
    shade: one entry of {1: 30, 2: 80} contributes 80.
    """
    colour_counts = colour_counts or {}
    order: List[str] = []
    parties: Dict[str, List[str]] = {}
    meters: Dict[str, float] = {}

    for entry in entries:
        if entry.design not in parties:
            order.append(entry.design)
            parties[entry.design] = []
            meters[entry.design] = 0.0

        if entry.party_name and entry.party_name not in parties[entry.design]:
            parties[entry.design].append(entry.party_name)

        meters[entry.design] += entry.shades.max_quantity()

    groups = []
    for design in order:
        total_meters = meters[design]
        colour_count = colour_counts.get(design, DEFAULT_COLOUR_COUNT)
        lump_set = math.floor(total_meters / METERS_PER_LUMP)
        groups.append(ProgramGroup(
            design=design,
            party_names=parties[design],
            total_meters=total_meters,
            colour_count=colour_count,
            lump_set=lump_set,
            taka=lump_set * colour_count,
        ))
    return groups


def program_total_taka(groups: Iterable[ProgramGroup]) -> int:
    return sum(g.taka for g in groups)
