# orderbook/services/lifecycle.py
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

from domain.errors import ConflictError, PersistenceError, ValidationError
from domain.models import (
    CANCELLED_REMARK,
    DesignEntry,
    EntryState,
    PendingAction,
    Result,
    format_timestamp,
    parse_timestamp,
)
from domain.shade_ledger import ShadeLedger
from services.workflow import WorkflowContext
from utils.dates import now_local

logger = logging.getLogger(__name__)

STAGEABLE_STATES = (EntryState.ORDERED, EntryState.PART_ORDERED)


class LifecycleManager:
    """
    State transitions for design entries.

    Each transition is one store write (one bulk write for batch
    operations). Nothing is rolled back locally and nothing is retried: on
    failure the caller gets a PersistenceError result carrying the store's
    message, and the in-memory entry is left as it was.

    Destructive transitions (cancel, delete, unstage, order cancel) are only
    available as `prepare_*` calls returning a PendingAction that must be
    passed to `confirm`.
    """

    def __init__(self, store, clock: Callable[[], datetime] = now_local):
        self.store = store
        self.clock = clock

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _reject(exc, data: Any = None) -> Result:
        logger.warning("Rejected: %s", exc)
        return Result.failure(exc, data)

    @staticmethod
    def _store_failed(action: str, msg: str) -> Result:
        logger.error("%s failed: %s", action, msg)
        return Result.failure(PersistenceError(msg))

    def _pending(self, kind: str, summary: str, entry_ids: List[Any], run: Callable[[], Result]) -> PendingAction:
        logger.info("Awaiting confirmation: %s", summary)
        return PendingAction(kind=kind, summary=summary, entry_ids=entry_ids, run=run)

    def confirm(self, action: PendingAction) -> Result:
        if action.confirmed:
            return self._reject(ValidationError(f"'{action.kind}' was already confirmed"))
        if action.run is None:
            return self._reject(ValidationError(f"Nothing to run for '{action.kind}'"))

        action.confirmed = True
        return action.run()

    # ------------------------------------------------------------------
    # creation / editing
    # ------------------------------------------------------------------

    def create_entry(
            self,
            order_id: Any,
            design: str,
            price: str,
            remark: str = "",
            shades: Optional[ShadeLedger] = None,
            part: bool = False,
    ) -> Result:
        if order_id is None:
            return self._reject(ValidationError("Select an order before adding a design"))
        if not design or not design.strip():
            return self._reject(ValidationError("Design cannot be empty"))
        if price is None or str(price).strip() == "":
            return self._reject(ValidationError("Please enter a price for the design before saving."))

        entry = DesignEntry(
            id=None,
            order_id=order_id,
            design=design.strip(),
            price=str(price).strip(),
            remark=remark or "",
            part=part,
            shades=shades if shades is not None else ShadeLedger.create_default(),
        )

        ok, msg, row = self.store.insert_entry(entry.to_row())
        if not ok:
            return self._store_failed("Insert entry", msg)

        if row:
            entry.id = row.get("id")
        logger.info("Created entry %s for order %s (%s, part=%s)", entry.id, order_id, entry.design, part)
        return Result.success("Entry saved", entry)

    def update_shades(self, entry: DesignEntry, shades: ShadeLedger) -> Result:
        ok, msg, _ = self.store.update_entry(entry.id, {"shades": shades.to_wire()})
        if not ok:
            return self._store_failed("Update shades", msg)

        entry.shades = shades.copy()
        logger.info("Updated shades of entry %s", entry.id)
        return Result.success("Shades updated successfully", entry)

    def split_part(self, source: DesignEntry) -> Result:
        """
        Create a part order next to `source`: same order, design, price and
        remark, a fresh default ledger and part=True. `source` is untouched.
        """
        return self.create_entry(
            order_id=source.order_id,
            design=source.design,
            price=source.price,
            remark=source.remark,
            shades=ShadeLedger.create_default(),
            part=True,
        )

    # ------------------------------------------------------------------
    # Bhiwandi staging
    # ------------------------------------------------------------------

    def stage_for_transfer(self, entry: DesignEntry) -> Result:
        if entry.state not in STAGEABLE_STATES:
            return self._reject(ValidationError(
                f"Entry {entry.id} is {entry.state.value} and cannot be sent to Bhiwandi"
            ))

        when = self.clock()
        ok, msg, _ = self.store.update_entry(entry.id, {"bhiwandi_date": format_timestamp(when)})
        if not ok:
            return self._store_failed("Stage entry", msg)

        entry.bhiwandi_date = when
        logger.info("Entry %s sent to Bhiwandi at %s", entry.id, when)
        return Result.success("Sent to Bhiwandi", entry)

    def stage_many(self, entries: Iterable[DesignEntry]) -> Result:
        entries = list(entries)
        if not entries:
            return self._reject(ValidationError("No entries to send to Bhiwandi"))

        blocked = [e.id for e in entries if e.state not in STAGEABLE_STATES]
        if blocked:
            return self._reject(ValidationError(f"Entries {blocked} cannot be sent to Bhiwandi"))

        when = self.clock()
        ok, msg, _ = self.store.bulk_update([e.id for e in entries], {"bhiwandi_date": format_timestamp(when)})
        if not ok:
            return self._store_failed("Stage entries", msg)

        for entry in entries:
            entry.bhiwandi_date = when
        logger.info("Sent %d entries to Bhiwandi at %s", len(entries), when)
        return Result.success(f"Sent {len(entries)} entries to Bhiwandi", when)

    def stage_drawer(self, context: WorkflowContext) -> Result:
        result = self.stage_many(item.entry for item in context.bhiwandi_drawer)
        if result.ok:
            context.bhiwandi_drawer = []
        return result

    def prepare_unstage(self, entry: DesignEntry) -> PendingAction:
        def run() -> Result:
            if entry.state != EntryState.STAGED:
                return self._reject(ValidationError(f"Entry {entry.id} is not staged for Bhiwandi"))

            ok, msg, _ = self.store.update_entry(entry.id, {"bhiwandi_date": None})
            if not ok:
                return self._store_failed("Remove from Bhiwandi", msg)

            entry.bhiwandi_date = None
            logger.info("Entry %s removed from Bhiwandi", entry.id)
            return Result.success("Removed from Bhiwandi", entry)

        return self._pending(
            "unstage",
            f"Remove {entry.design} (entry {entry.id}) from Bhiwandi",
            [entry.id],
            run,
        )

    def combine_batches(self, batch_timestamps: Iterable[Any]) -> Result:
        """
        Merge several Bhiwandi batches into one: every entry whose
        bhiwandi_date is one of `batch_timestamps` moves to a single new
        timestamp in one bulk write.
        """
        distinct = {parse_timestamp(ts) for ts in batch_timestamps if ts is not None}
        if len(distinct) < 2:
            return self._reject(ConflictError("Select at least two different Bhiwandi batches to combine"))

        when = self.clock()
        ok, msg, rows = self.store.update_where_in(
            "bhiwandi_date",
            [format_timestamp(ts) for ts in sorted(distinct)],
            {"bhiwandi_date": format_timestamp(when)},
        )
        if not ok:
            return self._store_failed("Combine batches", msg)

        logger.info("Combined %d Bhiwandi batches into %s (%d entries)", len(distinct), when, len(rows or []))
        return Result.success(f"Combined {len(distinct)} batches", when)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, entry_ids: Iterable[Any]) -> Result:
        """
        Stamp dispatch_date on every id in one bulk write. Works on ids only,
        so the entries need not be staged and their state is not checked: an
        id of a cancelled entry gets its dispatch_date overwritten.
        """
        ids = list(dict.fromkeys(entry_ids))
        if not ids:
            return self._reject(ValidationError("No entries selected for dispatch"))

        when = self.clock()
        ok, msg, _ = self.store.bulk_update(ids, {"dispatch_date": format_timestamp(when)})
        if not ok:
            return self._store_failed("Dispatch", msg)

        logger.info("Dispatched %d entries at %s", len(ids), when)
        return Result.success(f"Dispatched {len(ids)} entries", when)

    def dispatch_selection(self, context: WorkflowContext) -> Result:
        """Dispatch the drawer, each entry on the date picked for it."""
        if not context.dispatch_drawer:
            return self._reject(ValidationError("No entries selected for dispatch"))

        updates = [
            {"id": item.entry.id, "dispatch_date": item.date.isoformat()}
            for item in context.dispatch_drawer
        ]
        ok, msg, _ = self.store.dispatch_dates(updates)
        if not ok:
            return self._store_failed("Dispatch", msg)

        for item in context.dispatch_drawer:
            item.entry.dispatch_date = parse_timestamp(item.date)
        count = len(updates)
        context.dispatch_drawer = []
        logger.info("Dispatched %d drawer entries", count)
        return Result.success(f"Dispatched {count} entries")

    def un_dispatch(self, entry: DesignEntry) -> Result:
        if entry.state == EntryState.CANCELLED:
            return self._reject(ValidationError(f"Entry {entry.id} is cancelled and cannot be un-dispatched"))
        if entry.dispatch_date is None:
            return self._reject(ValidationError(f"Entry {entry.id} has not been dispatched"))

        ok, msg, _ = self.store.update_entry(entry.id, {"dispatch_date": None})
        if not ok:
            return self._store_failed("Undo dispatch", msg)

        entry.dispatch_date = None
        logger.info("Dispatch of entry %s reversed", entry.id)
        return Result.success("Dispatch reversed", entry)

    # ------------------------------------------------------------------
    # Cancellation / deletion
    # ------------------------------------------------------------------

    def prepare_cancel(self, entry: DesignEntry) -> PendingAction:
        """Entry-level cancel used from list views: overwrites both dates and the remark."""
        def run() -> Result:
            if entry.state == EntryState.CANCELLED:
                return self._reject(ValidationError(f"Entry {entry.id} is already cancelled"))

            when = self.clock()
            values = {
                "bhiwandi_date": format_timestamp(when),
                "dispatch_date": format_timestamp(when),
                "remark": CANCELLED_REMARK,
            }
            ok, msg, _ = self.store.update_entry(entry.id, values)
            if not ok:
                return self._store_failed("Cancel entry", msg)

            entry.bhiwandi_date = when
            entry.dispatch_date = when
            entry.remark = CANCELLED_REMARK
            logger.info("Entry %s cancelled", entry.id)
            return Result.success("Entry cancelled successfully.", entry)

        order_no = f" with order number {entry.order_no}" if entry.order_no is not None else ""
        party = f" from {entry.party_name}" if entry.party_name else ""
        return self._pending("cancel_entry", f"Cancel the entry for {entry.design}{party}{order_no}", [entry.id], run)

    def prepare_cancel_order(self, order_id: Any) -> PendingAction:
        def run() -> Result:
            return self._set_order_canceled(order_id, True)

        return self._pending("cancel_order", f"Cancel order {order_id} and all its designs", [], run)

    def restore_order(self, order_id: Any) -> Result:
        return self._set_order_canceled(order_id, False)

    def _set_order_canceled(self, order_id: Any, canceled: bool) -> Result:
        ok, msg, row = self.store.update_order(order_id, {"canceled": canceled})
        if not ok:
            return self._store_failed("Update order", msg)

        logger.info("Order %s canceled=%s", order_id, canceled)
        return Result.success("Order cancelled" if canceled else "Order restored", row)

    def prepare_delete(self, entry: DesignEntry) -> PendingAction:
        def run() -> Result:
            ok, msg, _ = self.store.delete_entry(entry.id)
            if not ok:
                return self._store_failed("Delete entry", msg)

            logger.info("Entry %s deleted", entry.id)
            return Result.success("Entry deleted", entry.id)

        return self._pending("delete_entry", f"Delete {entry.design} (entry {entry.id})", [entry.id], run)
