from typing import Any, Dict, Iterable, List, Optional, Tuple

from supabase import Client

from supabase_client import get_client, get_schema

StoreResult = Tuple[bool, str, Any]

ENTRIES_TABLE = "design_entries"
ORDERS_TABLE = "orders"
DESIGNS_TABLE = "designs"


class OrderStore:
    """
    Persistence collaborator for the order book.

    Every method returns (ok, message, data). Failures are never raised:
    the message carries the underlying error text as-is.

    Bulk writes are issued as one statement (`update ... in (...)`) or one
    database function, so they either apply to every row or to none.
    """

    def __init__(self, client: Optional[Client] = None, schema: Optional[str] = None):
        self._client = client
        self.schema = schema or get_schema()

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    def _table(self, name: str):
        return self.client.schema(self.schema).table(name)

    def _rpc(self, fn: str, params: Optional[Dict[str, Any]] = None) -> StoreResult:
        try:
            resp = self.client.schema(self.schema).rpc(fn, params or {}).execute()

            if getattr(resp, "error", None):
                return False, f"{fn} failed: {resp.error}", []

            return True, "Fetched", resp.data or []

        except Exception as e:
            return False, str(e), []

    # ------------------------------------------------------------------
    # Row-level CRUD
    # ------------------------------------------------------------------

    def insert_entry(self, row: Dict[str, Any]) -> StoreResult:
        try:
            resp = self._table(ENTRIES_TABLE).insert(row).execute()

            if getattr(resp, "error", None):
                return False, f"Insert failed: {resp.error}", None

            inserted = resp.data[0] if resp.data else None
            return True, "Inserted", inserted

        except Exception as e:
            return False, str(e), None

    def update_entry(self, entry_id: Any, values: Dict[str, Any]) -> StoreResult:
        try:
            resp = self._table(ENTRIES_TABLE).update(values).eq("id", entry_id).execute()

            if getattr(resp, "error", None):
                return False, f"Update failed: {resp.error}", None

            updated = resp.data[0] if resp.data else None
            return True, "Updated", updated

        except Exception as e:
            return False, str(e), None

    def delete_entry(self, entry_id: Any) -> StoreResult:
        try:
            resp = self._table(ENTRIES_TABLE).delete().eq("id", entry_id).execute()

            if getattr(resp, "error", None):
                return False, f"Delete failed: {resp.error}", None

            return True, "Deleted", resp.data

        except Exception as e:
            return False, str(e), None

    def bulk_update(self, entry_ids: Iterable[Any], values: Dict[str, Any]) -> StoreResult:
        """Apply `values` to every entry in `entry_ids` in one statement."""
        return self.update_where_in("id", list(entry_ids), values)

    def update_where_in(self, column: str, matches: List[Any], values: Dict[str, Any]) -> StoreResult:
        try:
            resp = (
                self._table(ENTRIES_TABLE)
                .update(values)
                .in_(column, matches)
                .execute()
            )

            if getattr(resp, "error", None):
                return False, f"Bulk update failed: {resp.error}", []

            return True, f"Updated {len(resp.data or [])} rows", resp.data or []

        except Exception as e:
            return False, str(e), []

    def update_order(self, order_id: Any, values: Dict[str, Any]) -> StoreResult:
        try:
            resp = self._table(ORDERS_TABLE).update(values).eq("id", order_id).execute()

            if getattr(resp, "error", None):
                return False, f"Update order failed: {resp.error}", None

            if not resp.data:
                return False, f"Order {order_id} not found", None

            return True, "Updated", resp.data[0]

        except Exception as e:
            return False, str(e), None

    def fetch_total_shades(self, design: str) -> StoreResult:
        """Configured number of numeric shades for a design (designs.total_shades)."""
        try:
            resp = (
                self._table(DESIGNS_TABLE)
                .select("total_shades")
                .eq("title", design)
                .limit(1)
                .execute()
            )

            if getattr(resp, "error", None):
                return False, f"Fetch design failed: {resp.error}", None

            if not resp.data:
                return True, "Design not found", None

            return True, "Fetched", resp.data[0].get("total_shades")

        except Exception as e:
            return False, str(e), None

    # ------------------------------------------------------------------
    # Database functions
    # ------------------------------------------------------------------

    def dispatch_dates(self, dispatch_info: List[Dict[str, Any]]) -> StoreResult:
        """
        Set a per-entry dispatch_date in one transaction.
        dispatch_info: [{"id": ..., "dispatch_date": "YYYY-MM-DD"}, ...]
        """
        return self._rpc("update_design_entries_dispatch_date", {"dispatch_info": dispatch_info})

    def design_entry_counts(self) -> StoreResult:
        return self._rpc("get_design_entry_count")

    def party_design_entry_counts(self) -> StoreResult:
        return self._rpc("get_party_design_entry_count")

    def designs_by_party(self, party_name: str) -> StoreResult:
        return self._rpc("get_designs_by_party", {"party_name_input": party_name})

    def orders_by_design(self, design: str) -> StoreResult:
        return self._rpc("get_orders_by_design", {"design_input": design})

    def latest_prices_by_party(self, party_id: Any) -> StoreResult:
        return self._rpc("get_latest_design_prices_by_party", {"partyid": party_id})

    def bhiwandi_date_counts(self) -> StoreResult:
        return self._rpc("get_bhiwandi_date_counts")
