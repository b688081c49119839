# tests/conftest.py
from datetime import datetime
from itertools import count

import pytest

from utils.dates import IST


class FakeStore:
    """
    In-memory stand-in for data_integrator.OrderStore: same method names,
    same (ok, message, data) triples.

    Set `fail_with` to make every write fail with that message without
    touching any row.
    """

    def __init__(self):
        self.entries = {}
        self.orders = {}
        self.rpc_rows = {}
        self.fail_with = None
        self.writes = 0
        self.calls = []
        self._ids = count(1)

    # helpers for tests
    def add_entry(self, **row):
        entry_id = row.pop("id", None) or next(self._ids)
        base = {
            "id": entry_id,
            "order_id": 1,
            "design": "",
            "price": "",
            "remark": "",
            "part": False,
            "bhiwandi_date": None,
            "dispatch_date": None,
            "shades": [],
        }
        base.update(row)
        self.entries[entry_id] = base
        return entry_id

    def _write_failed(self):
        if self.fail_with:
            return True
        self.writes += 1
        return False

    # row-level
    def insert_entry(self, row):
        if self._write_failed():
            return False, self.fail_with, None
        entry_id = self.add_entry(**dict(row))
        return True, "Inserted", self.entries[entry_id]

    def update_entry(self, entry_id, values):
        if self._write_failed():
            return False, self.fail_with, None
        if entry_id not in self.entries:
            return True, "Updated", None
        self.entries[entry_id].update(values)
        return True, "Updated", self.entries[entry_id]

    def delete_entry(self, entry_id):
        if self._write_failed():
            return False, self.fail_with, None
        removed = self.entries.pop(entry_id, None)
        return True, "Deleted", [removed] if removed else []

    def bulk_update(self, entry_ids, values):
        return self.update_where_in("id", list(entry_ids), values)

    def update_where_in(self, column, matches, values):
        if self._write_failed():
            return False, self.fail_with, []
        touched = [row for row in self.entries.values() if row.get(column) in matches]
        for row in touched:
            row.update(values)
        return True, f"Updated {len(touched)} rows", touched

    def update_order(self, order_id, values):
        if self._write_failed():
            return False, self.fail_with, None
        if order_id not in self.orders:
            return False, f"Order {order_id} not found", None
        self.orders[order_id].update(values)
        return True, "Updated", self.orders[order_id]

    def fetch_total_shades(self, design):
        return True, "Fetched", self.rpc_rows.get(("total_shades", design))

    # database functions
    def dispatch_dates(self, dispatch_info):
        if self._write_failed():
            return False, self.fail_with, []
        for item in dispatch_info:
            self.entries[item["id"]]["dispatch_date"] = item["dispatch_date"]
        return True, "Fetched", []

    def _rows(self, key):
        if isinstance(self.rpc_rows.get(key), Exception):
            return False, str(self.rpc_rows[key]), []
        return True, "Fetched", self.rpc_rows.get(key, [])

    def design_entry_counts(self):
        return self._rows("get_design_entry_count")

    def party_design_entry_counts(self):
        return self._rows("get_party_design_entry_count")

    def designs_by_party(self, party_name):
        self.calls.append(("designs_by_party", party_name))
        return self._rows(("get_designs_by_party", party_name))

    def orders_by_design(self, design):
        return self._rows(("get_orders_by_design", design))

    def latest_prices_by_party(self, party_id):
        self.calls.append(("latest_prices_by_party", party_id))
        return self._rows(("get_latest_design_prices_by_party", party_id))

    def bhiwandi_date_counts(self):
        return self._rows("get_bhiwandi_date_counts")


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 5, 10, 30, tzinfo=IST)
