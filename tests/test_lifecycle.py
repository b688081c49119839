# tests/test_lifecycle.py
from datetime import date, datetime

import pytest

from domain.models import CANCELLED_REMARK, DesignEntry, EntryState
from domain.shade_ledger import ALL_COLOURS, ShadeLedger
from services.lifecycle import LifecycleManager
from services.workflow import WorkflowContext
from utils.dates import IST

T1 = datetime(2024, 3, 1, 9, 0, tzinfo=IST)
T2 = datetime(2024, 3, 2, 9, 0, tzinfo=IST)
T3 = datetime(2024, 3, 3, 9, 0, tzinfo=IST)


@pytest.fixture
def manager(store, fixed_now):
    return LifecycleManager(store, clock=lambda: fixed_now)


def load(store, entry_id):
    return DesignEntry.from_row(store.entries[entry_id])


def test_create_entry_requires_price(manager, store):
    ok, msg, data = manager.create_entry(order_id=1, design="PR-1020", price=" ")
    assert not ok
    assert "price" in msg
    assert store.entries == {}


def test_create_entry_persists_default_ledger(manager, store):
    result = manager.create_entry(order_id=1, design="PR-1020", price="120")
    assert result.ok
    row = store.entries[result.data.id]
    assert row["design"] == "PR-1020"
    assert row["shades"][0] == {ALL_COLOURS: ""}
    assert len(row["shades"]) == 31


def test_stage_and_unstage(manager, store, fixed_now):
    entry = load(store, store.add_entry(design="A"))

    result = manager.stage_for_transfer(entry)
    assert result.ok
    assert entry.state == EntryState.STAGED
    assert store.entries[entry.id]["bhiwandi_date"] == fixed_now.isoformat()

    again = manager.stage_for_transfer(entry)
    assert not again.ok and again.error == "validation"

    pending = manager.prepare_unstage(entry)
    assert store.entries[entry.id]["bhiwandi_date"] is not None
    assert manager.confirm(pending).ok
    assert store.entries[entry.id]["bhiwandi_date"] is None
    assert not manager.confirm(pending).ok


def test_unstage_requires_staged(manager, store):
    entry = load(store, store.add_entry(design="A"))
    result = manager.confirm(manager.prepare_unstage(entry))
    assert not result.ok
    assert result.error == "validation"


def test_combine_batches_moves_only_selected(manager, store, fixed_now):
    a = store.add_entry(design="A", bhiwandi_date=T1.isoformat())
    b = store.add_entry(design="B", bhiwandi_date=T2.isoformat())
    c = store.add_entry(design="C", bhiwandi_date=T3.isoformat())

    result = manager.combine_batches({T1, T2})

    assert result.ok
    assert result.data == fixed_now
    assert store.entries[a]["bhiwandi_date"] == fixed_now.isoformat()
    assert store.entries[b]["bhiwandi_date"] == fixed_now.isoformat()
    assert store.entries[c]["bhiwandi_date"] == T3.isoformat()


def test_combine_batches_needs_two_distinct(manager, store):
    store.add_entry(design="A", bhiwandi_date=T1.isoformat())
    result = manager.combine_batches([T1, T1.isoformat()])
    assert not result.ok
    assert result.error == "conflict"
    assert store.writes == 0


def test_dispatch_is_all_or_nothing(manager, store, fixed_now):
    a = store.add_entry(design="A")
    b = store.add_entry(design="B", bhiwandi_date=T1.isoformat())

    store.fail_with = "connection reset"
    failed = manager.dispatch([a, b])
    assert not failed.ok
    assert failed.error == "persistence"
    assert failed.message == "connection reset"
    assert store.entries[a]["dispatch_date"] is None
    assert store.entries[b]["dispatch_date"] is None

    store.fail_with = None
    assert manager.dispatch([a, b]).ok
    assert store.entries[a]["dispatch_date"] == fixed_now.isoformat()
    assert store.entries[b]["dispatch_date"] == fixed_now.isoformat()


def test_un_dispatch(manager, store):
    entry = load(store, store.add_entry(design="A", dispatch_date=T1.isoformat()))
    assert entry.state == EntryState.DISPATCHED
    assert manager.un_dispatch(entry).ok
    assert store.entries[entry.id]["dispatch_date"] is None
    assert not manager.un_dispatch(entry).ok


def test_cancelled_entry_cannot_be_un_dispatched(manager, store):
    entry = load(store, store.add_entry(design="A"))
    assert manager.confirm(manager.prepare_cancel(entry)).ok
    writes = store.writes

    result = manager.un_dispatch(entry)

    assert not result.ok
    assert result.error == "validation"
    assert entry.state == EntryState.CANCELLED
    assert store.writes == writes
    assert load(store, entry.id).state == EntryState.CANCELLED


def test_dispatch_by_id_does_not_check_state(manager, store, fixed_now):
    entry_id = store.add_entry(design="A", remark=CANCELLED_REMARK,
                               bhiwandi_date=T1.isoformat(), dispatch_date=T1.isoformat())
    assert manager.dispatch([entry_id]).ok
    assert store.entries[entry_id]["dispatch_date"] == fixed_now.isoformat()
    assert load(store, entry_id).state == EntryState.CANCELLED


def test_split_part_copies_order_design_price_remark(manager, store):
    shades = [{ALL_COLOURS: ""}, {"1": "80"}]
    source = load(store, store.add_entry(order_id=7, design="PR-1020", price="120", remark="urgent", shades=shades))

    result = manager.split_part(source)

    assert result.ok
    part = result.data
    assert part.id != source.id
    assert (part.order_id, part.design, part.price, part.remark) == (7, "PR-1020", "120", "urgent")
    assert part.part and part.state == EntryState.PART_ORDERED
    assert part.shades == ShadeLedger.create_default()
    assert store.entries[source.id]["shades"] == shades


def test_cancel_entry_needs_confirmation(manager, store, fixed_now):
    entry = load(store, store.add_entry(design="A", remark="keep"))

    pending = manager.prepare_cancel(entry)
    assert store.entries[entry.id]["remark"] == "keep"

    assert manager.confirm(pending).ok
    row = store.entries[entry.id]
    assert row["remark"] == CANCELLED_REMARK
    assert row["bhiwandi_date"] == row["dispatch_date"] == fixed_now.isoformat()
    assert entry.state == EntryState.CANCELLED


def test_cancel_and_restore_order(manager, store):
    store.orders[3] = {"id": 3, "canceled": False}
    assert manager.confirm(manager.prepare_cancel_order(3)).ok
    assert store.orders[3]["canceled"] is True
    assert manager.restore_order(3).ok
    assert store.orders[3]["canceled"] is False


def test_delete_entry(manager, store):
    entry = load(store, store.add_entry(design="A"))
    pending = manager.prepare_delete(entry)
    assert entry.id in store.entries
    assert manager.confirm(pending).ok
    assert entry.id not in store.entries


def test_drawer_dispatch_uses_each_date(manager, store):
    a = load(store, store.add_entry(design="A"))
    b = load(store, store.add_entry(design="B"))
    context = WorkflowContext()
    context.add_to_dispatch(a)
    context.add_to_dispatch(b)
    context.set_drawer_date(b.id, date(2024, 1, 2))

    result = manager.dispatch_selection(context)

    assert result.ok
    assert store.entries[b.id]["dispatch_date"] == "2024-01-02"
    assert context.dispatch_drawer == []


def test_bhiwandi_drawer_rejects_dispatched(manager, store):
    a = load(store, store.add_entry(design="A"))
    b = load(store, store.add_entry(design="B", dispatch_date=T1.isoformat()))
    context = WorkflowContext()
    context.add_to_bhiwandi(a)
    context.add_to_bhiwandi(b)

    result = manager.stage_drawer(context)

    assert not result.ok
    assert store.entries[a.id]["bhiwandi_date"] is None
    assert len(context.bhiwandi_drawer) == 2


def test_update_shades_failure_keeps_local_entry(manager, store):
    entry = load(store, store.add_entry(design="A", shades=[{"1": "10"}]))
    edited = entry.shades.copy()
    edited.set_quantity("1", "90")

    store.fail_with = "timeout"
    assert not manager.update_shades(entry, edited).ok
    assert entry.shades.get("1") == "10"
