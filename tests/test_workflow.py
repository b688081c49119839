# tests/test_workflow.py
from datetime import date

from domain.models import DesignEntry
from services.aggregation import group_program
from services.workflow import WorkflowContext


def entry(entry_id, design="PR-1020"):
    return DesignEntry(id=entry_id, order_id=1, design=design)


def test_drawer_entries_inherit_previous_date():
    context = WorkflowContext()
    context.add_to_dispatch(entry(1))
    context.set_drawer_date(1, date(2024, 1, 9))
    context.add_to_dispatch(entry(2))

    assert [item.date for item in context.dispatch_drawer] == [date(2024, 1, 9)] * 2
    assert context.add_to_dispatch(entry(2)) is False

    context.remove_from_dispatch(1)
    assert [item.entry.id for item in context.dispatch_drawer] == [2]


def test_first_drawer_entry_is_dated_today():
    context = WorkflowContext()
    context.add_to_bhiwandi(entry(1))
    assert context.bhiwandi_drawer[0].date == date.today()
    context.remove_from_bhiwandi(1)
    assert context.bhiwandi_drawer == []


def test_program_colour_counts_feed_grouping():
    context = WorkflowContext()
    context.add_to_program(entry(1))
    context.add_to_program(entry(2, "D-4"))
    assert context.colour_count("PR-1020") == 2

    context.set_colour_count("D-4", 5)
    groups = group_program(context.program_entries, context.colour_counts)
    assert [g.colour_count for g in groups] == [2, 5]

    context.remove_from_program(2)
    assert [e.id for e in context.program_entries] == [1]
