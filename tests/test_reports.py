# tests/test_reports.py
import math

from domain.models import DesignCount, DesignEntry, ProgramGroup
from domain.shade_ledger import ShadeLedger
from services.reports import (
    design_counts_frame,
    program_frame,
    shade_sequence,
    shade_wise_report,
    to_csv,
)


def entry(entry_id, party, shades, design="PR-1020"):
    return DesignEntry(id=entry_id, order_id=1, design=design, party_name=party, shades=ShadeLedger(shades))


def test_shade_sequence_fills_gaps_and_puts_plain_names_last():
    entries = [
        entry(1, "Asha", [("1", "10"), ("4", "5"), ("NAVY", "3"), ("2", "")]),
        entry(2, "Bharat", [("3A", "7")]),
    ]
    assert shade_sequence(entries) == ["1", "Shade 2", "3A", "4", "NAVY"]


def test_shade_wise_report_totals():
    entries = [
        entry(1, "Asha", [("1", "10"), ("3", "5")]),
        entry(2, "Bharat", [("1", "20")]),
    ]
    frame = shade_wise_report(entries)

    assert list(frame.columns) == ["Asha", "Bharat", "Total"]
    assert list(frame.index) == ["1", "Shade 2", "3", "Total"]
    assert frame.loc["1", "Total"] == 30
    assert math.isnan(frame.loc["Shade 2", "Asha"])
    assert frame.loc["3", "Bharat"] == 0
    assert frame.loc["Total", "Asha"] == 15
    assert frame.loc["Total", "Total"] == 35


def test_multi_design_columns_name_the_design():
    entries = [
        entry(1, "Asha", [("1", "10")]),
        entry(2, "Asha", [("1", "10")], design="D-4"),
    ]
    frame = shade_wise_report(entries)
    assert list(frame.columns)[:2] == ["Asha (PR-1020)", "Asha (D-4)"]


def test_csv_exports():
    counts = [DesignCount("LINEN", 3, True), DesignCount("20", 1)]
    csv = to_csv(design_counts_frame(counts)).decode("utf-8")
    assert csv.splitlines()[0] == "Design,Entries,Part"
    assert csv.splitlines()[1] == "LINEN,3,Yes"

    frame = program_frame([ProgramGroup("PR-1020", ["Asha", "Bharat"], 130.0, 2, 1, 2)])
    assert frame.loc[0, "Lump Set"] == "1 lumps X 2 colours"
    assert frame.attrs["total_taka"] == 2
