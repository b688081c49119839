# orderbook/services/reports.py
import re
from typing import Dict, Iterable, List, Optional

import pandas as pd

from domain.models import DesignCount, DesignEntry, ProgramGroup
from services.aggregation import program_total_taka

GAP_PREFIX = "Shade "

_DIGITS_RE = re.compile(r"[^0-9]")


def _shade_number(name: str) -> Optional[int]:
    digits = _DIGITS_RE.sub("", name)
    return int(digits) if digits else None


def _to_float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def shade_sequence(entries: Iterable[DesignEntry]) -> List[str]:
    """
    Every shade used by the entries, numbered shades first with the gaps
    between the lowest and highest number filled by "Shade <n>"
    placeholders, then shades without any digits.
    """
    used = set()
    for entry in entries:
        for name, qty in entry.shades.items():
            if qty != "":
                used.add(name)

    numbered: Dict[int, str] = {}
    for name in sorted(used, key=lambda n: (_shade_number(n) or 0, n)):
        number = _shade_number(name)
        if number is not None:
            numbered.setdefault(number, name)
    plain = sorted(n for n in used if _shade_number(n) is None)

    sequence = []
    if numbered:
        for i in range(min(numbered), max(numbered) + 1):
            sequence.append(numbered.get(i, f"{GAP_PREFIX}{i}"))
    return sequence + plain


def _column_labels(entries: List[DesignEntry]) -> List[str]:
    single_design = len({e.design for e in entries}) == 1
    labels, seen = [], {}
    for entry in entries:
        label = entry.party_name or str(entry.id)
        if not single_design:
            label = f"{label} ({entry.design})"
        seen[label] = seen.get(label, 0) + 1
        if seen[label] > 1:
            label = f"{label} [{seen[label]}]"
        labels.append(label)
    return labels


def shade_wise_report(entries: Iterable[DesignEntry]) -> pd.DataFrame:
    """
    Shade x entry table of metres with a Total column and a Total row.
    Gap rows ("Shade <n>") are left empty.
    """
    entries = list(entries)
    sequence = shade_sequence(entries)
    labels = _column_labels(entries)

    data = {}
    for label, entry in zip(labels, entries):
        values = dict(entry.shades.items())
        data[label] = [
            None if name.startswith(GAP_PREFIX) and name not in values else _to_float(values.get(name, ""))
            for name in sequence
        ]

    frame = pd.DataFrame(data, index=pd.Index(sequence, name="Shade"), columns=labels, dtype="float64")
    frame["Total"] = frame.sum(axis=1, min_count=1)
    frame.loc["Total"] = frame.sum(axis=0)
    return frame


def design_counts_frame(counts: Iterable[DesignCount]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Design": c.design, "Entries": c.count, "Part": "Yes" if c.has_part else ""} for c in counts],
        columns=["Design", "Entries", "Part"],
    )


def program_frame(groups: Iterable[ProgramGroup]) -> pd.DataFrame:
    groups = list(groups)
    frame = pd.DataFrame(
        [
            {
                "Design": g.design,
                "Parties": ", ".join(g.party_names),
                "Meters": g.total_meters,
                "Taka": g.taka,
                "Lump Set": f"{g.lump_set} lumps X {g.colour_count} colours",
            }
            for g in groups
        ],
        columns=["Design", "Parties", "Meters", "Taka", "Lump Set"],
    )
    frame.attrs["total_taka"] = program_total_taka(groups)
    return frame


def to_csv(frame: pd.DataFrame, index: bool = False) -> bytes:
    return frame.to_csv(index=index).encode("utf-8")
