# orderbook/services/workflow.py
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from domain.models import DesignEntry

DEFAULT_COLOUR_COUNT = 2


@dataclass
class DrawerItem:
    entry: DesignEntry
    date: date


@dataclass
class WorkflowContext:
    """
    Everything one interactive session has picked but not yet committed:
    the design being edited, the dispatch and Bhiwandi drawers, and the
    program list with its per-design colour counts.
    """
    selected_design: Optional[str] = None
    dispatch_drawer: List[DrawerItem] = field(default_factory=list)
    bhiwandi_drawer: List[DrawerItem] = field(default_factory=list)
    program_entries: List[DesignEntry] = field(default_factory=list)
    colour_counts: Dict[str, int] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Drawers
    # ------------------------------------------------------------------

    @staticmethod
    def _next_date(drawer: List[DrawerItem]) -> date:
        # a new line repeats the date picked for the previous one
        return drawer[-1].date if drawer else date.today()

    @staticmethod
    def _add(drawer: List[DrawerItem], entry: DesignEntry) -> bool:
        if any(item.entry.id == entry.id for item in drawer):
            return False
        drawer.append(DrawerItem(entry=entry, date=WorkflowContext._next_date(drawer)))
        return True

    @staticmethod
    def _remove(drawer: List[DrawerItem], entry_id: Any) -> List[DrawerItem]:
        return [item for item in drawer if item.entry.id != entry_id]

    def add_to_dispatch(self, entry: DesignEntry) -> bool:
        return self._add(self.dispatch_drawer, entry)

    def remove_from_dispatch(self, entry_id: Any) -> None:
        self.dispatch_drawer = self._remove(self.dispatch_drawer, entry_id)

    def add_to_bhiwandi(self, entry: DesignEntry) -> bool:
        return self._add(self.bhiwandi_drawer, entry)

    def remove_from_bhiwandi(self, entry_id: Any) -> None:
        self.bhiwandi_drawer = self._remove(self.bhiwandi_drawer, entry_id)

    def set_drawer_date(self, entry_id: Any, when: date) -> None:
        for item in self.dispatch_drawer + self.bhiwandi_drawer:
            if item.entry.id == entry_id:
                item.date = when

    # ------------------------------------------------------------------
    # Program list
    # ------------------------------------------------------------------

    def add_to_program(self, entry: DesignEntry) -> bool:
        if any(e.id == entry.id for e in self.program_entries):
            return False
        self.program_entries.append(entry)
        self.colour_counts.setdefault(entry.design, DEFAULT_COLOUR_COUNT)
        return True

    def remove_from_program(self, entry_id: Any) -> None:
        self.program_entries = [e for e in self.program_entries if e.id != entry_id]

    def colour_count(self, design: str) -> int:
        return self.colour_counts.get(design, DEFAULT_COLOUR_COUNT)

    def set_colour_count(self, design: str, count: int) -> None:
        self.colour_counts[design] = max(int(count), 0)
