# orderbook/domain/models.py

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from domain.errors import OrderBookError
from domain.shade_ledger import ShadeLedger

CANCELLED_REMARK = "Entry Cancelled"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept datetimes or ISO strings as returned by PostgREST."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    # PostgREST trims trailing zeros of the fraction ("05:00:00.12345+00:00")
    return pd.Timestamp(str(value)).to_pydatetime()


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class EntryState(str, Enum):
    ORDERED = "ordered"
    PART_ORDERED = "part_ordered"
    STAGED = "staged"
    DISPATCHED = "dispatched"
    CANCELLED = "cancelled"


@dataclass
class Order:
    id: Any
    order_no: int
    date: Optional[datetime] = None
    bill_to_id: Any = None
    bill_to_name: str = ""
    ship_to_id: Any = None
    ship_to_name: str = ""
    broker: str = ""
    transport: str = ""
    remark: str = ""
    canceled: bool = False

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Order":
        return cls(
            id=row["id"],
            order_no=int(row.get("order_no") or 0),
            date=parse_timestamp(row.get("date")),
            bill_to_id=row.get("bill_to_id"),
            bill_to_name=row.get("bill_to_name") or "",
            ship_to_id=row.get("ship_to_id"),
            ship_to_name=row.get("ship_to_name") or "",
            broker=row.get("broker") or "",
            transport=row.get("transport") or "",
            remark=row.get("remark") or "",
            canceled=bool(row.get("canceled")),
        )


@dataclass
class DesignEntry:
    """
    One line of an order.

    The order_* and party_name fields are only filled on read models that
    come from joined queries; they are never written back.
    """
    id: Any
    order_id: Any
    design: str
    price: str = ""
    remark: str = ""
    part: bool = False
    bhiwandi_date: Optional[datetime] = None
    dispatch_date: Optional[datetime] = None
    shades: ShadeLedger = field(default_factory=ShadeLedger.create_default)

    party_name: str = ""
    order_no: Optional[int] = None
    order_date: Optional[datetime] = None
    order_canceled: bool = False

    @property
    def state(self) -> EntryState:
        if self.remark == CANCELLED_REMARK and self.bhiwandi_date and self.dispatch_date:
            return EntryState.CANCELLED
        if self.dispatch_date is not None:
            return EntryState.DISPATCHED
        if self.bhiwandi_date is not None:
            return EntryState.STAGED
        if self.part:
            return EntryState.PART_ORDERED
        return EntryState.ORDERED

    @property
    def is_active(self) -> bool:
        return not self.order_canceled

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DesignEntry":
        """
        Build an entry from a design_entries row or one of the report RPC
        rows (which name some columns differently).
        """
        order = row.get("orders") or {}
        return cls(
            id=row.get("id", row.get("design_entry_id")),
            order_id=row.get("order_id"),
            design=row.get("design") or row.get("design_name") or "",
            price="" if row.get("price") is None else str(row["price"]),
            remark=row.get("remark") or row.get("entry_remark") or "",
            part=bool(row.get("part")),
            bhiwandi_date=parse_timestamp(row.get("bhiwandi_date")),
            dispatch_date=parse_timestamp(row.get("dispatch_date")),
            shades=ShadeLedger.from_wire(row.get("shades")),
            party_name=row.get("party_name") or "",
            order_no=row.get("order_no", order.get("order_no")),
            order_date=parse_timestamp(row.get("order_date")),
            order_canceled=bool(row.get("canceled", order.get("canceled", False))),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "design": self.design,
            "price": self.price,
            "remark": self.remark,
            "part": self.part,
            "bhiwandi_date": format_timestamp(self.bhiwandi_date),
            "dispatch_date": format_timestamp(self.dispatch_date),
            "shades": self.shades.to_wire(),
        }


@dataclass
class DesignCount:
    design: str
    count: int
    has_part: bool = False


@dataclass
class PartyCount:
    party_name: str
    design_entry_count: int


@dataclass
class BatchCount:
    bhiwandi_date: datetime
    count: int


@dataclass
class ProgramGroup:
    """One design row of the dyeing "program" report."""
    design: str
    party_names: List[str]
    total_meters: float
    colour_count: int
    lump_set: int
    taka: int


@dataclass
class ChallanLine:
    design: str
    meters: float
    pieces: float
    price: float


@dataclass
class Challan:
    challan_no: int
    date: date
    bill_to: str
    ship_to: str
    broker: str
    transport: str
    lines: List[ChallanLine]
    discount: float = 0.0
    remark: str = ""


@dataclass
class GoodsReceipt:
    meters_received: float
    taka_received: Optional[float] = None
    received_on: Optional[date] = None


@dataclass
class DyeingProgram:
    design: str
    total_meters: float
    total_takas: int
    receipts: List[GoodsReceipt] = field(default_factory=list)
    shades_details: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class Result:
    """
    Outcome of a service call. Unpacks like the (ok, message, data) triple
    the store returns, with `error` naming the failure kind.
    """
    ok: bool
    message: str
    data: Any = None
    error: Optional[str] = None

    def __iter__(self):
        return iter((self.ok, self.message, self.data))

    @classmethod
    def success(cls, message: str, data: Any = None) -> "Result":
        return cls(True, message, data)

    @classmethod
    def failure(cls, exc: OrderBookError, data: Any = None) -> "Result":
        return cls(False, str(exc), data, exc.kind)


@dataclass
class PendingAction:
    """A destructive operation waiting for the user's explicit confirmation."""
    kind: str
    summary: str
    entry_ids: List[Any] = field(default_factory=list)
    run: Optional[Callable[[], Result]] = field(default=None, repr=False)
    confirmed: bool = False
