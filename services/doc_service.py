# orderbook/services/doc_service.py
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Sequence

from docx import Document
from docx.document import Document as DocxDocument

from domain.models import Challan, DesignEntry, Order, ProgramGroup
from services.aggregation import program_total_taka
from services.challan import challan_totals, line_total
from services.pagination import SHADES_PER_ROW, paginate
from utils.dates import format_date
from utils.docx_helpers import replace_placeholders_in_document, set_cell_text
from utils.formatting import format_amount, format_meters

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
OUTPUT_DIR = BASE_DIR / "output"


# ---------- order form ----------

def _order_placeholders(order: Order) -> Dict[str, str]:
    return {
        "{{order_no}}": str(order.order_no),
        "{{date}}": format_date(order.date),
        "{{bill_to}}": order.bill_to_name,
        "{{ship_to}}": order.ship_to_name,
        "{{broker}}": order.broker,
        "{{transport}}": order.transport,
        "{{remark}}": order.remark,
    }


def _add_order_header(doc: DocxDocument, order: Order, page_no: int, page_count: int) -> None:
    doc.add_heading(f"Order No. {order.order_no}", level=1)
    doc.add_paragraph(f"Date: {format_date(order.date)}    Page {page_no} of {page_count}")
    doc.add_paragraph(f"Bill To: {order.bill_to_name}    Ship To: {order.ship_to_name}")
    doc.add_paragraph(f"Broker: {order.broker}    Transport: {order.transport}")


def _add_entries_table(doc: DocxDocument, entries: Sequence[DesignEntry]) -> None:
    """
    One block per entry: a title row (design, price, remark) followed by
    the non-empty shades, SHADES_PER_ROW to a row.
    """
    table = doc.add_table(rows=0, cols=SHADES_PER_ROW + 1)
    table.style = "Table Grid"

    for no, entry in enumerate(entries, start=1):
        title = table.add_row().cells
        set_cell_text(title[0], f"{no}. {entry.design}", bold=True)
        set_cell_text(title[1], f"Price: {entry.price}")
        if entry.remark:
            set_cell_text(title[2], entry.remark)

        shades = entry.shades.non_empty()
        for start in range(0, len(shades), SHADES_PER_ROW):
            cells = table.add_row().cells
            for offset, (name, qty) in enumerate(shades[start:start + SHADES_PER_ROW], start=1):
                set_cell_text(cells[offset], f"{name}\n{qty}")


def render_order_form(
        order: Order,
        entries: Sequence[DesignEntry],
        template_path: Optional[str] = None,
) -> DocxDocument:
    """
    Build the printable order form. Entries are laid out with `paginate`;
    each page repeats the order header. A template, when given, has its
    {{order_no}}, {{date}}, {{bill_to}} ... placeholders filled first.
    """
    doc = Document(template_path) if template_path else Document()
    if template_path:
        replace_placeholders_in_document(doc, _order_placeholders(order))

    pages = paginate(entries)
    for page_no, page in enumerate(pages, start=1):
        if page_no > 1:
            doc.add_page_break()
        _add_order_header(doc, order, page_no, len(pages))
        _add_entries_table(doc, page)

    if order.remark:
        doc.add_paragraph(f"Remark: {order.remark}")

    logger.info("Order form %s: %d entries on %d pages", order.order_no, len(entries), len(pages))
    return doc


# ---------- program ----------

def render_program(groups: Sequence[ProgramGroup], title: str = "Program", lot_no: str = "") -> DocxDocument:
    doc = Document()
    doc.add_heading(title, level=1)
    if lot_no:
        doc.add_paragraph(f"Lot No.: {lot_no}")

    table = doc.add_table(rows=1, cols=5)
    table.style = "Table Grid"
    for cell, label in zip(table.rows[0].cells, ("Design", "Parties", "Meters", "Taka", "Lump Set")):
        set_cell_text(cell, label, bold=True)

    for g in groups:
        cells = table.add_row().cells
        set_cell_text(cells[0], g.design)
        set_cell_text(cells[1], ", ".join(g.party_names))
        set_cell_text(cells[2], format_meters(g.total_meters))
        set_cell_text(cells[3], str(g.taka))
        set_cell_text(cells[4], f"{g.lump_set} lumps X {g.colour_count} colours")

    doc.add_paragraph().add_run(f"{program_total_taka(groups)} Taka").bold = True
    return doc


# ---------- challan ----------

def render_challan(challan: Challan) -> DocxDocument:
    doc = Document()
    doc.add_heading(f"Challan No. {challan.challan_no}", level=1)
    doc.add_paragraph(f"Date: {format_date(challan.date)}")
    doc.add_paragraph(f"Bill To: {challan.bill_to}    Ship To: {challan.ship_to}")
    doc.add_paragraph(f"Broker: {challan.broker}    Transport: {challan.transport}")

    table = doc.add_table(rows=1, cols=5)
    table.style = "Table Grid"
    for cell, label in zip(table.rows[0].cells, ("Design", "Meters", "Pcs", "Price", "Amount")):
        set_cell_text(cell, label, bold=True)

    for line in challan.lines:
        cells = table.add_row().cells
        set_cell_text(cells[0], line.design)
        set_cell_text(cells[1], format_meters(line.meters))
        set_cell_text(cells[2], format_meters(line.pieces))
        set_cell_text(cells[3], format_amount(line.price))
        set_cell_text(cells[4], format_amount(line_total(line, challan.discount)))

    totals = challan_totals(challan)
    doc.add_paragraph(f"Discount: {format_amount(challan.discount)}%")
    doc.add_paragraph().add_run(f"Total: {format_amount(totals['amount'])}").bold = True
    if challan.remark:
        doc.add_paragraph(challan.remark)
    return doc


# ---------- saving ----------

def save_document(doc: DocxDocument, name: str, output_dir: Optional[Path] = None) -> str:
    """Save as "<name>-<timestamp>.docx" and return the absolute path."""
    folder = Path(output_dir) if output_dir else OUTPUT_DIR
    folder.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    safe_name = name.replace(" ", "_")
    path = folder / f"{safe_name}-{timestamp}.docx"

    doc.save(str(path))
    logger.info("Saved %s", path)
    return str(path.resolve())
