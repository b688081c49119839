from docx.document import Document


def replace_placeholders_in_document(doc: Document, mapping: dict) -> None:
    """
    Replace all occurrences of keys in `mapping` with their values
    across paragraphs and tables in a python-docx Document.
    """
    # Replace in paragraphs
    for p in doc.paragraphs:
        _replace_in_paragraph(p, mapping)

    # Replace in tables
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                for p in cell.paragraphs:
                    _replace_in_paragraph(p, mapping)


def _replace_in_paragraph(paragraph, mapping: dict) -> None:
    for key, val in mapping.items():
        if key in paragraph.text:
            for run in paragraph.runs:
                run.text = run.text.replace(key, val)


def set_cell_text(cell, text: str, bold: bool = False) -> None:
    """Overwrite a table cell with a single run."""
    cell.text = ""
    run = cell.paragraphs[0].add_run(text)
    run.bold = bold
