# document.py
"""
Read-only view of an .xlsx workbook: sheets → rows → occupied cells.

Formulas and their cached results live in two different openpyxl workbooks
(``data_only=False`` / ``data_only=True``); a DocumentCell carries both.
"""

import datetime as dt
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union
from xml.etree.ElementTree import ParseError
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.cell.rich_text import CellRichText
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.formula import ArrayFormula

logger = logging.getLogger(__name__)

Source = Union[str, Path, bytes, BinaryIO]


class DocumentError(Exception):
    """The workbook could not be opened or read."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


def display_text(value: Any) -> str:
    """Text a spreadsheet would show for a raw cell value."""
    if value is None:
        return ""
    if isinstance(value, CellRichText):
        # runs are plain str or TextBlock
        return "".join(getattr(run, "text", run) for run in value)
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True)
class DocumentCell:
    sheet_name: str
    coordinate: str                 # "B7"
    row: int
    column: int
    value: Any                      # literal, or the cached result of a formula
    formula: Optional[str] = None   # bare expression, no leading "="

    @property
    def full_address(self) -> str:
        return f"{self.sheet_name}!{self.coordinate}"

    @property
    def text(self) -> str:
        return display_text(self.value)


@dataclass
class DocumentSheet:
    name: str
    rows: list[list[DocumentCell]] = field(default_factory=list)


@dataclass
class SheetDocument:
    sheets: list[DocumentSheet] = field(default_factory=list)

    @property
    def sheet_names(self) -> list[str]:
        return [s.name for s in self.sheets]

    @classmethod
    def from_workbook(cls, workbook: Workbook, values: Optional[Workbook] = None) -> "SheetDocument":
        """
        Adapt an openpyxl workbook loaded with formulas. ``values`` is the same
        file loaded with ``data_only=True``; without it formula cells have no
        cached result.
        """
        sheets = []
        for ws in workbook.worksheets:
            cached = values[ws.title] if values is not None else None
            rows = []
            for row in ws.iter_rows():
                cells = []
                for cell in row:
                    if cell.value is None:
                        continue
                    formula = _formula_text(cell)
                    value = cell.value
                    if formula is not None:
                        value = cached[cell.coordinate].value if cached is not None else None
                    cells.append(DocumentCell(
                        sheet_name=ws.title,
                        coordinate=cell.coordinate,
                        row=cell.row,
                        column=cell.column,
                        value=value,
                        formula=formula,
                    ))
                if cells:
                    rows.append(cells)
            sheets.append(DocumentSheet(name=ws.title, rows=rows))
        return cls(sheets=sheets)


def _formula_text(cell) -> Optional[str]:
    value = cell.value
    if isinstance(value, ArrayFormula):
        text = value.text or ""
    elif cell.data_type == "f" and isinstance(value, str):
        text = value
    else:
        return None
    return text[1:] if text.startswith("=") else text


def load_document(source: Source) -> SheetDocument:
    """
    Load an .xlsx from a path, raw bytes or a binary file object.
    """
    name = str(source) if isinstance(source, (str, Path)) else None
    if not isinstance(source, (str, Path)):
        data = source if isinstance(source, bytes) else source.read()
        opener = lambda: io.BytesIO(data)  # noqa: E731
    else:
        opener = lambda: source  # noqa: E731

    try:
        workbook = load_workbook(opener(), data_only=False, rich_text=True)
        values = load_workbook(opener(), data_only=True, rich_text=True)
    except (InvalidFileException, BadZipFile, ParseError, KeyError, ValueError, OSError) as e:
        raise DocumentError(f"Cannot read workbook: {e}", name) from e

    document = SheetDocument.from_workbook(workbook, values)
    logger.info(
        "Loaded %s: %d sheet(s), %d occupied cell(s)",
        name or "upload",
        len(document.sheets),
        sum(len(r) for s in document.sheets for r in s.rows),
    )
    return document
