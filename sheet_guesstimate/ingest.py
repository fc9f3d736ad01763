# ingest.py

import logging
import re

from .addresses import AddressNormalizer
from .document import DocumentCell, SheetDocument, Source, load_document
from .formula import format_number, parse, serialize
from .models import CellData, Grid
from .translate import translate_expression

logger = logging.getLogger(__name__)

PERCENT_RE = re.compile(r"^-?\s?\d+\.?\d*%$")
NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


def is_number(text: str) -> bool:
    # an empty cell counts as numeric, it simply has no value
    return text == "" or NUMBER_RE.match(text) is not None


def cell_text(cell: DocumentCell) -> str:
    """Normalized display text: numbers stringified, 50% -> 0.5, 1,5 -> 1.5."""
    try:
        text = cell.text
    except Exception as e:
        logger.debug("No display text for %s: %s", cell.full_address, e)
        text = ""
    value = cell.value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        text = format_number(value)
    text = str(text).strip()

    if PERCENT_RE.match(text):
        text = format_number(float(text[:-1].replace(" ", "")) / 100)
    if is_number(text.replace(",", ".")):
        text = text.replace(",", ".")
    return text


def cell_formula(cell: DocumentCell, normalizer: AddressNormalizer) -> tuple[str, list[str]]:
    """Guesstimate expression for a formula cell, plus calls left unresolved."""
    if not cell.formula:
        return "", []
    formula = f"={cell.formula}"
    if formula.upper().startswith("=HYPERLINK"):
        return "", []
    formula = formula.replace("$", "")
    expr, unresolved = translate_expression(parse(formula))
    expr = normalizer.normalize_expression(expr, cell.sheet_name)
    return serialize(expr), unresolved


def cell_data(cell: DocumentCell, normalizer: AddressNormalizer, col_num: int) -> CellData:
    text = cell_text(cell)
    numeric = is_number(text)
    formula, unresolved = cell_formula(cell, normalizer)
    address = normalizer.qualify(cell.coordinate, cell.sheet_name)
    if unresolved:
        logger.warning("%s: left %s unresolved in %s", address, ", ".join(unresolved), formula)
    return CellData(
        address=address,
        value=text if numeric else "",
        description="" if numeric else text,
        formula=formula,
        row_num=cell.row,
        col_num=col_num,
        unresolved=unresolved,
    )


def is_label_for(previous: CellData, cell: CellData) -> bool:
    """A plain text cell directly left of a value or formula names it."""
    return bool(
        (cell.value or cell.formula)
        and previous.col_num == cell.col_num - 1
        and not previous.formula
        and previous.description
        and previous.value == ""
    )


def build_grid(document: SheetDocument) -> Grid:
    """
    Walks every sheet row by row and returns the Grid of occupied cells.
    Sheets are laid out left to right, one empty column apart.
    """
    grid = Grid(sheet_names=document.sheet_names)
    normalizer = AddressNormalizer(grid.sheet_names)

    max_column = 0
    for index, sheet in enumerate(document.sheets):
        offset = max_column + 1 if index else 0
        for row in sheet.rows:
            previous = None
            for cell in row:
                col_num = cell.column + offset
                max_column = max(max_column, col_num)
                data = cell_data(cell, normalizer, col_num)
                if previous is not None and is_label_for(previous, data):
                    data.description = previous.description
                    del grid.cells[previous.address]
                grid.cells[data.address] = data
                previous = data

    logger.info("Built grid: %d cell(s) from %d sheet(s)", len(grid.cells), len(grid.sheet_names))
    return grid


def load_grid(source: Source) -> Grid:
    """Reads an .xlsx and returns its Grid."""
    return build_grid(load_document(source))
