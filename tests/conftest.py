from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook

from sheet_guesstimate.document import SheetDocument


def make_workbook(sheets: dict[str, dict[str, Any]]) -> Workbook:
    """{"Sheet1": {"A1": "Revenue", "B1": 100}} -> Workbook."""
    wb = Workbook()
    wb.remove(wb.active)
    for title, cells in sheets.items():
        ws = wb.create_sheet(title)
        for coordinate, value in cells.items():
            ws[coordinate] = value
    return wb


def make_document(sheets: dict[str, dict[str, Any]]) -> SheetDocument:
    return SheetDocument.from_workbook(make_workbook(sheets))


def xlsx_bytes(sheets: dict[str, dict[str, Any]]) -> bytes:
    buf = io.BytesIO()
    make_workbook(sheets).save(buf)
    return buf.getvalue()


@pytest.fixture
def model_sheets() -> dict[str, dict[str, Any]]:
    """A small single-sheet cost model."""
    return {
        "Model": {
            "A1": "Units",
            "B1": 120,
            "A2": "Unit price",
            "B2": "2,5",
            "A3": "Discount",
            "B3": "10%",
            "A4": "Total",
            "B4": "=B1*B2*(1-B3)",
        }
    }


@pytest.fixture
def xlsx_path(tmp_path: Path, model_sheets) -> Path:
    path = tmp_path / "model.xlsx"
    make_workbook(model_sheets).save(path)
    return path
