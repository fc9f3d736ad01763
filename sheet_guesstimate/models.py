# models.py
"""
Grid cells extracted from a workbook, and the Guesstimate graph built from them.
"""

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ──────────────────────────────────────────────────────────────
# Grid
# ──────────────────────────────────────────────────────────────
@dataclass
class CellData:
    address: str            # "A1", or "Sheet1!A1" when the workbook has several sheets
    value: str
    description: str
    formula: str
    row_num: int            # 1-based
    col_num: int            # 1-based, offset per sheet
    unresolved: list[str] = field(default_factory=list)


@dataclass
class Grid:
    cells: dict[str, CellData] = field(default_factory=dict)
    sheet_names: list[str] = field(default_factory=list)


# ──────────────────────────────────────────────────────────────
# Guesstimate graph
# ──────────────────────────────────────────────────────────────
class _Node(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Location(_Node):
    row: int
    column: int


class Metric(_Node):
    id: str
    readable_id: str = Field(alias="readableId")
    name: str
    location: Location


class Guesstimate(_Node):
    metric: str
    input: None = None
    expression: str
    guesstimate_type: Literal["FUNCTION", "POINT"] = Field(alias="guesstimateType")
    description: str = ""


class Graph(_Node):
    metrics: list[Metric] = []
    guesstimates: list[Guesstimate] = []

    def to_json_dict(self) -> dict:
        """camelCase dict, the shape Guesstimate expects inside a space."""
        return self.model_dump(by_alias=True, mode="json")
