"""Tests for dependency edges and the Mermaid diagram."""

from __future__ import annotations

import pytest

from sheet_guesstimate.dependencies import (
    extract_edges,
    grid_to_mermaid,
    grid_to_networkx,
    node_label,
    render_html,
)
from sheet_guesstimate.ingest import build_grid
from sheet_guesstimate.models import CellData, Grid

from .conftest import make_document


def _cell(address, description="", formula="", value="") -> CellData:
    return CellData(address, value, description, formula, row_num=1, col_num=1)


@pytest.fixture
def grid() -> Grid:
    cells = [
        _cell("A1", description="Price", value="3"),
        _cell("B1", value="4"),
        _cell("C1", description="Total", formula="=${metric:A1}+${metric:B1}"),
        _cell("D1", formula="=${metric:C1}*2"),
    ]
    return Grid(cells={c.address: c for c in cells}, sheet_names=["Sheet1"])


def test_edges_point_from_precedent_to_dependent(grid: Grid) -> None:
    assert extract_edges(grid) == [("A1", "C1"), ("B1", "C1"), ("C1", "D1")]


def test_mermaid(grid: Grid) -> None:
    assert grid_to_mermaid(grid) == (
        "graph LR\n"
        "  A1[Price]\n"
        "  C1[Total]\n"
        "  A1 --> C1\n"
        "  B1 --> C1\n"
        "  C1 --> D1"
    )


def test_nodes_declared_once() -> None:
    cells = [
        _cell("A1", description="Base", value="1"),
        _cell("B1", description="Double", formula="=${metric:A1}*2"),
        _cell("C1", description="Triple", formula="=${metric:A1}*3"),
        _cell("D1", description="Sum", formula="=${metric:B1}+${metric:C1}+${metric:A1}"),
    ]
    text = grid_to_mermaid(Grid(cells={c.address: c for c in cells}))

    for address in ("A1", "B1", "C1", "D1"):
        assert text.count(f"{address}[") == 1
    assert text.count("-->") == 5


def test_address_prefix_is_not_a_match() -> None:
    cells = [
        _cell("A1", value="1"),
        _cell("AA1", value="2"),
        _cell("B1", formula="=${metric:AA1}+1"),
    ]
    assert extract_edges(Grid(cells={c.address: c for c in cells})) == [("AA1", "B1")]


def test_repeated_reference_is_one_edge() -> None:
    cells = [
        _cell("A1", description="Units", value="2"),
        _cell("B1", description="Score", formula="=${metric:A1}*${metric:A1}+${metric:A1}"),
    ]
    grid = Grid(cells={c.address: c for c in cells})

    assert extract_edges(grid) == [("A1", "B1")]
    assert grid_to_mermaid(grid).count("A1 --> B1") == 1


def test_self_reference_is_not_an_edge() -> None:
    cells = [_cell("A1", formula="=${metric:A1}+1")]
    assert extract_edges(Grid(cells={c.address: c for c in cells})) == []


def test_missing_cells_are_not_nodes() -> None:
    cells = [_cell("B1", formula="=${metric:Z9}+1")]
    grid = Grid(cells={c.address: c for c in cells})

    assert extract_edges(grid) == []
    assert grid_to_mermaid(grid) == "graph LR"


def test_node_label_truncates_and_sanitizes() -> None:
    assert node_label(_cell("A1", description="x" * 45)) == "x" * 37 + "..."
    assert node_label(_cell("A1", description="x" * 40)) == "x" * 40
    assert node_label(_cell("A1", description="Cost (USD) [net]")) == "Cost _USD_ _net_"
    assert node_label(_cell("A1", description="Margin -5.5% $")) == "Margin -5.5% $"


def test_multi_sheet_edges_from_workbook() -> None:
    grid = build_grid(make_document({
        "Inputs": {"A1": "Rate", "B1": 0.1},
        "Calc": {"A1": "Doubled", "B1": "=Inputs!B1*2"},
    }))

    assert extract_edges(grid) == [("Inputs!B1", "Calc!B1")]
    assert "Inputs!B1 --> Calc!B1" in grid_to_mermaid(grid)


def test_networkx_graph(grid: Grid) -> None:
    G = grid_to_networkx(grid)

    assert set(G.nodes) == {"A1", "B1", "C1", "D1"}
    assert set(G.edges) == {("A1", "C1"), ("B1", "C1"), ("C1", "D1")}
    assert G.nodes["A1"]["label"] == "Price"
    assert G.nodes["B1"]["label"] == "B1"


def test_render_html(grid: Grid) -> None:
    html = render_html(grid)
    assert "<html" in html
    assert "Price" in html
