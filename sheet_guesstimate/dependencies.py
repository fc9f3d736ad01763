# dependencies.py
"""
Dependency edges between grid cells, read back from the metric placeholders
in translated formulas, plus the Mermaid / pyvis renderings of them.
"""

import re

import networkx as nx
from pyvis.network import Network

from .models import CellData, Grid

LABEL_LIMIT = 40

_PLACEHOLDER_RE = re.compile(r"\$\{metric:([^}]+)\}")
_UNSAFE = re.compile(r"[^ a-zA-Z0-9,.\-$%]")


def referenced_addresses(cell: CellData) -> set[str]:
    return set(_PLACEHOLDER_RE.findall(cell.formula))


def extract_edges(grid: Grid) -> list[tuple[str, str]]:
    """
    (precedent, dependent) pairs: one per formula cell and other grid cell
    whose placeholder occurs in that formula.
    """
    edges = []
    for cell in grid.cells.values():
        if not cell.formula:
            continue
        refs = referenced_addresses(cell)
        for address in grid.cells:
            if address != cell.address and address in refs:
                edges.append((address, cell.address))
    return edges


def node_label(cell: CellData) -> str:
    description = cell.description
    if len(description) > LABEL_LIMIT:
        description = description[: LABEL_LIMIT - 3] + "..."
    return _UNSAFE.sub("_", description)


def grid_to_mermaid(grid: Grid) -> str:
    """``graph LR`` flowchart; every endpoint declared once, before its first edge."""
    lines = []
    seen = set()
    for source, target in extract_edges(grid):
        for address in (source, target):
            if address in seen:
                continue
            seen.add(address)
            label = node_label(grid.cells[address])
            if label:
                lines.append(f"{address}[{label}]")
        lines.append(f"{source} --> {target}")
    return "\n".join(["graph LR"] + [f"  {line}" for line in lines])


def grid_to_networkx(grid: Grid) -> nx.DiGraph:
    """Every cell as a node, edges PRECEDENT → DEPENDENT."""
    G = nx.DiGraph()
    for address, cell in grid.cells.items():
        G.add_node(
            address,
            label=cell.description or address,
            title=cell.formula or cell.value or cell.description,
        )
    G.add_edges_from(extract_edges(grid))
    return G


def render_html(grid: Grid, height: str = "750px") -> str:
    """Interactive pyvis page of the dependency graph."""
    net = Network(
        height=height,
        width="100%",
        directed=True,
        notebook=False,
        bgcolor="#ffffff",
        font_color="#000000",
        cdn_resources="remote",
    )
    net.from_nx(grid_to_networkx(grid))
    for node in net.nodes:
        node["size"] = 20
    return net.generate_html()
