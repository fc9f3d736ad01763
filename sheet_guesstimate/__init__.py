"""Spreadsheet → Guesstimate model converter."""

from .dependencies import extract_edges, grid_to_mermaid
from .document import DocumentError, SheetDocument, load_document
from .graph import build_graph, graph_to_payload, graph_to_script
from .ingest import build_grid, load_grid
from .models import CellData, Graph, Grid, Guesstimate, Metric
from .translate import translate

__all__ = [
    "CellData",
    "DocumentError",
    "Graph",
    "Grid",
    "Guesstimate",
    "Metric",
    "SheetDocument",
    "build_graph",
    "build_grid",
    "extract_edges",
    "graph_to_payload",
    "graph_to_script",
    "grid_to_mermaid",
    "load_document",
    "load_grid",
    "translate",
]
