# export.py
import json
from pathlib import Path
from typing import Optional

from .config import Settings
from .dependencies import grid_to_mermaid
from .graph import build_graph, graph_to_payload, graph_to_script
from .models import Grid


def write_outputs(grid: Grid, out_dir, stem: str, settings: Optional[Settings] = None) -> dict[str, Path]:
    """
    Writes <stem>.json (space payload), <stem>.js (console script) and
    <stem>.mmd (Mermaid diagram) into ``out_dir``.
    """
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    graph = build_graph(grid)

    paths = {
        "json": out / f"{stem}.json",
        "script": out / f"{stem}.js",
        "mermaid": out / f"{stem}.mmd",
    }
    paths["json"].write_text(json.dumps(graph_to_payload(graph), indent=2), encoding="utf-8")
    paths["script"].write_text(graph_to_script(graph, settings), encoding="utf-8")
    paths["mermaid"].write_text(grid_to_mermaid(grid) + "\n", encoding="utf-8")
    return paths
