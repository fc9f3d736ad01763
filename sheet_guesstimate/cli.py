import logging
import pathlib
from typing import Optional

import requests
import typer

from .config import Settings
from .dependencies import grid_to_mermaid, render_html
from .document import DocumentError
from .export import write_outputs
from .graph import build_graph, push_graph
from .ingest import load_grid
from .render import fetch_image, mermaid_ink_url

cli = typer.Typer(help="📊 Spreadsheet → Guesstimate CLI")


@cli.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")):
    level = "DEBUG" if verbose else Settings().LOG_LEVEL
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")


def _grid(xlsx: str):
    try:
        return load_grid(xlsx)
    except DocumentError as e:
        typer.echo(f"❌  {e}", err=True)
        raise typer.Exit(1)


@cli.command()
def convert(xlsx: str, out_dir: str = typer.Option(".", "--out-dir", "-o")):
    """Write the Guesstimate payload, console script and diagram for XLSX."""
    grid = _grid(xlsx)
    paths = write_outputs(grid, out_dir, pathlib.Path(xlsx).stem)
    for kind, path in paths.items():
        typer.echo(f"✅  {kind:<8} {path}")
    unresolved = {c.address: c.unresolved for c in grid.cells.values() if c.unresolved}
    for address, names in unresolved.items():
        typer.echo(f"⚠️  {address}: {', '.join(names)} left as-is", err=True)


@cli.command()
def diagram(
    xlsx: str,
    html: Optional[str] = typer.Option(None, help="Also write an interactive pyvis page here."),
    png: Optional[str] = typer.Option(None, help="Render through mermaid.ink and save the image here."),
    url: bool = typer.Option(False, help="Print a mermaid.ink link instead of the text."),
):
    """Print the Mermaid dependency diagram of XLSX."""
    grid = _grid(xlsx)
    text = grid_to_mermaid(grid)
    typer.echo(mermaid_ink_url(text) if url else text)
    if html:
        pathlib.Path(html).write_text(render_html(grid), encoding="utf-8")
        typer.echo(f"✅  Wrote {html}", err=True)
    if png:
        try:
            pathlib.Path(png).write_bytes(fetch_image(text))
        except requests.RequestException as e:
            typer.echo(f"❌  Rendering failed: {e}", err=True)
            raise typer.Exit(1)
        typer.echo(f"✅  Wrote {png}", err=True)


@cli.command()
def push(xlsx: str, space_id: str, token: Optional[str] = typer.Option(None, envvar="GUESSTIMATE_TOKEN")):
    """Overwrite Guesstimate space SPACE_ID with XLSX."""
    graph = build_graph(_grid(xlsx))
    if not (token or Settings().GUESSTIMATE_TOKEN):
        typer.echo("❌  No token: pass --token or set GUESSTIMATE_TOKEN", err=True)
        raise typer.Exit(1)
    try:
        push_graph(graph, space_id, token)
    except requests.RequestException as e:
        typer.echo(f"❌  Push failed: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"✅  Space {space_id} updated ({len(graph.metrics)} metrics)")


@cli.command()
def watch(xlsx: str, out_dir: str = typer.Option(".", "--out-dir", "-o"), notify: bool = True):
    """Watch XLSX and reconvert on every save."""
    from .sync_watch import main as watch_main
    watch_main(xlsx, out_dir, notify)


@cli.command()
def api(host: str = "0.0.0.0", port: int = 8000):
    """Launch REST API."""
    import uvicorn
    from .api import app as fastapi_app
    uvicorn.run(fastapi_app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    cli()
