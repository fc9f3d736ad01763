# api.py
import asyncio
import logging

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, StreamingResponse

from .config import Settings
from .dependencies import grid_to_mermaid, render_html
from .document import DocumentError, load_document
from .graph import build_graph, graph_to_payload, graph_to_script
from .ingest import build_grid
from .models import Grid
from .render import mermaid_ink_url

logger = logging.getLogger(__name__)

update_listeners: list[asyncio.Queue] = []
_latest: dict[str, Grid] = {}

_settings = Settings()

app = FastAPI(title="Sheet → Guesstimate API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_methods=["*"], allow_headers=["*"],
)


async def _read_grid(file: UploadFile) -> Grid:
    data = await file.read()
    try:
        document = load_document(data)
    except DocumentError as e:
        raise HTTPException(400, detail=f"{file.filename}: {e}")
    return build_grid(document)


def _broadcast(message: str = "reload") -> None:
    logger.info("Broadcasting %s to %d listener(s)", message, len(update_listeners))
    for q in update_listeners:
        q.put_nowait(message)


@app.post("/convert")
async def convert(file: UploadFile = File(...)):
    """
    Upload an .xlsx and get back everything needed to load it into Guesstimate:
      • graph    – the space graph payload
      • script   – console snippet that PATCHes it into the open space
      • mermaid  – dependency diagram text (+ a rendered-image link)
      • unresolved – cells whose functions could not be inlined
    """
    grid = await _read_grid(file)
    graph = build_graph(grid)
    mermaid = grid_to_mermaid(grid)

    _latest["grid"] = grid
    _broadcast()

    return {
        "graph": graph_to_payload(graph),
        "script": graph_to_script(graph, _settings),
        "mermaid": mermaid,
        "mermaid_url": mermaid_ink_url(mermaid, settings=_settings),
        "unresolved": {c.address: c.unresolved for c in grid.cells.values() if c.unresolved},
    }


@app.post("/diagram", response_class=PlainTextResponse)
async def diagram(file: UploadFile = File(...)):
    """Mermaid text only."""
    return grid_to_mermaid(await _read_grid(file))


@app.get("/events")
async def events():
    async def event_stream():
        q = asyncio.Queue()
        update_listeners.append(q)
        try:
            while True:
                msg = await q.get()
                yield f"data: {msg}\n\n"
        except asyncio.CancelledError:
            pass
        finally:
            update_listeners.remove(q)

    return StreamingResponse(event_stream(), media_type="text/event-stream")


_RELOAD = """
<script>
  const es = new EventSource("/events");
  es.onmessage = () => window.location.reload();
</script>
"""


@app.get("/graph", response_class=HTMLResponse)
def graph_view():
    """
    pyvis page of the last uploaded workbook's dependencies; reloads itself
    whenever a new workbook is converted.
    """
    grid = _latest.get("grid")
    if grid is None:
        raise HTTPException(404, detail="Nothing converted yet, POST a workbook to /convert")
    html = render_html(grid)
    return HTMLResponse(html.replace("</body>", _RELOAD + "</body>"))
