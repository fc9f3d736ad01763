# graph.py

import json
import logging
from typing import Optional

import requests

from .config import Settings
from .models import Graph, Grid, Guesstimate, Location, Metric

logger = logging.getLogger(__name__)

NAME_LIMIT = 20


def build_graph(grid: Grid) -> Graph:
    """One metric + guesstimate per grid cell, in grid order."""
    metrics, guesstimates = [], []
    for cell in grid.cells.values():
        name = cell.description or ""
        description = ""
        # long labels attached to a value go to the description
        if len(name) > NAME_LIMIT and cell.value != "":
            description = name
            name = name[: NAME_LIMIT - 3] + "..."

        metrics.append(Metric(
            id=cell.address,
            readable_id=cell.address,
            name=name,
            location=Location(row=cell.row_num - 1, column=cell.col_num - 1),
        ))
        guesstimates.append(Guesstimate(
            metric=cell.address,
            expression=cell.formula or cell.value,
            guesstimate_type="FUNCTION" if cell.formula else "POINT",
            description=description,
        ))
    return Graph(metrics=metrics, guesstimates=guesstimates)


def graph_to_payload(graph: Graph) -> dict:
    """Body of the PATCH that replaces a space's graph."""
    return {"space": {"graph": graph.to_json_dict()}}


_SCRIPT = """const modelId = window.location.pathname.split('/')[2];
const authorization = "Bearer " + JSON.parse(localStorage.getItem({token_key})).token;
const payload = {{
  headers: {{
    accept: "application/json, text/javascript, */*; q=0.01",
    authorization: authorization,
    "cache-control": "no-cache",
    "content-type": "application/json",
  }},
  referrer: {referrer},
  referrerPolicy: "strict-origin-when-cross-origin",
  body: JSON.stringify({body}),
  method: "PATCH",
}};
fetch({api_url} + "/" + modelId, payload).then(() => location.reload());"""


def graph_to_script(graph: Graph, settings: Optional[Settings] = None) -> str:
    """
    Browser-console snippet: run it on an open Guesstimate space and it
    overwrites that space with ``graph`` using the logged-in user's token.
    """
    settings = settings or Settings()
    return _SCRIPT.format(
        token_key=json.dumps(settings.GUESSTIMATE_TOKEN_KEY),
        referrer=json.dumps(settings.GUESSTIMATE_REFERRER),
        body=json.dumps(graph_to_payload(graph), separators=(",", ":")),
        api_url=json.dumps(settings.GUESSTIMATE_API_URL.rstrip("/")),
    )


def push_graph(graph: Graph, space_id: str, token: Optional[str] = None,
               settings: Optional[Settings] = None) -> requests.Response:
    """PATCH ``graph`` into the Guesstimate space ``space_id``."""
    settings = settings or Settings()
    token = token or settings.GUESSTIMATE_TOKEN
    url = f"{settings.GUESSTIMATE_API_URL.rstrip('/')}/{space_id}"
    logger.info("Pushing %d metric(s) to %s", len(graph.metrics), url)
    resp = requests.patch(
        url,
        json=graph_to_payload(graph),
        headers={
            "accept": "application/json",
            "authorization": f"Bearer {token}",
            "referer": settings.GUESSTIMATE_REFERRER,
        },
        timeout=30,
    )
    resp.raise_for_status()
    return resp
