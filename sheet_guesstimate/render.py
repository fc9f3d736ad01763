# render.py
"""
Mermaid diagrams rendered by a mermaid.ink compatible service.

The diagram travels in the URL: the editor state JSON is deflated and
base64url-encoded behind a ``pako:`` marker, the same format the Mermaid live
editor uses for shareable links.
"""

import base64
import json
import logging
import zlib
from typing import Optional

import requests

from .config import Settings

logger = logging.getLogger(__name__)


def encode_pako(diagram: str) -> str:
    state = json.dumps({"code": diagram, "mermaid": {"theme": "default"}})
    compressed = zlib.compress(state.encode("utf-8"), 9)
    return "pako:" + base64.urlsafe_b64encode(compressed).decode("ascii").rstrip("=")


def decode_pako(encoded: str) -> str:
    """Inverse of :func:`encode_pako`, returns the diagram text."""
    data = encoded.removeprefix("pako:")
    data += "=" * (-len(data) % 4)
    state = json.loads(zlib.decompress(base64.urlsafe_b64decode(data)))
    return state["code"]


def mermaid_ink_url(diagram: str, kind: str = "img", settings: Optional[Settings] = None) -> str:
    """``kind`` is "img" (PNG/JPEG) or "svg"."""
    settings = settings or Settings()
    return f"{settings.MERMAID_INK_URL.rstrip('/')}/{kind}/{encode_pako(diagram)}"


def fetch_image(diagram: str, kind: str = "img", settings: Optional[Settings] = None) -> bytes:
    url = mermaid_ink_url(diagram, kind, settings)
    logger.info("Rendering diagram via %s", url.split("/pako:")[0])
    resp = requests.get(url, timeout=30)
    resp.raise_for_status()
    return resp.content
