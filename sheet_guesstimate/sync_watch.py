import time, pathlib
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from .config import Settings
from .document import DocumentError
from .export import write_outputs
from .ingest import load_grid
import requests


def sync(path: pathlib.Path, out_dir: pathlib.Path, settings: Settings, notify: bool = True):
    """Re-convert ``path`` into ``out_dir`` and hand it to a running API."""
    try:
        grid = load_grid(path)
    except DocumentError as e:
        # half-written saves are common, the next event retries
        print(f"⚠️  {path.name}: {e}")
        return None
    paths = write_outputs(grid, out_dir, path.stem, settings)
    if notify:
        try:
            with path.open("rb") as fh:
                requests.post(f"{settings.API_URL}/convert", files={"file": (path.name, fh)}, timeout=10)
        except requests.RequestException as e:
            print(f"❌  API not reachable at {settings.API_URL}: {e}")
    return paths


class _Handler(FileSystemEventHandler):
    def __init__(self, path, out_dir, settings, notify=True):
        self.path = pathlib.Path(path).resolve()
        self.out_dir = pathlib.Path(out_dir)
        self.settings = settings
        self.notify = notify

    def on_modified(self, event):
        if pathlib.Path(event.src_path).resolve() == self.path:
            print(f"🔄  {self.path.name} changed – reconverting…")
            if sync(self.path, self.out_dir, self.settings, self.notify):
                print(f"✅  Outputs written to {self.out_dir}")


def main(xlsx_path: str, out_dir: str = ".", notify: bool = True):
    settings = Settings()
    p = pathlib.Path(xlsx_path).resolve()
    sync(p, pathlib.Path(out_dir), settings, notify)
    obs = Observer()
    obs.schedule(_Handler(p, out_dir, settings, notify), str(p.parent), recursive=False)
    obs.start()
    print(f"👀  Watching `{p}` for edits (Ctrl-C to exit)")
    try:
        while True:
            time.sleep(1)
    finally:
        obs.stop()
        obs.join()
