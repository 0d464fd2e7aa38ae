"""Development server for Zas.

Builds the site, serves the deployment tree over HTTP and rebuilds when the
source tree changes. Connected pages reload through a websocket once a
rebuild has been swapped in.

Rebuilds go to a hidden staging directory next to the deployment directory
and replace it only when they succeed, so a broken edit leaves the last good
site in place.

Key classes:
- DevServer: Build, serve, watch and reload.
- LiveReload: Websocket endpoint notifying connected pages.
- _PreviewHandler: HTTP handler serving rendered pages with the reload script.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import asyncio
import functools
import json
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import websockets
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import build_site, check_deploy_dir
from .config import CONFIG_DIR, DIRECTORY_CONFIG_FILE, load_config
from .errors import ZasError
from .walker import EntryKind, iter_entries

_PAGE_SUFFIXES = (".html", ".md")

_RELOAD_SCRIPT = """<script>
(() => {{
  const ws = new WebSocket('ws://' + location.hostname + ':{port}');
  ws.onmessage = (event) => {{
    if (JSON.parse(event.data || '{{}}').type === 'reload') location.reload();
  }};
}})();
</script>
"""


class LiveReload:
    """Websocket endpoint that tells connected pages to reload.

    The websocket server runs on its own event loop in a background thread;
    ``notify`` may be called from any thread.
    """

    def __init__(self, port: int):
        self.port = port
        self.clients: set = set()
        self.loop = asyncio.new_event_loop()

    @property
    def script(self) -> str:
        return _RELOAD_SCRIPT.format(port=self.port)

    def start(self) -> None:  # pragma: no cover - integration path
        threading.Thread(target=self.run, daemon=True).start()

    def run(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self._serve())
        except OSError as exc:
            print(f"Live reload failed to start on port {self.port}: {exc}")

    def stop(self) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)

    async def _serve(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self.handle, "0.0.0.0", self.port):
            await asyncio.Future()

    async def handle(self, websocket) -> None:
        self.clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self.clients.discard(websocket)

    def notify(self) -> None:
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self.broadcast(message), self.loop)

    async def broadcast(self, message: str) -> None:
        """Send message to every client, dropping the ones that fail."""
        for websocket in list(self.clients):
            try:
                await websocket.send(message)
            except Exception:
                self.clients.discard(websocket)


class _PreviewHandler(SimpleHTTPRequestHandler):
    """Serves the deployment tree.

    Rendered pages (``.html`` and ``.md``) are sent as HTML with the reload
    script added. Directories resolve to their index page; anything missing
    gets a 404, using ``404.html`` when the site has one.
    """

    reload_script = ""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._not_found()

    def send_head(self):
        target = Path(self.translate_path(self.path))
        if target.is_dir():
            target = self._index_of(target)
        if target is None or not target.exists():
            return self._not_found()
        if target.suffix in _PAGE_SUFFIXES:
            self._send_page(200, target)
            return None
        return super().send_head()

    def _index_of(self, directory: Path) -> Path | None:
        for suffix in _PAGE_SUFFIXES:
            candidate = directory / f"index{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def _with_reload(self, page: str) -> bytes:
        position = page.rfind("</body>")
        if position == -1:
            page += self.reload_script
        else:
            page = page[:position] + self.reload_script + page[position:]
        return page.encode("utf-8")

    def _send_page(self, status: int, path: Path) -> None:
        payload = self._with_reload(path.read_text(encoding="utf-8"))
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def _not_found(self):
        error_page = Path(self.directory) / "404.html"
        if error_page.is_file():
            self._send_page(404, error_page)
        else:
            self.send_error(404, "File not found")
        return None


class DevServer:
    """Development server with live reload.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        deploy_dir: Directory the site is served from.
        staging_dir: Hidden directory rebuilds are written to first.
        http_port: Port for the HTTP server.
        live_reload: Websocket endpoint for reload notifications.
    """

    debounce_seconds = 0.05
    settle_seconds = 0.05

    def __init__(
        self,
        project_root: Path,
        http_port: int | None = None,
        ws_port: int | None = None,
    ):
        """Initialize the development server.

        Args:
            project_root: Root directory of the project.
            http_port: Optional override for zas.port.
            ws_port: Optional websocket port; defaults to the HTTP port plus one.
        """
        self.project_root = project_root
        self.config = load_config(project_root)
        self.deploy_dir = project_root / self.config.zas("deploy")
        self.staging_dir = self.deploy_dir.parent / f".{self.deploy_dir.name}.staging"
        self.http_port = int(http_port or self.config.zas("port") or 4000)
        self.live_reload = LiveReload(ws_port if ws_port is not None else self.http_port + 1)
        self._observer: Observer | None = None
        self._lock = threading.Lock()
        self._last_rebuild_at = 0.0
        self._snapshot: tuple | None = None

    def start(self) -> None:  # pragma: no cover - integration path
        self.build()
        self._snapshot = self.snapshot()
        threading.Thread(target=self._serve_http, daemon=True).start()
        self.live_reload.start()
        self.watch()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
        self.live_reload.stop()

    def _serve_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_BoundPreviewHandler",
            (_PreviewHandler,),
            {"reload_script": self.live_reload.script},
        )
        handler = functools.partial(handler_cls, directory=str(self.deploy_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.deploy_dir} at http://localhost:{self.http_port}")
        httpd.serve_forever()

    def watch(self) -> None:
        """Start watching the project root for changes."""
        observer = Observer()
        observer.schedule(_ChangeHandler(self), str(self.project_root), recursive=True)
        observer.start()
        self._observer = observer

    def ignores(self, path: Path) -> bool:
        """Return True for paths inside the deployment or staging directory."""
        return any(
            path == directory or directory in path.parents
            for directory in (self.deploy_dir, self.staging_dir)
        )

    def rebuild(self) -> None:
        """Rebuild after a change and reload connected pages.

        Bursts of events are collapsed: a rebuild already running, one that
        finished moments ago, or an unchanged source tree all skip.
        """
        if time.time() - self._last_rebuild_at < self.debounce_seconds:
            return
        if not self._lock.acquire(blocking=False):
            return
        try:
            snapshot = self.snapshot()
            if snapshot is not None and snapshot == self._snapshot:
                return
            print("Change detected; rebuilding...")
            if not self.build():
                return
            self._snapshot = snapshot
            if self.settle_seconds:
                time.sleep(self.settle_seconds)
            self.live_reload.notify()
        finally:
            self._last_rebuild_at = time.time()
            self._lock.release()

    def build(self) -> bool:
        """Build into the staging directory and swap it in on success."""
        try:
            check_deploy_dir(self.project_root, self.deploy_dir)
            build_site(self.project_root, deploy_override=self.staging_dir)
        except ZasError as exc:
            print(f"Build failed: {exc}")
            return False
        if self.deploy_dir.exists():
            shutil.rmtree(self.deploy_dir)
        os.replace(self.staging_dir, self.deploy_dir)
        return True

    def snapshot(self) -> tuple | None:
        """Return (path, mtime, size) for every source and config file.

        Directory metadata files are hidden from the walk, so each walked
        directory's ``.zas.yml`` (and the root one) is added explicitly.
        """
        entries = list(iter_entries(self.project_root, exclude=[self.deploy_dir]))
        paths = [entry.path for entry in entries]
        paths.append(Path(DIRECTORY_CONFIG_FILE))
        paths.extend(
            entry.path / DIRECTORY_CONFIG_FILE
            for entry in entries
            if entry.kind is EntryKind.DIRECTORY
        )
        config_dir = self.project_root / CONFIG_DIR
        if config_dir.is_dir():
            paths.extend(
                p.relative_to(self.project_root) for p in sorted(config_dir.glob("*.*"))
            )
        stats = []
        for rel in paths:
            path = self.project_root / rel
            if path.is_dir():
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            stats.append((str(rel), stat.st_mtime_ns, stat.st_size))
        return tuple(stats) or None


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory or self.server.ignores(Path(event.src_path)):
            return
        try:
            self.server.rebuild()
        except ZasError as exc:
            print(f"Rebuild failed: {exc}")
