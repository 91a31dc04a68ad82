"""Development server for houndsite.

Serves the built site locally while you write docs:
- Injects a live reload script into HTML responses.
- Answers directory listings and missing paths with a 404 (serving 404.html when present).
- Watches the project and rebuilds on change, then tells connected browsers to reload.

Key classes:
- DevServer: Builds, serves, watches and reloads.
- _ReloadHandler: HTTP handler that injects the reload script and enforces 404s.
- _ChangeHandler: watchdog handler that triggers rebuilds.
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

from .build import BuildError, build_site
from .config import CONFIG_FILENAME, ConfigError, load_settings

RELOAD_SCRIPT_TEMPLATE = """
<script>
(() => {{
  const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
  ws.onmessage = (event) => {{
    const data = JSON.parse(event.data || '{{}}');
    if (data.type === 'reload') location.reload();
  }};
}})();
</script>
"""

# Project folders whose changes trigger a rebuild
WATCHED_FOLDERS = ("src", "_layouts")


def inject_reload_script(html: str, script: str) -> str:
    """Insert the reload script before ``</body>``, or append it."""
    if "</body>" in html:
        return html.replace("</body>", f"{script}</body>", 1)
    return html + script


class _ReloadHandler(SimpleHTTPRequestHandler):
    """Serves the output directory with live reload and strict 404s."""

    reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=4322)

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - reached through send_head
        return self._send_html(self._not_found_body(), 404)

    def _not_found_body(self) -> str | None:
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
            return error_page.read_text(encoding="utf-8")
        return None

    def _send_html(self, content: str | None, status: int):
        if content is None:
            self.send_error(status, "File not found")
            return None
        encoded = inject_reload_script(content, self.reload_script).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)
        return None

    def send_head(self):
        path = Path(self.translate_path(self.path))
        if path.is_dir():
            path = path / "index.html"
        if not path.exists():
            return self._send_html(self._not_found_body(), 404)
        if path.suffix == ".html":
            return self._send_html(path.read_text(encoding="utf-8"), 200)
        return super().send_head()


class DevServer:
    """Development server with rebuild-on-change and live reload.

    Attributes:
        project_root: Root directory of the project.
        settings: Build options from houndsite.yaml.
        output_dir: Directory being served.
        http_port: Port for the HTTP server.
        ws_port: Port for the live reload websocket.
    """

    def __init__(
        self, project_root: Path, http_port: int | None = None, ws_port: int | None = None
    ):
        self.project_root = project_root
        self.settings = load_settings(project_root)
        self.output_dir = project_root / self.settings["output_dir"]
        self._staging_dir = self.output_dir.with_name(self.output_dir.name + ".staging")
        self.http_port = int(http_port or self.settings["port"])
        if ws_port is not None:
            self.ws_port = int(ws_port)
        elif http_port is None and self.settings.get("ws_port") is not None:
            self.ws_port = int(self.settings["ws_port"])
        else:
            self.ws_port = self.http_port + 1
        self._reload_script = RELOAD_SCRIPT_TEMPLATE.format(ws_port=self.ws_port)
        self._observer: Observer | None = None
        self._ws_clients: set = set()
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()
        self._last_signature: tuple | None = None

    def watched_paths(self) -> list[Path]:
        """Directories watched recursively for changes."""
        folders = [self.settings["docs_dir"], self.settings["public_dir"], *WATCHED_FOLDERS]
        return [self.project_root / f for f in folders if (self.project_root / f).exists()]

    def start(self, include_drafts: bool = False) -> None:  # pragma: no cover - integration path
        self.build(include_drafts)
        threading.Thread(target=self._serve_http, daemon=True).start()
        threading.Thread(target=self._serve_ws, daemon=True).start()
        self._start_watcher(include_drafts)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        self._loop.call_soon_threadsafe(self._loop.stop)

    def build(self, include_drafts: bool = False) -> None:
        """Build into a staging directory, then swap it in for the output.

        The source signature is taken before building, so edits saved during
        the build still trigger the next rebuild.
        """
        signature = self._compute_signature()
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        build_site(
            self.project_root,
            include_drafts=include_drafts,
            output_dir_override=staging,
        )
        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        os.replace(staging, self.output_dir)
        self._last_signature = signature

    def rebuild(self, include_drafts: bool) -> bool:
        """Rebuild if sources changed since the last build.

        Build failures are reported and the previous output keeps being served.

        Returns:
            True when a new build was activated.
        """
        if not self._lock.acquire(blocking=False):
            return False
        try:
            if self._compute_signature() == self._last_signature:
                return False
            print("Change detected; rebuilding...")
            try:
                self.build(include_drafts)
            except (BuildError, ConfigError) as exc:
                print(f"Build failed: {exc}")
                return False
            self._broadcast_reload()
            return True
        finally:
            self._lock.release()

    def _compute_signature(self) -> tuple:
        entries: list[tuple] = []
        config_path = self.project_root / CONFIG_FILENAME
        candidates = [config_path] if config_path.exists() else []
        for root in self.watched_paths():
            candidates.extend(sorted(p for p in root.rglob("*") if p.is_file()))
        for path in candidates:
            try:
                stat = path.stat()
            except OSError:
                continue
            entries.append((str(path.relative_to(self.project_root)), stat.st_mtime_ns, stat.st_size))
        return tuple(entries)

    def _serve_http(self) -> None:  # pragma: no cover - integration path
        handler_cls = type(
            "_ProjectReloadHandler", (_ReloadHandler,), {"reload_script": self._reload_script}
        )
        handler = functools.partial(handler_cls, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer(("", self.http_port), handler)
        print(f"Serving {self.output_dir} at http://localhost:{self.http_port}")
        httpd.serve_forever()

    def _serve_ws(self) -> None:  # pragma: no cover - integration path
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._run_ws_server())
        except OSError as exc:
            print(f"Live reload server failed to start (port {self.ws_port}): {exc}")

    async def _run_ws_server(self) -> None:  # pragma: no cover - integration path
        async with websockets.serve(self._ws_handler, "0.0.0.0", self.ws_port):
            await asyncio.Future()

    async def _ws_handler(self, websocket):
        self._ws_clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._ws_clients.discard(websocket)

    def _broadcast_reload(self) -> None:
        message = json.dumps({"type": "reload"})
        asyncio.run_coroutine_threadsafe(self._async_broadcast(message), self._loop)

    async def _async_broadcast(self, message: str) -> None:
        stale = set()
        for ws in list(self._ws_clients):
            try:
                await ws.send(message)
            except websockets.ConnectionClosed:
                stale.add(ws)
        self._ws_clients -= stale

    def _start_watcher(self, include_drafts: bool) -> None:
        handler = _ChangeHandler(self, include_drafts)
        observer = Observer()
        for path in self.watched_paths():
            observer.schedule(handler, str(path), recursive=True)
        observer.schedule(handler, str(self.project_root), recursive=False)
        observer.start()
        self._observer = observer


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer, include_drafts: bool):
        super().__init__()
        self.server = server
        self.include_drafts = include_drafts

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        for ignored in (self.server.output_dir, self.server._staging_dir):
            if path == ignored or ignored in path.parents:
                return
        self.server.rebuild(self.include_drafts)
