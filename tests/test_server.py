import asyncio
import io
from pathlib import Path

import websockets

from houndsite.build import BuildError
from houndsite.server import DevServer, _ChangeHandler, _ReloadHandler, inject_reload_script


class DummyEvent:
    def __init__(self, path, is_directory=False):
        self.src_path = path
        self.is_directory = is_directory


def make_handler(directory: Path, path: str) -> _ReloadHandler:
    handler = _ReloadHandler.__new__(_ReloadHandler)
    handler.path = path
    handler.directory = str(directory)
    handler.command = "GET"
    handler.request_version = "HTTP/1.1"
    handler.server_version = ""
    handler.sys_version = ""
    handler._headers_buffer = []
    handler.headers = {}
    handler.rfile = io.BytesIO(b"")
    handler.wfile = io.BytesIO()
    handler.codes = []
    handler.send_response = lambda code, message=None: handler.codes.append(code)
    handler.send_header = lambda *args, **kwargs: None
    handler.end_headers = lambda: None
    handler.send_error = lambda code, *args, **kwargs: handler.codes.append(("error", code))
    return handler


def test_default_ports(tmp_path):
    (tmp_path / "houndsite.yaml").write_text("ws_port: null\n", encoding="utf-8")
    server = DevServer(tmp_path)
    assert server.http_port == 4321
    assert server.ws_port == 4322
    assert server.output_dir == tmp_path / "output"
    assert server._staging_dir == tmp_path / "output.staging"


def test_dev_server_port_override(tmp_path):
    server = DevServer(tmp_path, http_port=5055, ws_port=None)
    assert server.http_port == 5055
    assert server.ws_port == 5056

    explicit = DevServer(tmp_path, http_port=5055, ws_port=6000)
    assert explicit.ws_port == 6000
    assert f":{explicit.ws_port}" in explicit._reload_script


def test_ws_port_from_settings(tmp_path):
    (tmp_path / "houndsite.yaml").write_text("port: 8000\nws_port: 9000\n", encoding="utf-8")
    server = DevServer(tmp_path)
    assert (server.http_port, server.ws_port) == (8000, 9000)
    # an explicit http port takes the next port for the websocket
    assert DevServer(tmp_path, http_port=7000).ws_port == 7001


def test_watched_paths(tmp_path):
    for name in ("docs", "src", "public"):
        (tmp_path / name).mkdir()
    server = DevServer(tmp_path)
    assert server.watched_paths() == [tmp_path / "docs", tmp_path / "public", tmp_path / "src"]


def test_change_handler_skips_output(tmp_path):
    server = DevServer(tmp_path)
    called = {}

    def fake_rebuild(include_drafts):
        called["drafts"] = include_drafts

    server.rebuild = fake_rebuild
    handler = _ChangeHandler(server, include_drafts=True)

    handler.on_any_event(DummyEvent(str(server.output_dir / "index.html")))
    handler.on_any_event(DummyEvent(str(server._staging_dir / "quickstart" / "index.html")))
    handler.on_any_event(DummyEvent(str(tmp_path / "docs"), is_directory=True))
    assert not called

    handler.on_any_event(DummyEvent(str(tmp_path / "docs" / "quickstart.md")))
    assert called["drafts"] is True


def test_async_broadcast_drops_closed_clients(tmp_path):
    server = DevServer(tmp_path)

    class GoodWS:
        def __init__(self):
            self.messages = []

        async def send(self, msg):
            self.messages.append(msg)

    class ClosedWS:
        async def send(self, msg):
            raise websockets.ConnectionClosed(None, None)

    good = GoodWS()
    closed = ClosedWS()
    server._ws_clients = {good, closed}
    asyncio.run(server._async_broadcast('{"type": "reload"}'))
    assert good.messages == ['{"type": "reload"}']
    assert server._ws_clients == {good}


def test_ws_handler_forgets_client(tmp_path):
    server = DevServer(tmp_path)

    class DummyWS:
        def __init__(self):
            self.closed = False

        async def wait_closed(self):
            self.closed = True

    ws = DummyWS()
    asyncio.run(server._ws_handler(ws))
    assert ws.closed
    assert ws not in server._ws_clients


def test_build_swaps_staging_into_output(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    server.output_dir.mkdir()
    (server.output_dir / "stale.html").write_text("old", encoding="utf-8")
    called = {}

    def fake_build(root, include_drafts=False, output_dir_override=None):
        called["override"] = output_dir_override
        output_dir_override.mkdir(parents=True)
        (output_dir_override / "index.html").write_text("new", encoding="utf-8")

    monkeypatch.setattr("houndsite.server.build_site", fake_build)
    server.build()
    assert called["override"] == server._staging_dir
    assert (server.output_dir / "index.html").read_text(encoding="utf-8") == "new"
    assert not (server.output_dir / "stale.html").exists()
    assert not server._staging_dir.exists()
    assert server._last_signature == server._compute_signature()


def test_rebuild_guard(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    calls = []
    server.build = lambda include_drafts=False: calls.append("built")
    server._broadcast_reload = lambda: calls.append("reloaded")

    sigs = [("a",), ("a",), ("b",)]
    server._last_signature = ("a",)
    server._compute_signature = lambda: sigs.pop(0)

    assert server.rebuild(include_drafts=False) is False
    assert server.rebuild(include_drafts=False) is False
    assert server.rebuild(include_drafts=False) is True
    assert calls == ["built", "reloaded"]


def test_rebuild_skips_while_locked(tmp_path):
    server = DevServer(tmp_path)
    server.build = lambda include_drafts=False: None
    with server._lock:
        assert server.rebuild(include_drafts=False) is False


def test_rebuild_reports_failures(monkeypatch, tmp_path, capsys):
    server = DevServer(tmp_path)
    reloaded = []
    server._broadcast_reload = lambda: reloaded.append(True)

    def failing_build(*args, **kwargs):
        raise BuildError(tmp_path / "docs" / "index.md", "boom")

    monkeypatch.setattr("houndsite.server.build_site", failing_build)
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "index.md").write_text("# Hi", encoding="utf-8")

    assert server.rebuild(include_drafts=False) is False
    out = capsys.readouterr().out
    assert "Change detected; rebuilding..." in out
    assert "Build failed:" in out
    assert "boom" in out
    assert not reloaded
    assert server._last_signature is None


def test_compute_signature_tracks_config_and_sources(tmp_path):
    server = DevServer(tmp_path)
    assert server._compute_signature() == ()

    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "index.md").write_text("hi", encoding="utf-8")
    (tmp_path / "houndsite.yaml").write_text("port: 4321\n", encoding="utf-8")
    names = [entry[0] for entry in server._compute_signature()]
    assert names == ["houndsite.yaml", "docs/index.md"]


def test_start_watcher(monkeypatch, tmp_path):
    (tmp_path / "docs").mkdir()
    server = DevServer(tmp_path)
    scheduled = []

    class DummyObserver:
        def schedule(self, handler, path, recursive):
            scheduled.append((path, recursive))

        def start(self):
            scheduled.append(("started", True))

        def stop(self):
            scheduled.append(("stopped", False))

        def join(self):
            scheduled.append(("joined", False))

    monkeypatch.setattr("houndsite.server.Observer", DummyObserver)
    server._start_watcher(include_drafts=False)
    assert scheduled == [
        (str(tmp_path / "docs"), True),
        (str(tmp_path), False),
        ("started", True),
    ]

    server.stop()
    assert scheduled[-2:] == [("stopped", False), ("joined", False)]


def test_broadcast_reload_invokes_runner(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    called = {}

    def fake_runner(coro, loop):
        called["loop"] = loop
        new_loop = asyncio.new_event_loop()
        try:
            return new_loop.run_until_complete(coro)
        finally:
            new_loop.close()

    monkeypatch.setattr("houndsite.server.asyncio.run_coroutine_threadsafe", fake_runner)
    server._broadcast_reload()
    assert called["loop"] is server._loop


def test_inject_reload_script():
    assert inject_reload_script("<body>Hi</body>", "<s/>") == "<body>Hi<s/></body>"
    assert inject_reload_script("<p>No body</p>", "<s/>") == "<p>No body</p><s/>"


def test_reload_handler_injects_script(tmp_path):
    (tmp_path / "index.html").write_text("<html><body>Hello</body></html>", encoding="utf-8")
    handler = make_handler(tmp_path, "/")
    assert _ReloadHandler.send_head(handler) is None
    assert handler.codes == [200]
    output = handler.wfile.getvalue()
    assert b"Hello" in output
    assert b"new WebSocket" in output
    assert output.index(b"new WebSocket") < output.index(b"</body>")


def test_reload_handler_serves_custom_404(tmp_path):
    (tmp_path / "404.html").write_text("<html><body>oops</body></html>", encoding="utf-8")
    handler = make_handler(tmp_path, "/missing/")
    _ReloadHandler.send_head(handler)
    assert handler.codes == [404]
    assert b"oops" in handler.wfile.getvalue()


def test_reload_handler_without_404_page(tmp_path):
    (tmp_path / "assets").mkdir()
    handler = make_handler(tmp_path, "/assets/")
    # directories without an index are not listed
    assert _ReloadHandler.send_head(handler) is None
    assert handler.codes == [("error", 404)]


def test_send_head_falls_back_for_static_files(tmp_path):
    (tmp_path / "style.css").write_text("body{}", encoding="utf-8")
    handler = make_handler(tmp_path, "/style.css")
    result = _ReloadHandler.send_head(handler)
    try:
        assert result is not None
        assert result.read() == b"body{}"
    finally:
        result.close()


def test_rebuild_survives_broken_config(monkeypatch, tmp_path, capsys):
    (tmp_path / "houndsite.yaml").write_text("port: 4321\n", encoding="utf-8")
    server = DevServer(tmp_path)
    server._broadcast_reload = lambda: None
    (tmp_path / "houndsite.yaml").write_text("site: [unclosed\n", encoding="utf-8")

    assert server.rebuild(include_drafts=False) is False
    assert "Build failed: houndsite.yaml:" in capsys.readouterr().out


def test_edit_during_build_triggers_next_rebuild(monkeypatch, tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    page = docs / "index.md"
    page.write_text("# One", encoding="utf-8")
    server = DevServer(tmp_path)
    server._broadcast_reload = lambda: None
    builds = []

    def fake_build(root, include_drafts=False, output_dir_override=None):
        builds.append(output_dir_override)
        output_dir_override.mkdir(parents=True)
        if len(builds) == 1:
            # saved while the first build is running
            page.write_text("# One, edited", encoding="utf-8")

    monkeypatch.setattr("houndsite.server.build_site", fake_build)
    server.build()
    assert server._last_signature != server._compute_signature()
    assert server.rebuild(include_drafts=False) is True
    assert len(builds) == 2
    assert server.rebuild(include_drafts=False) is False
