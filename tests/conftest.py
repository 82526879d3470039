import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

FAKE_RESPONSES = {
    "/containers/json": [],
    "/version": {"Version": "1.10.0", "ApiVersion": "1.22", "Os": "linux"},
    "/info": {"Containers": 0, "Images": 3, "ServerVersion": "1.10.0"},
}


class _RecordingHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        self.server.requests.append(
            {"path": self.path, "headers": httpx.Headers(list(self.headers.items()))}
        )
        route = self.path.split("?", 1)[0].split("/", 2)[-1]
        body = json.dumps(FAKE_RESPONSES.get(f"/{route}", {})).encode()
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def engine():
    """Local HTTP server standing in for the engine; records every request."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _RecordingHandler)
    server.requests = []
    server.address = f"127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def write_config():
    """Write a config.json (dict or raw text) into a directory, creating it."""

    def _write(config_dir: Path, data) -> Path:
        config_dir.mkdir(parents=True, exist_ok=True)
        path = config_dir / "config.json"
        path.write_text(data if isinstance(data, str) else json.dumps(data))
        return path

    return _write
