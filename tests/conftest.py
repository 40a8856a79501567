"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webserver import WebServer, ServerConfig


# Bytes that are not valid UTF-8 or ASCII; must survive the trip unchanged
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe\x00\x80"


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """A document root with one file of each interesting kind."""
    (tmp_path / "index.html").write_bytes(b"hi")
    (tmp_path / "style.css").write_bytes(b"body { color: red; }")
    (tmp_path / "logo.png").write_bytes(PNG_BYTES)
    (tmp_path / "photo.exe").write_bytes(b"MZ\x90\x00")
    (tmp_path / "data.json").write_bytes(b'{"a": 1}')
    (tmp_path / "subdir").mkdir()
    return tmp_path


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /docs/index.html HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def config(doc_root: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        root=str(doc_root),
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        accept_timeout=0.1,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def send_raw(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes to the server and read until it closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        if data:
            s.sendall(data)
        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes):
    """Split a raw response into (status line, headers dict, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return lines[0], headers, body


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: WebServer):
        self.server = server
        self.port = 0
        self._thread: threading.Thread = None

    def start(self):
        """Bind, then serve from a background thread."""
        self.server.start()
        self.port = self.server.address[1]

        self._thread = threading.Thread(
            target=self.server.serve_forever,
            daemon=True
        )
        self._thread.start()

        # Wait for the accept loop to be running
        for _ in range(50):  # 5 seconds max
            if self.server.is_running:
                return
            time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def get(self, target: str) -> bytes:
        return send_raw(self.port, f"GET {target} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())

    def stop(self):
        """Stop the server."""
        self.server.stop()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A synchronous server over doc_root."""
    test_srv = TestServer(WebServer(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()


@pytest.fixture
def pooled_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """A server over doc_root that hands connections to 4 workers."""
    config.workers = 4
    test_srv = TestServer(WebServer(config))
    test_srv.start()

    yield test_srv

    test_srv.stop()
