"""
Integration tests: a real server on a real port.
"""

import logging
import socket
import threading
from pathlib import Path

import pytest

from conftest import PNG_BYTES, TestServer, send_raw, split_response
from webserver import WebServer, ServerConfig, create_server
from webserver.log import EVENT_LOGGER


class TestServing:
    """End-to-end responses from the synchronous server."""

    def test_index(self, test_server: TestServer):
        """Test GET / returns index.html."""
        status_line, headers, body = split_response(test_server.get("/"))

        assert status_line == "HTTP/1.1 200"
        assert headers["Content-Type"] == "text/html"
        assert headers["Content-Length"] == "2"
        assert body == b"hi"

    def test_nested_path_is_flattened(self, test_server: TestServer):
        """Test that directories in the target are ignored."""
        _, _, body = split_response(test_server.get("/deep/down/index.html"))
        assert body == b"hi"

    def test_not_found(self, test_server: TestServer):
        """Test 404 for a missing file."""
        status_line, headers, body = split_response(test_server.get("/missing.html"))

        assert status_line == "HTTP/1.1 404"
        assert headers["Content-Type"] == "text/html"
        assert body == b"<h2>404: Not Found</h2>"

    def test_post(self, test_server: TestServer):
        """Test 405 for POST."""
        raw = send_raw(test_server.port, b"POST /index.html HTTP/1.1\r\nHost: localhost\r\n\r\n")
        status_line, _, body = split_response(raw)

        assert status_line == "HTTP/1.1 405"
        assert body == b"<h2>405: Method Not Allowed</h2>"

    def test_unsupported_media_type(self, test_server: TestServer):
        """Test 415 for an existing executable."""
        status_line, _, body = split_response(test_server.get("/photo.exe"))

        assert status_line == "HTTP/1.1 415"
        assert body == b"<h2>415: Unsupported Media Type</h2>"

    def test_binary_round_trip(self, test_server: TestServer):
        """Test that image bytes arrive exactly as stored."""
        _, headers, body = split_response(test_server.get("/logo.png"))

        assert headers["Content-Type"] == "image/png"
        assert int(headers["Content-Length"]) == len(PNG_BYTES)
        assert body == PNG_BYTES

    def test_large_file(self, test_server: TestServer, doc_root: Path):
        """Test a body much larger than the read buffer."""
        content = b"0123456789abcdef" * 16384  # 256 KiB
        (doc_root / "big.txt").write_bytes(content)

        _, headers, body = split_response(test_server.get("/big.txt"))

        assert headers["Content-Length"] == str(len(content))
        assert body == content

    def test_content_length_matches_body(self, test_server: TestServer):
        """Test the Content-Length invariant for every kind of answer."""
        for target in ("/", "/style.css", "/logo.png", "/missing", "/data.json"):
            _, headers, body = split_response(test_server.get(target))
            assert int(headers["Content-Length"]) == len(body)

    def test_one_request_per_connection(self, test_server: TestServer):
        """Test that the server closes after one response."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as s:
            s.sendall(b"GET / HTTP/1.1\r\n\r\n")
            data = b""
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                data += chunk

        assert data.count(b"HTTP/1.1 ") == 1


class TestRecovery:
    """The server keeps serving after bad clients."""

    def test_malformed_then_valid(self, test_server: TestServer):
        """Test that a malformed request doesn't affect the next one."""
        assert send_raw(test_server.port, b"GET nothing-here\r\n\r\n") == b""

        _, _, body = split_response(test_server.get("/"))
        assert body == b"hi"

    def test_silent_client_then_valid(self, test_server: TestServer):
        """Test a client that connects and immediately leaves."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0):
            pass

        _, _, body = split_response(test_server.get("/"))
        assert body == b"hi"

    def test_post_does_not_stop_server(self, test_server: TestServer):
        """Test that a 405 leaves the server accepting."""
        send_raw(test_server.port, b"POST / HTTP/1.1\r\n\r\n")
        send_raw(test_server.port, b"PUT / HTTP/1.1\r\n\r\n")

        assert test_server.server.is_running
        assert split_response(test_server.get("/"))[0] == "HTTP/1.1 200"


class TestEventLog:
    """The tagged events a running server emits."""

    def test_request_response_events(self, test_server: TestServer, caplog):
        """Test the log lines for one exchange."""
        caplog.set_level(logging.INFO, logger=EVENT_LOGGER)
        test_server.get("/style.css")

        messages = [r.getMessage() for r in caplog.records if r.name == EVENT_LOGGER]
        assert "[REQUEST] HTTP Verb GET Resource: style.css" in messages
        assert any(m.startswith("[RESPONSE] HTTP/1.1 200 ") for m in messages)

    def test_server_stopped_logged_once(self, config: ServerConfig, caplog):
        """Test [SERVER STOPPED] on stop, even if stop is called twice."""
        caplog.set_level(logging.INFO, logger=EVENT_LOGGER)
        test_srv = TestServer(WebServer(config))
        test_srv.start()

        test_srv.stop()
        test_srv.server.stop()

        stopped = [r for r in caplog.records if r.getMessage() == "[SERVER STOPPED]"]
        assert len(stopped) == 1
        assert not test_srv.server.is_running

    def test_log_file(self, config: ServerConfig, tmp_path: Path):
        """Test that events land in the configured file."""
        from webserver.log import setup_logging

        config.log_file = str(tmp_path / "myOwnWebServer.log")
        config.log_level = "INFO"
        setup_logging(config)

        test_srv = TestServer(WebServer(config))
        test_srv.start()
        try:
            test_srv.get("/missing.html")
        finally:
            test_srv.stop()

        events_logger = logging.getLogger(EVENT_LOGGER)
        for handler in list(events_logger.handlers):
            handler.flush()
            events_logger.removeHandler(handler)
            handler.close()

        text = Path(config.log_file).read_text()
        assert "[REQUEST] HTTP Verb GET Resource: missing.html" in text
        assert "[RESPONSE] 404" in text
        assert "[SERVER STOPPED]" in text


class TestLifecycle:
    """Starting and stopping."""

    def test_stop_releases_port(self, config: ServerConfig):
        """Test that the port is free after stop."""
        test_srv = TestServer(WebServer(config))
        test_srv.start()
        port = test_srv.port
        test_srv.stop()

        with pytest.raises(OSError):
            socket.create_connection(("127.0.0.1", port), timeout=1.0)

    def test_invalid_config_rejected(self, tmp_path: Path):
        """Test that a bad root fails at construction."""
        with pytest.raises(ValueError):
            WebServer(ServerConfig(root=str(tmp_path / "missing")))

    def test_create_server_from_kwargs(self, doc_root: Path):
        """Test the keyword-argument factory."""
        server = create_server(root=str(doc_root), port=0)
        assert server.config.root == str(doc_root)

    def test_create_server_rejects_both(self, config: ServerConfig):
        """Test that config and keywords can't be mixed."""
        with pytest.raises(TypeError):
            create_server(config, port=0)

    def test_custom_mime_lookup(self, config: ServerConfig):
        """Test that the server passes the lookup through to resolution."""
        test_srv = TestServer(WebServer(config, mime_lookup=lambda name: "image/x-test"))
        test_srv.start()
        try:
            status_line, headers, body = split_response(test_srv.get("/photo.exe"))
        finally:
            test_srv.stop()

        assert status_line == "HTTP/1.1 200"
        assert headers["Content-Type"] == "image/x-test"
        assert body == b"MZ\x90\x00"


class TestWorkers:
    """The server with a thread pool."""

    def test_serves_with_workers(self, pooled_server: TestServer):
        """Test a plain request through the pool."""
        _, _, body = split_response(pooled_server.get("/"))
        assert body == b"hi"

    def test_concurrent_clients(self, pooled_server: TestServer):
        """Test many clients at once all get correct answers."""
        targets = ["/", "/logo.png", "/missing.html", "/photo.exe"] * 5
        results = [None] * len(targets)

        def fetch(i, target):
            results[i] = split_response(pooled_server.get(target))

        threads = [threading.Thread(target=fetch, args=(i, t)) for i, t in enumerate(targets)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        expected = {
            "/": "HTTP/1.1 200",
            "/logo.png": "HTTP/1.1 200",
            "/missing.html": "HTTP/1.1 404",
            "/photo.exe": "HTTP/1.1 415",
        }
        for target, (status_line, headers, body) in zip(targets, results):
            assert status_line == expected[target]
            assert int(headers["Content-Length"]) == len(body)

    def test_slow_client_does_not_block_others(self, pooled_server: TestServer):
        """Test that a silent connection doesn't stall the pool."""
        with socket.create_connection(("127.0.0.1", pooled_server.port), timeout=5.0):
            # Connected but silent; another client must still be served
            _, _, body = split_response(pooled_server.get("/"))
            assert body == b"hi"
