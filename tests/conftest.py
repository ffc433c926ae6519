"""
Pytest configuration for objstore_transport tests.

This file contains shared fixtures and configuration
for all tests in the project, including a local HTTP server
used by the backend integration tests.
"""

import os
import socket
import sys
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Iterator, Tuple

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from objstore_transport.backends.mock import MockTransport
from objstore_transport.config import TransportConfig


class ObjectStoreHandler(BaseHTTPRequestHandler):
    """Tiny object-store-ish server: fixed objects plus an echo endpoint."""

    protocol_version = "HTTP/1.1"

    def log_message(self, format, *args):
        pass

    def _read_body(self) -> Tuple[bytes, bool]:
        if self.headers.get("Transfer-Encoding", "").lower() == "chunked":
            chunks = []
            while True:
                size = int(self.rfile.readline().strip().split(b";")[0], 16)
                if size == 0:
                    while self.rfile.readline() not in (b"\r\n", b"\n", b""):
                        pass
                    break
                chunks.append(self.rfile.read(size))
                self.rfile.readline()
            return b"".join(chunks), True

        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length), False

    def _reply(self, status, body=b"", headers=()):
        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        if status != 204:
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body and self.command != "HEAD":
            self.wfile.write(body)

    def _handle(self):
        body, chunked = self._read_body()

        if self.path == "/hello":
            self._reply(
                200,
                b"hello world",
                [("Content-Type", "text/plain"), ("X-Object-Meta-Color", "blue")],
            )
        elif self.path == "/missing":
            self._reply(404, b"no such object")
        elif self.path == "/broken":
            self._reply(503, b"try later")
        elif self.path == "/empty":
            self._reply(204)
        elif self.path.startswith("/echo"):
            self._reply(
                201,
                body,
                [
                    ("X-Received-Method", self.command),
                    ("X-Received-Length", str(len(body))),
                    ("X-Received-Chunked", "yes" if chunked else "no"),
                    ("X-Received-Content-Length", self.headers.get("Content-Length", "")),
                    ("X-Received-User-Agent", self.headers.get("User-Agent", "")),
                    ("X-Received-Token", self.headers.get("X-Auth-Token", "")),
                    ("X-Received-Target", self.path),
                ],
            )
        else:
            self._reply(400, b"unknown path")

    do_GET = _handle
    do_HEAD = _handle
    do_PUT = _handle
    do_POST = _handle
    do_DELETE = _handle
    do_COPY = _handle


@pytest.fixture(scope="module")
def http_server() -> Iterator[str]:
    """Run the object store handler on a free local port, yield its base URL."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), ObjectStoreHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"

    server.shutdown()
    server.server_close()
    thread.join(timeout=5)


@pytest.fixture
def closed_port_url() -> str:
    """URL on a local port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return f"http://127.0.0.1:{port}/hello"


EARLY_REPLY = (
    b"HTTP/1.1 401 Unauthorized\r\n"
    b"Content-Type: text/plain\r\n"
    b"Content-Length: 12\r\n"
    b"Connection: close\r\n"
    b"\r\n"
    b"bad token.\r\n"
)


def _serve_early_reply(listener: socket.socket, stopped: threading.Event) -> None:
    """Answer each request after its head only, then drop the connection."""
    while not stopped.is_set():
        try:
            conn, _ = listener.accept()
        except socket.timeout:
            continue
        except OSError:
            return

        with conn:
            try:
                conn.settimeout(5)
                head = b""
                while b"\r\n\r\n" not in head:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    head += chunk
                conn.sendall(EARLY_REPLY)
            except OSError:
                continue


@pytest.fixture(scope="module")
def early_reply_server() -> Iterator[str]:
    """Server that rejects uploads without reading the body, yield its base URL."""
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(8)
    listener.settimeout(0.2)

    stopped = threading.Event()
    thread = threading.Thread(target=_serve_early_reply, args=(listener, stopped), daemon=True)
    thread.start()

    host, port = listener.getsockname()[:2]
    yield f"http://{host}:{port}"

    stopped.set()
    thread.join(timeout=5)
    listener.close()


@pytest.fixture
def mock_transport() -> MockTransport:
    """Create a mock transport with default configuration."""
    return MockTransport()


@pytest.fixture
def sample_headers():
    """Sample request headers for testing."""
    return {
        "X-Auth-Token": "token123",
        "Content-Type": "application/octet-stream",
        "X-Object-Meta-Color": "blue",
    }


@pytest.fixture
def sample_header_block():
    """Raw header block as a backend captures it."""
    return [
        b"HTTP/1.1 200 OK\r\n",
        b"Content-Type: text/plain\r\n",
        b"Content-Length: 11\r\n",
        b"ETag: 5eb63bbbe01eeed093cb22bb8f5acdc3\r\n",
        b"\r\n",
    ]


@pytest.fixture
def test_config() -> TransportConfig:
    """Config with a deterministic user agent and short connect timeout."""
    return TransportConfig(user_agent="test-agent/1.0", connect_timeout=5.0)
