"""
Integration tests for the network backends.

Runs the h11 and http.client transports against the local object
store server from conftest, so no external network is needed.
"""

import io

import pytest

from objstore_transport.backends import (
    BACKENDS,
    H11Transport,
    HTTPClientTransport,
    MockTransport,
    create_transport,
)
from objstore_transport.backends.utils import format_host_header, parse_url
from objstore_transport.config import TransportConfig
from objstore_transport.exceptions import (
    ConfigError,
    NotFound,
    ServerError,
    TransportFailure,
    Unauthorized,
)


@pytest.fixture(params=[H11Transport, HTTPClientTransport], ids=["h11", "http.client"])
def transport(request, test_config):
    """Each network backend, configured with the test config."""
    return request.param(config=test_config)


class TestBackendExchanges:
    """Test real exchanges against the local server."""

    def test_get(self, transport, http_server) -> None:
        with transport.do_request(f"{http_server}/hello") as response:
            assert response.status_code == 200
            assert response.status_text == "OK"
            assert response.protocol in ("HTTP/1.0", "HTTP/1.1")
            assert response.header_lines[0].startswith("HTTP/")
            assert response.get_header("content-type") == "text/plain"
            assert response.get_header("X-Object-Meta-Color") == "blue"
            assert response.read() == b"hello world"
            assert response.info["http_code"] == 200
            assert response.info["content_type"] == "text/plain"
            assert response.info["size_download"] == 11
            assert response.url == f"{http_server}/hello"

    def test_head(self, transport, http_server) -> None:
        with transport.do_request(f"{http_server}/hello", "HEAD") as response:
            assert response.status_code == 200
            assert response.content_length == 11
            assert response.read() == b""

    def test_no_content(self, transport, http_server) -> None:
        with transport.do_request(f"{http_server}/empty", "DELETE") as response:
            assert response.status_code == 204
            assert response.read() == b""

    def test_put_bytes(self, transport, http_server) -> None:
        with transport.do_request(
            f"{http_server}/echo", "put", {"X-Auth-Token": "abc"}, b"object data"
        ) as response:
            assert response.status_code == 201
            assert response.get_header("X-Received-Method") == "PUT"
            assert response.get_header("X-Received-Token") == "abc"
            assert response.get_header("X-Received-Length") == "11"
            assert response.get_header("X-Received-Chunked") == "no"
            assert response.read() == b"object data"
            assert response.info["size_upload"] == 11

    def test_put_without_body(self, transport, http_server) -> None:
        """Test an empty PUT goes out with a zero length."""
        with transport.do_request(f"{http_server}/echo", "PUT") as response:
            assert response.get_header("X-Received-Content-Length") == "0"
            assert response.get_header("X-Received-Length") == "0"

    @pytest.mark.parametrize("method", ["POST", "COPY", "DELETE"])
    def test_custom_verbs(self, transport, http_server, method) -> None:
        with transport.do_request(f"{http_server}/echo", method, {}, b"raw") as response:
            assert response.get_header("X-Received-Method") == method
            assert response.read() == b"raw"

    def test_get_body_not_sent(self, transport, http_server) -> None:
        with transport.do_request(f"{http_server}/echo", "GET", {}, b"ignored") as response:
            assert response.get_header("X-Received-Length") == "0"

    def test_query_string(self, transport, http_server) -> None:
        with transport.do_request(f"{http_server}/echo?format=json#frag") as response:
            assert response.get_header("X-Received-Target") == "/echo?format=json"

    def test_user_agent(self, transport, http_server) -> None:
        with transport.do_request(f"{http_server}/echo") as response:
            assert response.get_header("X-Received-User-Agent") == transport.user_agent
            assert transport.user_agent.startswith("test-agent/1.0 (")

    def test_upload_from_path(self, transport, http_server, tmp_path) -> None:
        path = tmp_path / "large.bin"
        data = bytes(range(256)) * 1024
        path.write_bytes(data)

        with transport.do_request_with_resource(f"{http_server}/echo", "PUT", {}, path) as response:
            assert response.get_header("X-Received-Length") == str(len(data))
            assert response.get_header("X-Received-Chunked") == "no"
            assert response.read() == data

    def test_upload_unknown_length_is_chunked(self, transport, http_server) -> None:
        """Test streams of unknown size use chunked transfer encoding."""

        class Reader:
            def __init__(self, chunks):
                self._chunks = list(chunks)

            def read(self, size=-1):
                return self._chunks.pop(0) if self._chunks else b""

        source = Reader([b"part one, ", b"part two"])
        with transport.do_request_with_resource(f"{http_server}/echo", "PUT", {}, source) as response:
            assert response.get_header("X-Received-Chunked") == "yes"
            assert response.read() == b"part one, part two"

    def test_upload_with_declared_length(self, transport, http_server) -> None:
        source = io.BytesIO(b"skip:payload")
        source.seek(5)
        headers = {"Content-Length": "7"}

        with transport.do_request_with_resource(f"{http_server}/echo", "PUT", headers, source) as response:
            assert response.get_header("X-Received-Content-Length") == "7"
            assert response.read() == b"payload"

    def test_request_header_recorded(self, transport, http_server) -> None:
        """Test both backends report the request head they sent."""
        with transport.do_request(f"{http_server}/hello", headers={"X-Auth-Token": "abc"}) as response:
            head = response.info["request_header"]
            assert head.startswith("GET /hello HTTP/1.1\r\n")
            assert head.endswith("\r\n\r\n")
            assert "\r\nX-Auth-Token: abc\r\n" in head
            assert f"\r\nUser-Agent: {transport.user_agent}\r\n" in head

    def test_rejected_before_body_read(self, transport, early_reply_server) -> None:
        """Test a reply sent before the upload was read keeps its status."""
        body = b"x" * (32 * 1024 * 1024)

        with pytest.raises(Unauthorized) as exc_info:
            transport.do_request(f"{early_reply_server}/bucket/object", "PUT", {}, body)

        error = exc_info.value
        assert error.status_code == 401
        assert error.message == "HTTP/1.1 401 Unauthorized"
        assert error.info["http_code"] == 401
        assert error.info["content_type"] == "text/plain"
        assert error.method == "PUT"

    def test_small_upload_rejected(self, transport, early_reply_server) -> None:
        with pytest.raises(Unauthorized):
            transport.do_request(f"{early_reply_server}/bucket/object", "PUT", {}, b"tiny")

    def test_not_found(self, transport, http_server) -> None:
        with pytest.raises(NotFound) as exc_info:
            transport.do_request(f"{http_server}/missing")

        error = exc_info.value
        assert error.status_code == 404
        assert error.message.startswith("HTTP/1.")
        assert error.message.endswith("404 Not Found")
        assert error.url == f"{http_server}/missing"
        assert error.method == "GET"

    def test_server_error(self, transport, http_server) -> None:
        with pytest.raises(ServerError) as exc_info:
            transport.do_request(f"{http_server}/broken", "POST", {}, b"x")

        assert exc_info.value.status_code == 503

    def test_connection_refused(self, transport, closed_port_url) -> None:
        """Test a failed connection surfaces as an unknown error."""
        with pytest.raises(TransportFailure) as exc_info:
            transport.do_request(closed_port_url)

        error = exc_info.value
        assert type(error) is TransportFailure
        assert error.status_code == 0
        assert error.message == "Unknown (non-HTTP) error: 0"
        assert isinstance(error.cause, OSError)
        assert "error" in error.info

    def test_bad_url(self, transport) -> None:
        with pytest.raises(TransportFailure) as exc_info:
            transport.do_request("ftp://example.com/file")

        assert exc_info.value.message == "Unknown (non-HTTP) error: 0"
        assert isinstance(exc_info.value.cause, ValueError)

    def test_without_status_line(self, http_server) -> None:
        config = TransportConfig(header_block_includes_status_line=False)
        for transport_class in (H11Transport, HTTPClientTransport):
            with transport_class(config=config).do_request(f"{http_server}/hello") as response:
                assert response.status_code == 200
                assert response.status_text == ""
                assert not response.header_lines[0].startswith("HTTP/")


class TestCreateTransport:
    """Test the backend factory."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("h11", H11Transport),
            ("http.client", HTTPClientTransport),
            ("stdlib", HTTPClientTransport),
            ("MOCK", MockTransport),
        ],
    )
    def test_by_name(self, name, expected) -> None:
        assert type(create_transport(name)) is expected

    def test_default(self) -> None:
        assert isinstance(create_transport(), H11Transport)

    def test_config_passed(self, test_config) -> None:
        assert create_transport("h11", test_config).config is test_config

    def test_unknown(self) -> None:
        with pytest.raises(ConfigError, match="Unknown transport backend: curl"):
            create_transport("curl")

    def test_suffixes_differ(self) -> None:
        suffixes = {cls.user_agent_suffix for cls in BACKENDS.values()}
        assert len(suffixes) == 3


class TestNetworkUtils:
    """Test URL helpers."""

    def test_parse_url(self) -> None:
        assert parse_url("https://example.com/v1/c/o?x=1#top") == ("https", "example.com", 443, "/v1/c/o?x=1")
        assert parse_url("http://example.com:8080") == ("http", "example.com", 8080, "/")

    def test_parse_url_invalid(self) -> None:
        with pytest.raises(ValueError):
            parse_url("http:///path")
        with pytest.raises(ValueError):
            parse_url("ftp://example.com/")

    def test_format_host_header(self) -> None:
        assert format_host_header("example.com", 80, "http") == "example.com"
        assert format_host_header("example.com", 8080, "http") == "example.com:8080"
        assert format_host_header("::1", 8443, "https") == "[::1]:8443"
