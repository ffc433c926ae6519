"""
http.client backend for objstore_transport.

Uses the standard library HTTP stack. The connection is opened
explicitly so that the connect timeout can be dropped once connected,
leaving the transfer itself unbounded.
"""

import http.client
import logging
from typing import Any, Dict, List, Optional, Union

from ..transport import HandleTransport
from .handle import TransferHandle
from .utils import create_ssl_context, parse_url

logger = logging.getLogger(__name__)


class _CountingReader:
    """File-like view of a handle's input stream for ``http.client``."""

    def __init__(self, handle: TransferHandle) -> None:
        self._chunks = handle.read_input()
        self._pending = b""

    def read(self, size: int = -1) -> bytes:
        while size < 0 or len(self._pending) < size:
            chunk = next(self._chunks, b"")
            if not chunk:
                break
            self._pending += chunk

        if size < 0:
            data, self._pending = self._pending, b""
        else:
            data, self._pending = self._pending[:size], self._pending[size:]
        return data


class _HeadRecorder:
    """Keeps the request head as it is handed to ``http.client``."""

    request_lines: List[str]

    def putrequest(self, method: str, url: str, *args: Any, **kwargs: Any) -> None:
        self.request_lines = [f"{method} {url} HTTP/1.1"]
        super().putrequest(method, url, *args, **kwargs)  # type: ignore[misc]

    def putheader(self, header: str, *values: Any) -> None:
        super().putheader(header, *values)  # type: ignore[misc]
        text = [v.decode("iso-8859-1") if isinstance(v, bytes) else str(v) for v in values]
        self.request_lines.append(f"{header}: {', '.join(text)}")

    @property
    def request_head(self) -> str:
        lines = getattr(self, "request_lines", [])
        if not lines:
            return ""
        return "\r\n".join(lines) + "\r\n\r\n"


class _HTTPConnection(_HeadRecorder, http.client.HTTPConnection):
    pass


class _HTTPSConnection(_HeadRecorder, http.client.HTTPSConnection):
    pass


class HTTPClientHandle(TransferHandle):
    """Transfer handle built on ``http.client``."""

    backend_name = "http.client"
    transfer_errors = (OSError, ValueError, http.client.HTTPException)

    def _perform(self) -> None:
        scheme, host, port, target = parse_url(self.url)
        timeout = self.options.get("connect_timeout")

        connection: Union[_HTTPConnection, _HTTPSConnection]
        if scheme == "https":
            context = create_ssl_context(verify=self.config.verify_tls)
            connection = _HTTPSConnection(host, port, timeout=timeout, context=context)
        else:
            connection = _HTTPConnection(host, port, timeout=timeout)

        connection.blocksize = self.config.chunk_size
        try:
            connection.connect()
            connection.sock.settimeout(None)

            send_error: Optional[ConnectionError] = None
            try:
                connection.request(
                    self.method, target, body=self._request_body(), headers=self._build_headers()
                )
            except ConnectionError as e:
                # The server may have replied before taking the whole body
                logger.debug(f"http.client request cut short: {self.method} {self.url}: {e!r}")
                send_error = e
            finally:
                self._info["request_header"] = connection.request_head

            try:
                response = connection.getresponse()
            except self.transfer_errors:
                if send_error is not None:
                    raise send_error
                raise

            try:
                self._capture(response, cut_short=send_error is not None)
            finally:
                response.close()
        finally:
            connection.close()

    def _build_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        for name, value in self.request_header_pairs():
            headers[name] = value

        names = {name.lower() for name in headers}
        if self.sends_body() and "content-length" not in names and "transfer-encoding" not in names:
            # http.client falls back to chunked encoding when no length is given
            size = self.upload_size()
            if size is not None and (size or self.options["upload"]):
                headers["Content-Length"] = str(size)

        headers.setdefault("Connection", "close")
        return headers

    def _request_body(self) -> Optional[_CountingReader]:
        if not self.sends_body() or self.options["input"] is None:
            return None
        return _CountingReader(self)

    def _capture(self, response: http.client.HTTPResponse, cut_short: bool = False) -> None:
        version = "1.0" if response.version == 10 else "1.1"
        status_line = f"HTTP/{version} {response.status} {response.reason}".rstrip()
        pairs = response.getheaders()
        self.record_response(response.status, pairs)
        self.write_headers(status_line, pairs)

        # HTTPResponse already returns nothing for HEAD
        while True:
            try:
                chunk = response.read(self.config.chunk_size)
            except ConnectionError:
                if not cut_short:
                    raise
                # Reset after an early reply; the status and headers are kept
                logger.debug(f"http.client connection reset after early reply: {self.method} {self.url}")
                break
            if not chunk:
                break
            self.write_body(chunk)

        logger.debug(f"http.client exchange done: {self.method} {self.url} -> {response.status}")


class HTTPClientTransport(HandleTransport):
    """Transport backed by the standard library ``http.client``."""

    user_agent_suffix = " (http.client)"

    def _create_handle(self) -> HTTPClientHandle:
        return HTTPClientHandle(self.config)
