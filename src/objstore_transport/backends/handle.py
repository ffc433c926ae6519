"""
Transfer handle interface for objstore_transport.

A TransferHandle is configured for exactly one request through a set of
option calls, then performed. It mirrors the primitives a curl easy
handle exposes: method switches, request headers, an input stream, a
body sink, a header sink, user agent and connect timeout.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type, Union

from ..buffers import BinaryReader, StreamBuffer, stream_length
from ..config import TransportConfig
from ..headers import HeaderLines, format_header_block, split_header_line

logger = logging.getLogger(__name__)


class TransferHandle(ABC):
    """
    Interface for per-request backend handles.

    Option setters only record configuration; nothing touches the
    network until ``perform()``. Subclasses implement ``_perform()``
    and list in ``transfer_errors`` the exceptions that mean the
    exchange failed (as opposed to a bug).
    """

    backend_name = "abstract"
    transfer_errors: Tuple[Type[BaseException], ...] = (OSError,)

    def __init__(self, config: TransportConfig) -> None:
        self._config = config
        self.options: Dict[str, Any] = {
            "method": "GET",
            "nobody": False,
            "upload": False,
            "custom_request": None,
            "http_headers": [],
            "input": None,
            "input_size": None,
        }
        self.error: Optional[BaseException] = None
        self._closed = False
        self._info: Dict[str, Any] = {
            "http_code": 0,
            "url": "",
            "content_type": None,
            "size_upload": 0,
            "size_download": 0,
            "total_time": 0.0,
            "backend": self.backend_name,
        }

    # Option setters

    def set_url(self, url: str) -> None:
        self.options["url"] = url
        self._info["url"] = url

    def set_http_get(self) -> None:
        self.options.update(method="GET", nobody=False, upload=False, custom_request=None)

    def set_nobody(self) -> None:
        """Configure a HEAD request: no response body is read."""
        self.options.update(method="HEAD", nobody=True, upload=False, custom_request=None)

    def set_upload(self) -> None:
        """Configure a PUT whose body comes from the input stream, if any."""
        self.options.update(method="PUT", nobody=False, upload=True, custom_request=None)

    def set_custom_request(self, method: str) -> None:
        """Send ``method`` verbatim, with the input stream as raw body."""
        self.options.update(method=method, nobody=False, upload=False, custom_request=method)

    def set_http_headers(self, lines: HeaderLines) -> None:
        self.options["http_headers"] = list(lines)

    def set_input(self, stream: BinaryReader, size: Optional[int] = None) -> None:
        """
        Attach the upload source.

        Args:
            stream: Readable stream, read from its current position
            size: Known number of bytes to send, if any
        """
        self.options["input"] = stream
        self.options["input_size"] = size

    def set_output(self, sink: StreamBuffer) -> None:
        self.options["output"] = sink

    def set_header_output(self, sink: StreamBuffer) -> None:
        self.options["header_output"] = sink

    def set_user_agent(self, user_agent: str) -> None:
        self.options["user_agent"] = user_agent

    def set_connect_timeout(self, seconds: float) -> None:
        self.options["connect_timeout"] = seconds

    # Execution

    def perform(self) -> bool:
        """
        Execute the configured exchange.

        Returns:
            True if an HTTP response was received (whatever its status),
            False if the exchange could not be carried out. The reason
            is kept in ``error`` and ``get_info()["error"]``.
        """
        if self._closed:
            raise RuntimeError("Handle is closed")

        start_time = time.monotonic()
        try:
            self._perform()
            return True
        except self.transfer_errors as e:
            self.error = e
            self._info["error"] = str(e) or type(e).__name__
            logger.warning(
                f"{self.backend_name} transfer failed: {self.method} {self.url}: {e!r}"
            )
            return False
        finally:
            self._info["total_time"] = time.monotonic() - start_time

    @abstractmethod
    def _perform(self) -> None:
        """
        Carry out the exchange.

        Implementations write the header block to the header sink, the
        body to the output sink, and record ``http_code`` in the info.
        """
        pass

    def get_info(self) -> Dict[str, Any]:
        """Transfer info: at least ``http_code`` and ``url``."""
        info = dict(self._info)
        info["request_method"] = self.method
        return info

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    # Helpers for subclasses

    @property
    def method(self) -> str:
        return self.options["method"]

    @property
    def url(self) -> str:
        return self.options.get("url", "")

    @property
    def config(self) -> TransportConfig:
        return self._config

    def sends_body(self) -> bool:
        """Whether the request carries a body section at all."""
        return self.options["upload"] or self.options["custom_request"] is not None

    def upload_size(self) -> Optional[int]:
        """
        Number of bytes the upload will carry, if it can be known.

        An upload with no input stream is zero bytes long.
        """
        stream = self.options["input"]
        if stream is None:
            return 0
        if self.options["input_size"] is not None:
            return self.options["input_size"]
        return stream_length(stream)

    def request_header_pairs(self) -> List[Tuple[str, str]]:
        """Configured request headers plus the user agent."""
        pairs = [split_header_line(line) for line in self.options["http_headers"]]
        user_agent = self.options.get("user_agent")
        if user_agent and not any(name.lower() == "user-agent" for name, _ in pairs):
            pairs.append(("User-Agent", user_agent))
        return pairs

    def read_input(self) -> Iterator[bytes]:
        """Yield the upload in chunks, counting what was sent."""
        stream = self.options["input"]
        if stream is None:
            return
        while True:
            chunk = stream.read(self._config.chunk_size)
            if not chunk:
                return
            self._info["size_upload"] += len(chunk)
            yield chunk

    def write_headers(
        self,
        status_line: Optional[str],
        pairs: Sequence[Union[Tuple[str, str], str]],
    ) -> None:
        """Write the captured header block to the header sink."""
        sink = self.options.get("header_output")
        if sink is None:
            return
        if not self._config.header_block_includes_status_line:
            status_line = None
        sink.write(format_header_block(status_line, pairs))

    def write_body(self, data: bytes) -> None:
        """Append response body bytes to the output sink."""
        self._info["size_download"] += len(data)
        sink = self.options.get("output")
        if sink is not None:
            sink.write(data)

    def record_response(self, status_code: int, pairs: List[Tuple[str, str]]) -> None:
        self._info["http_code"] = status_code
        for name, value in pairs:
            if name.lower() == "content-type":
                self._info["content_type"] = value
