"""
Response object for objstore_transport.

A Response is built by a transport from what the backend captured:
the body buffer, the backend's transfer info and the parsed header
lines. It is the same object whichever backend produced it.
"""

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .buffers import DEFAULT_CHUNK_SIZE, StreamBuffer
from .headers import HeaderLines, is_status_line, parse_status_line, split_header_line

logger = logging.getLogger(__name__)


class Response:
    """
    Successful HTTP response.

    The response owns its body buffer and closes it exactly once, via
    ``close()`` or by leaving a ``with`` block. Everything else is
    fixed at construction.
    """

    def __init__(
        self,
        body: StreamBuffer,
        info: Mapping[str, Any],
        header_lines: HeaderLines,
        method: Optional[str] = None,
    ) -> None:
        """
        Initialize Response.

        Args:
            body: Buffer holding the response body, positioned at 0
            info: Raw transfer info reported by the backend
            header_lines: Parsed header block, optionally led by the
                status line
            method: The request method, if known
        """
        self._body = body
        self._info: Dict[str, Any] = dict(info)
        self._header_lines: HeaderLines = list(header_lines)
        self._method = method or self._info.get("request_method", "")

        self._status_code = int(self._info.get("http_code") or 0)
        self._protocol = ""
        self._status_text = ""
        self._headers: Dict[str, List[str]] = {}
        self._names: Dict[str, str] = {}

        self._parse_header_lines()

    def _parse_header_lines(self) -> None:
        line_code = 0
        for line in self._header_lines:
            if is_status_line(line):
                # A later status line wins, e.g. after a 100 Continue
                self._protocol, line_code, self._status_text = parse_status_line(line)
                continue

            try:
                name, value = split_header_line(line)
            except ValueError:
                logger.debug(f"Ignoring malformed header line: {line!r}")
                continue

            key = name.lower()
            self._headers.setdefault(key, []).append(value)
            self._names[key] = name

        if not self._status_code:
            self._status_code = line_code

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def status_text(self) -> str:
        """Reason phrase from the status line, empty if none was captured."""
        return self._status_text

    @property
    def protocol(self) -> str:
        return self._protocol

    @property
    def header_lines(self) -> HeaderLines:
        return list(self._header_lines)

    @property
    def headers(self) -> Dict[str, str]:
        """Headers keyed by their wire name, last value wins."""
        return {self._names[key]: values[-1] for key, values in self._headers.items()}

    @property
    def info(self) -> Dict[str, Any]:
        return dict(self._info)

    @property
    def url(self) -> str:
        """Effective URL reported by the backend."""
        return self._info.get("url", "")

    @property
    def method(self) -> str:
        return self._method

    @property
    def body(self) -> StreamBuffer:
        return self._body

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a header value by name (case-insensitive)."""
        values = self._headers.get(name.lower())
        if not values:
            return default
        return values[-1]

    def get_header_list(self, name: str) -> List[str]:
        """All values of a repeated header, in wire order."""
        return list(self._headers.get(name.lower(), []))

    def has_header(self, name: str) -> bool:
        """Check if a header exists (case-insensitive)."""
        return name.lower() in self._headers

    @property
    def content_type(self) -> Optional[str]:
        return self.get_header("Content-Type")

    @property
    def content_length(self) -> Optional[int]:
        value = self.get_header("Content-Length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    def read(self, size: int = -1) -> bytes:
        """Read from the body buffer."""
        return self._body.read(size)

    def text(self, encoding: str = "utf-8") -> str:
        """Rest of the body decoded as text."""
        return self._body.read().decode(encoding)

    def iter_bytes(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Stream the rest of the body in chunks."""
        return self._body.iter_chunks(chunk_size)

    def close(self) -> None:
        """Release the body buffer."""
        self._body.close()

    @property
    def closed(self) -> bool:
        return self._body.closed

    def __enter__(self) -> "Response":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Response [{self._status_code}] {self._method} {self.url}>"
