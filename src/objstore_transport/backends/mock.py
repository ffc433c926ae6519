"""
Mock backend for testing.

This module provides a scripted TransferHandle and Transporter that can
be used for unit testing without requiring actual network connections.
Each handle records the configuration it received so tests can assert
on method, headers and uploaded bytes.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Sequence, Tuple, Union

from ..config import TransportConfig
from ..headers import split_header_line
from ..transport import HandleTransport
from .handle import TransferHandle


@dataclass
class MockResponse:
    """
    Scripted outcome of one mock exchange.

    ``header_lines`` is the raw header block the backend will capture,
    status line included if wanted. When ``error`` is set the exchange
    fails before any response is received.
    """

    status_code: int = 200
    header_lines: Sequence[str] = field(default_factory=list)
    body: bytes = b""
    error: Optional[BaseException] = None
    effective_url: Optional[str] = None

    @classmethod
    def create(
        cls,
        status_code: int = 200,
        headers: Optional[Sequence[Tuple[str, str]]] = None,
        body: bytes = b"",
        reason: str = "",
    ) -> "MockResponse":
        """
        Create a MockResponse with a status line built from the status.

        Args:
            status_code: HTTP status code
            headers: Optional list of (name, value) header tuples
            body: Response body
            reason: Reason phrase for the status line

        Returns:
            New MockResponse instance
        """
        status_line = f"HTTP/1.1 {status_code} {reason}".rstrip()
        lines = [status_line] + [f"{name}: {value}" for name, value in headers or []]
        return cls(status_code=status_code, header_lines=lines, body=body)

    @classmethod
    def failure(cls, error: Optional[BaseException] = None) -> "MockResponse":
        """An exchange that never reaches the server."""
        return cls(status_code=0, error=error or OSError("Could not resolve host"))


class MockTransferHandle(TransferHandle):
    """
    Mock transfer handle.

    Reads the whole upload into ``uploaded`` and writes the scripted
    header block and body to the sinks, honouring HEAD.
    """

    backend_name = "mock"

    def __init__(self, config: TransportConfig, scripted: MockResponse) -> None:
        super().__init__(config)
        self._scripted = scripted
        self.uploaded: Optional[bytes] = None

    def _perform(self) -> None:
        if self.options["input"] is not None:
            self.uploaded = b"".join(self.read_input())

        if self._scripted.error is not None:
            raise self._scripted.error

        if self._scripted.effective_url:
            self._info["url"] = self._scripted.effective_url

        lines = list(self._scripted.header_lines)
        status_line = None
        if lines and lines[0].startswith("HTTP/"):
            status_line = lines.pop(0)

        # Lines that do not split are captured verbatim
        entries: List[Union[Tuple[str, str], str]] = []
        for line in lines:
            try:
                entries.append(split_header_line(line))
            except ValueError:
                entries.append(line)

        pairs = [entry for entry in entries if isinstance(entry, tuple)]
        self.record_response(self._scripted.status_code, pairs)
        self.write_headers(status_line, entries)

        if not self.options["nobody"] and self._scripted.body:
            self.write_body(self._scripted.body)


class MockTransport(HandleTransport):
    """
    Transport serving scripted responses in order.

    When the queue is empty every request gets a bare 200 response.
    Handles are kept in ``handles`` after use for inspection.
    """

    user_agent_suffix = " (mock)"

    def __init__(
        self,
        responses: Optional[Sequence[MockResponse]] = None,
        config: Optional[TransportConfig] = None,
    ) -> None:
        super().__init__(config)
        self._responses: Deque[MockResponse] = deque(responses or [])
        self.handles: List[MockTransferHandle] = []

    def add_response(self, response: MockResponse) -> None:
        """Queue a response for a later request."""
        self._responses.append(response)

    def _create_handle(self) -> MockTransferHandle:
        scripted = self._responses.popleft() if self._responses else MockResponse()
        handle = MockTransferHandle(self.config, scripted)
        self.handles.append(handle)
        return handle

    @property
    def last_handle(self) -> Optional[MockTransferHandle]:
        return self.handles[-1] if self.handles else None

    def reset(self) -> None:
        """Forget queued responses and recorded handles."""
        self._responses.clear()
        self.handles.clear()
