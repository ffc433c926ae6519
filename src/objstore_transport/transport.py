"""
Transporter contract for objstore_transport.

This module defines the Transporter interface every backend satisfies
and HandleTransport, the shared request routine that configures a
backend handle, performs it and turns the captured output into either
a Response or a TransportFailure.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Mapping, Optional, Union

from .buffers import BinaryReader, Resource, StreamBuffer, open_resource
from .config import TransportConfig
from .exceptions import failure_for_status
from .headers import find_header, parse_header_lines, serialize_headers
from .methods import dispatch_method, method_sends_body, normalize_method
from .response import Response

if TYPE_CHECKING:
    from .backends.handle import TransferHandle

logger = logging.getLogger(__name__)

Headers = Optional[Mapping[str, str]]


class Transporter(ABC):
    """
    Interface for HTTP transports.

    Implementations are interchangeable: callers only rely on these two
    operations. Both block until the exchange is complete, return a
    Response for 2xx statuses and raise TransportFailure otherwise.
    """

    @abstractmethod
    def do_request(
        self,
        uri: str,
        method: str = "GET",
        headers: Headers = None,
        body: Union[bytes, str] = b"",
    ) -> Response:
        """
        Send a request whose body is held in memory.

        Args:
            uri: Target URL
            method: HTTP method, any case
            headers: Request headers
            body: Request body, empty for none

        Returns:
            The successful Response

        Raises:
            TransportFailure: On non-2xx status or failed execution
        """
        pass

    @abstractmethod
    def do_request_with_resource(
        self,
        uri: str,
        method: str,
        headers: Headers,
        resource: Resource,
    ) -> Response:
        """
        Send a request whose body is streamed from a resource.

        Args:
            uri: Target URL
            method: HTTP method, any case
            headers: Request headers
            resource: Path to open read-only, or an open binary stream
                used from its current position. Streams are neither
                rewound nor closed.

        Returns:
            The successful Response

        Raises:
            ResourceError: If a path cannot be opened
            TransportFailure: On non-2xx status or failed execution
        """
        pass


class HandleTransport(Transporter):
    """
    Transporter driving a per-request TransferHandle.

    Subclasses provide ``_create_handle()`` and a ``user_agent_suffix``.
    Instances keep no per-request state and can be shared between
    threads.
    """

    user_agent_suffix = ""

    def __init__(self, config: Optional[TransportConfig] = None) -> None:
        self._config = config if config is not None else TransportConfig()

    @property
    def config(self) -> TransportConfig:
        return self._config

    @property
    def user_agent(self) -> str:
        return self._config.user_agent_string(self.user_agent_suffix)

    @abstractmethod
    def _create_handle(self) -> "TransferHandle":
        """Create a fresh handle for one request."""
        pass

    def do_request(
        self,
        uri: str,
        method: str = "GET",
        headers: Headers = None,
        body: Union[bytes, str] = b"",
    ) -> Response:
        stream = None
        if body:
            stream = StreamBuffer.from_bytes(body, self._config.spool_size)

        try:
            return self._execute(uri, method, headers, stream)
        finally:
            if stream is not None:
                stream.close()

    def do_request_with_resource(
        self,
        uri: str,
        method: str,
        headers: Headers,
        resource: Resource,
    ) -> Response:
        stream, owned = open_resource(resource)
        try:
            return self._execute(uri, method, headers, stream)
        finally:
            if owned:
                stream.close()  # type: ignore[attr-defined]

    def _execute(
        self,
        uri: str,
        method: str,
        headers: Headers,
        stream: Optional[BinaryReader],
    ) -> Response:
        method = normalize_method(method)
        logger.debug(f"{method} {uri}")

        start_time = time.monotonic()
        body = StreamBuffer(self._config.spool_size)
        header_block = StreamBuffer(self._config.spool_size)
        handle: Optional["TransferHandle"] = None
        response: Optional[Response] = None

        try:
            handle = self._create_handle()
            self._configure(handle, uri, method, headers, stream, body, header_block)

            ok = handle.perform()
            info = handle.get_info()

            header_block.rewind()
            header_lines = parse_header_lines(header_block)

            status = int(info.get("http_code") or 0)
            if not ok or status < 200 or status > 299:
                if header_lines:
                    message = header_lines[0]
                else:
                    message = f"Unknown (non-HTTP) error: {status}"

                logger.debug(
                    f"{method} {uri} failed: {message} ({time.monotonic() - start_time:.3f}s)"
                )
                raise failure_for_status(
                    status,
                    message,
                    info.get("url") or uri,
                    method,
                    info,
                    cause=handle.error,
                )

            body.rewind()
            response = Response(body, info, header_lines, method=method)

            logger.debug(
                f"{method} {uri} -> {status} ({time.monotonic() - start_time:.3f}s)"
            )
            return response

        finally:
            header_block.close()
            if response is None:
                body.close()
            if handle is not None:
                handle.close()

    def _configure(
        self,
        handle: "TransferHandle",
        uri: str,
        method: str,
        headers: Headers,
        stream: Optional[BinaryReader],
        body: StreamBuffer,
        header_block: StreamBuffer,
    ) -> None:
        handle.set_url(uri)
        dispatch_method(handle, method)
        handle.set_http_headers(serialize_headers(headers))

        # GET and HEAD never send a body, even if one was given
        if stream is not None and method_sends_body(method):
            handle.set_input(stream, _declared_length(headers))

        handle.set_output(body)
        handle.set_header_output(header_block)
        handle.set_user_agent(self.user_agent)
        handle.set_connect_timeout(self._config.connect_timeout)


def _declared_length(headers: Headers) -> Optional[int]:
    """Content-Length from the caller's headers, as a size hint."""
    value = find_header(headers, "Content-Length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.debug(f"Ignoring non-numeric Content-Length: {value!r}")
        return None
