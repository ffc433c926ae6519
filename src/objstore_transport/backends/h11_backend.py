"""
h11 backend for objstore_transport.

Drives the HTTP/1.1 exchange with the h11 state machine over a plain
or TLS socket. One connection is opened per request and closed when
the response has been read.
"""

import logging
import socket
from typing import List, Optional, Tuple

import h11

from ..transport import HandleTransport
from .handle import TransferHandle
from .utils import format_host_header, open_connection, parse_url

logger = logging.getLogger(__name__)


class H11Handle(TransferHandle):
    """Transfer handle speaking HTTP/1.1 through h11."""

    backend_name = "h11"
    transfer_errors = (OSError, ValueError, h11.ProtocolError)

    def _perform(self) -> None:
        scheme, host, port, target = parse_url(self.url)
        sock = open_connection(
            scheme,
            host,
            port,
            self.options.get("connect_timeout"),
            verify_tls=self.config.verify_tls,
        )
        try:
            connection = h11.Connection(h11.CLIENT)
            send_error = self._send_request(sock, connection, scheme, host, port, target)
            if send_error is None:
                self._receive_response(sock, connection)
            else:
                self._receive_early_response(sock, connection, send_error)
        finally:
            sock.close()

    def _build_headers(self, scheme: str, host: str, port: int) -> List[Tuple[str, str]]:
        pairs = self.request_header_pairs()
        names = {name.lower() for name, _ in pairs}

        if "host" not in names:
            pairs.insert(0, ("Host", format_host_header(host, port, scheme)))

        if self.sends_body() and "content-length" not in names and "transfer-encoding" not in names:
            size = self.upload_size()
            if size is None:
                pairs.append(("Transfer-Encoding", "chunked"))
            elif size or self.options["upload"]:
                pairs.append(("Content-Length", str(size)))

        # One request per connection
        if "connection" not in names:
            pairs.append(("Connection", "close"))

        return pairs

    def _send_request(
        self,
        sock: socket.socket,
        connection: h11.Connection,
        scheme: str,
        host: str,
        port: int,
        target: str,
    ) -> Optional[ConnectionError]:
        """
        Send the request head and body.

        Returns:
            None once the whole request is sent, or the socket error that
            cut the body short. The server may already have replied, so
            the caller still reads the response.
        """
        headers = self._build_headers(scheme, host, port)
        request = h11.Request(method=self.method, target=target, headers=headers)
        data = connection.send(request)
        self._info["request_header"] = data.decode("iso-8859-1")
        sock.sendall(data)

        try:
            if self.sends_body():
                for chunk in self.read_input():
                    sock.sendall(connection.send(h11.Data(data=chunk)))

            sock.sendall(connection.send(h11.EndOfMessage()))
        except ConnectionError as e:
            logger.debug(f"h11 request body cut short: {self.method} {self.url}: {e!r}")
            return e

        return None

    def _receive_early_response(
        self,
        sock: socket.socket,
        connection: h11.Connection,
        send_error: ConnectionError,
    ) -> None:
        """Read a reply the server sent before taking the whole body."""
        try:
            self._receive_response(sock, connection)
        except self.transfer_errors:
            if not self._info["http_code"]:
                raise send_error
            # Reset after the reply; the status and headers are kept
            logger.debug(f"h11 connection reset after early reply: {self.method} {self.url}")

        if not self._info["http_code"]:
            raise send_error

    def _receive_response(self, sock: socket.socket, connection: h11.Connection) -> None:
        while True:
            event = connection.next_event()

            if event is h11.NEED_DATA:
                connection.receive_data(sock.recv(self.config.chunk_size))
                continue

            if isinstance(event, h11.InformationalResponse):
                continue

            if isinstance(event, h11.Response):
                pairs = [
                    (name.decode("iso-8859-1"), value.decode("iso-8859-1"))
                    for name, value in event.headers.raw_items()
                ]
                version = event.http_version.decode("ascii")
                reason = event.reason.decode("iso-8859-1")
                status_line = f"HTTP/{version} {event.status_code} {reason}".rstrip()
                self.record_response(event.status_code, pairs)
                self.write_headers(status_line, pairs)
                continue

            if isinstance(event, h11.Data):
                self.write_body(event.data)
                continue

            if isinstance(event, (h11.EndOfMessage, h11.ConnectionClosed)):
                logger.debug(
                    f"h11 exchange done: {self.method} {self.url} -> {self._info['http_code']}"
                )
                return


class H11Transport(HandleTransport):
    """Transport backed by the h11 protocol library."""

    user_agent_suffix = " (h11)"

    def _create_handle(self) -> H11Handle:
        return H11Handle(self.config)
