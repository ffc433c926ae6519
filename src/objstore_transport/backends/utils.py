"""
Network utilities for objstore_transport backends.

This module provides the socket, TLS and URL helpers shared by the
backends that talk to the network themselves.
"""

import socket
import ssl
from typing import List, Optional, Tuple
from urllib.parse import urlparse


def parse_url(url: str) -> Tuple[str, str, int, str]:
    """
    Parse URL into components.

    Args:
        url: URL string to parse

    Returns:
        Tuple of (scheme, host, port, target) where target is the path
        plus query string, as sent on the request line

    Raises:
        ValueError: If URL is malformed
    """
    parsed = urlparse(url)

    scheme = (parsed.scheme or "http").lower()
    if scheme not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme: {scheme}")

    host = parsed.hostname or ""
    if not host:
        raise ValueError("No hostname found in URL")

    port = parsed.port
    if port is None:
        port = 443 if scheme == "https" else 80

    # Fragments never go on the wire
    target = parsed.path or "/"
    if parsed.query:
        target += "?" + parsed.query

    return scheme, host, port, target


def format_host_header(host: str, port: int, scheme: str) -> str:
    """
    Format host header for HTTP requests.

    Args:
        host: Hostname
        port: Port number
        scheme: URL scheme

    Returns:
        Formatted host header string
    """
    if ":" in host:
        host = f"[{host}]"
    if (scheme == "https" and port == 443) or (scheme == "http" and port == 80):
        return host
    return f"{host}:{port}"


def create_ssl_context(
    verify: bool = True,
    alpn_protocols: Optional[List[str]] = None,
) -> ssl.SSLContext:
    """
    Create an SSL context.

    Args:
        verify: Whether to verify the peer certificate and hostname
        alpn_protocols: Optional list of ALPN protocols to negotiate

    Returns:
        Configured SSL context
    """
    context = ssl.create_default_context()
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    if alpn_protocols:
        context.set_alpn_protocols(alpn_protocols)

    return context


def open_connection(
    scheme: str,
    host: str,
    port: int,
    connect_timeout: Optional[float],
    verify_tls: bool = True,
) -> socket.socket:
    """
    Connect to ``host:port``, wrapping in TLS for https.

    The timeout applies to establishing the connection (and the TLS
    handshake) only; the returned socket is blocking without a timeout.

    Raises:
        OSError: If the connection or handshake fails
    """
    sock = socket.create_connection((host, port), timeout=connect_timeout)
    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        if scheme == "https":
            context = create_ssl_context(verify=verify_tls, alpn_protocols=["http/1.1"])
            sock = context.wrap_socket(sock, server_hostname=host)
        sock.settimeout(None)
    except BaseException:
        sock.close()
        raise

    return sock
