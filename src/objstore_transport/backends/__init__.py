"""
Backend implementations for objstore_transport.

This module provides the concrete transports and a factory that
selects one by name.
"""

from typing import Dict, Optional, Type

from ..config import TransportConfig
from ..exceptions import ConfigError
from ..transport import HandleTransport
from .handle import TransferHandle
from .h11_backend import H11Handle, H11Transport
from .stdlib import HTTPClientHandle, HTTPClientTransport
from .mock import MockResponse, MockTransferHandle, MockTransport

BACKENDS: Dict[str, Type[HandleTransport]] = {
    "h11": H11Transport,
    "http.client": HTTPClientTransport,
    "stdlib": HTTPClientTransport,
    "mock": MockTransport,
}


def create_transport(name: str = "h11", config: Optional[TransportConfig] = None) -> HandleTransport:
    """
    Create a transport by backend name.

    Args:
        name: One of ``"h11"``, ``"http.client"`` (alias ``"stdlib"``)
            or ``"mock"``
        config: Optional transport configuration

    Returns:
        A new transport instance

    Raises:
        ConfigError: If the backend name is unknown
    """
    try:
        transport_class = BACKENDS[name.lower()]
    except KeyError:
        raise ConfigError(f"Unknown transport backend: {name}") from None

    return transport_class(config=config)


__all__ = [
    "TransferHandle",
    "H11Handle",
    "H11Transport",
    "HTTPClientHandle",
    "HTTPClientTransport",
    "MockResponse",
    "MockTransferHandle",
    "MockTransport",
    "BACKENDS",
    "create_transport",
]
