"""
objstore_transport - Pluggable HTTP transport for object storage APIs

A small, synchronous transport layer: requests go through a uniform
Transporter contract, bodies are streamed through temporary buffers,
and any backend (h11, http.client, or a mock) can be swapped in.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .buffers import StreamBuffer, open_resource
from .config import TransportConfig
from .exceptions import (
    TransportError,
    TransportFailure,
    Unauthorized,
    Forbidden,
    NotFound,
    MethodNotAllowed,
    Conflict,
    LengthRequired,
    PreconditionFailed,
    UnprocessableEntity,
    ServerError,
    ResourceError,
    StreamError,
    ConfigError,
    failure_for_status,
)
from .headers import parse_header_lines, serialize_headers
from .methods import dispatch_method, normalize_method
from .response import Response
from .transport import HandleTransport, Transporter
from .backends import (
    H11Transport,
    HTTPClientTransport,
    MockResponse,
    MockTransport,
    create_transport,
)

__all__ = [
    "StreamBuffer",
    "open_resource",
    "TransportConfig",
    "TransportError",
    "TransportFailure",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "MethodNotAllowed",
    "Conflict",
    "LengthRequired",
    "PreconditionFailed",
    "UnprocessableEntity",
    "ServerError",
    "ResourceError",
    "StreamError",
    "ConfigError",
    "failure_for_status",
    "parse_header_lines",
    "serialize_headers",
    "dispatch_method",
    "normalize_method",
    "Response",
    "Transporter",
    "HandleTransport",
    "H11Transport",
    "HTTPClientTransport",
    "MockResponse",
    "MockTransport",
    "create_transport",
]
