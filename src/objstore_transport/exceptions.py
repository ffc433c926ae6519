"""
Custom exceptions for objstore_transport.

This module defines the exception hierarchy used throughout
the library for error handling and debugging.
"""

from typing import Any, Dict, Optional, Type


class TransportError(Exception):
    """Base exception for all objstore_transport errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class TransportFailure(TransportError):
    """
    Raised when an HTTP exchange does not end with a 2xx status.

    Also raised when the backend could not execute the exchange at
    all, in which case ``status_code`` is whatever the backend
    reported (usually 0).
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        url: str,
        method: str,
        info: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause)
        self.status_code = status_code
        self.url = url
        self.method = method
        self.info = info if info is not None else {}

    def __str__(self) -> str:
        return f"{self.method} {self.url} failed ({self.status_code}): {self.message}"


class Unauthorized(TransportFailure):
    """401: the credentials were missing or rejected."""


class Forbidden(TransportFailure):
    """403: the request is not allowed for these credentials."""


class NotFound(TransportFailure):
    """404: the container or object does not exist."""


class MethodNotAllowed(TransportFailure):
    """405: the verb is not supported on this resource."""


class Conflict(TransportFailure):
    """409: the resource is in a conflicting state (e.g. non-empty container)."""


class LengthRequired(TransportFailure):
    """411: the server refused a body without Content-Length."""


class PreconditionFailed(TransportFailure):
    """412: a conditional request header did not match."""


class UnprocessableEntity(TransportFailure):
    """422: the payload did not match the supplied checksum."""


class ServerError(TransportFailure):
    """5xx: the remote service failed."""


_FAILURES_BY_STATUS: Dict[int, Type[TransportFailure]] = {
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
    405: MethodNotAllowed,
    409: Conflict,
    411: LengthRequired,
    412: PreconditionFailed,
    422: UnprocessableEntity,
}


def failure_for_status(
    status_code: int,
    message: str,
    url: str,
    method: str,
    info: Optional[Dict[str, Any]] = None,
    cause: Optional[BaseException] = None,
) -> TransportFailure:
    """
    Build the most specific TransportFailure for a status code.

    Args:
        status_code: Status reported by the backend (0 if no exchange)
        message: Status line or synthetic error message
        url: Effective URL of the request
        method: Normalized request method
        info: Raw backend diagnostic info
        cause: Underlying backend exception, if any

    Returns:
        An exception instance ready to be raised
    """
    if 500 <= status_code <= 599:
        failure_class: Type[TransportFailure] = ServerError
    else:
        failure_class = _FAILURES_BY_STATUS.get(status_code, TransportFailure)

    return failure_class(status_code, message, url, method, info, cause)


class ResourceError(TransportError):
    """Raised when a resource path cannot be opened for upload."""

    def __init__(self, resource: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Resource error: cannot open {resource!r}", cause)
        self.resource = resource


class StreamError(TransportError):
    """Raised when there's an error with stream buffer operations."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Stream error: {message}", cause)


class ConfigError(TransportError):
    """Raised when transport configuration is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Config error: {message}")
