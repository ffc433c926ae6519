"""
Method dispatch for objstore_transport.

Handles express the verb through different options: GET and HEAD have
dedicated switches, PUT is an upload, and every other verb (POST
included, since bodies are raw objects rather than form data) goes out
as a custom request.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .backends.handle import TransferHandle


BODYLESS_METHODS = frozenset({"GET", "HEAD"})


def normalize_method(method: str) -> str:
    """
    Canonical uppercase form of an HTTP method name.

    Raises:
        ValueError: If the method is empty
    """
    normalized = method.strip().upper()
    if not normalized:
        raise ValueError("method must be a non-empty string")
    return normalized


def method_sends_body(method: str) -> bool:
    """Whether an input stream may be attached for this method."""
    return normalize_method(method) not in BODYLESS_METHODS


def dispatch_method(handle: "TransferHandle", method: str) -> str:
    """
    Configure ``handle`` for ``method``.

    Args:
        handle: The handle being prepared for one request
        method: Method name in any case

    Returns:
        The normalized method that was configured
    """
    method = normalize_method(method)

    if method == "GET":
        handle.set_http_get()
    elif method == "HEAD":
        handle.set_nobody()
    elif method == "PUT":
        # PUT without a body is legal, the handle sends a zero length
        handle.set_upload()
    else:
        handle.set_custom_request(method)

    return method
