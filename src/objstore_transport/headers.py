"""
Header codec for objstore_transport.

Backends capture the response header block as raw text, one header per
line, sometimes preceded by the status line. This module turns that
block into an ordered list of lines and serializes request headers
into the ``Name: Value`` wire form.
"""

import re
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union


HeaderLines = List[str]

_STATUS_LINE_RE = re.compile(r"^(HTTP/\d(?:\.\d)?)\s+(\d{3})(?:\s+(.*))?$")

# Header blocks are Latin-1 on the wire
HEADER_ENCODING = "iso-8859-1"


def serialize_headers(headers: Optional[Mapping[str, str]]) -> HeaderLines:
    """
    Serialize a header mapping into wire lines.

    Args:
        headers: Header names mapped to values, iteration order is kept

    Returns:
        List of ``"Name: Value"`` strings
    """
    if not headers:
        return []
    return [f"{name}: {value}" for name, value in headers.items()]


def parse_header_lines(lines: Iterable[Union[bytes, str]]) -> HeaderLines:
    """
    Parse a raw header block into trimmed, non-empty lines.

    Works on anything that yields lines: a rewound StreamBuffer, an
    open file or a plain list. CRLF and LF terminators are both
    accepted and a leading status line is kept as-is.

    Args:
        lines: Iterable of raw lines

    Returns:
        Header lines in the order they were read
    """
    parsed: HeaderLines = []
    for line in lines:
        if isinstance(line, bytes):
            line = line.decode(HEADER_ENCODING)
        line = line.strip()
        if line:
            parsed.append(line)
    return parsed


def is_status_line(line: str) -> bool:
    """Check whether ``line`` looks like ``HTTP/1.1 200 OK``."""
    return _STATUS_LINE_RE.match(line) is not None


def parse_status_line(line: str) -> Tuple[str, int, str]:
    """
    Split a status line into its parts.

    Args:
        line: A line such as ``HTTP/1.1 404 Not Found``

    Returns:
        Tuple of (protocol, status_code, status_text)

    Raises:
        ValueError: If the line is not a status line
    """
    match = _STATUS_LINE_RE.match(line)
    if match is None:
        raise ValueError(f"Not a status line: {line!r}")
    protocol, code, text = match.groups()
    return protocol, int(code), text or ""


def split_header_line(line: str) -> Tuple[str, str]:
    """
    Split ``Name: Value`` into its name and value.

    Args:
        line: A single header line

    Returns:
        Tuple of (name, value), both trimmed

    Raises:
        ValueError: If the line has no colon
    """
    name, sep, value = line.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"Malformed header line: {line!r}")
    return name.strip(), value.strip()


def find_header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Case-insensitive lookup in a request header mapping."""
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def format_header_block(
    status_line: Optional[str],
    headers: Sequence[Union[Tuple[str, str], str]],
) -> bytes:
    """
    Render a captured header block the way a backend writes it.

    Args:
        status_line: Status line to lead with, or None to omit it
        headers: (name, value) pairs in wire order. A plain string is
            written verbatim, for lines that do not split.

    Returns:
        CRLF-terminated header block ending with a blank line
    """
    lines = [] if status_line is None else [status_line]
    for header in headers:
        if isinstance(header, str):
            lines.append(header)
        else:
            lines.append(f"{header[0]}: {header[1]}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode(HEADER_ENCODING, errors="replace")
