"""
Stream buffers for objstore_transport.

This module provides the rewindable, temp-storage-backed byte buffers
used to hold request bodies, response bodies and raw header blocks
without keeping whole payloads in memory.
"""

import os
import tempfile
from typing import IO, Iterator, Optional, Tuple, Union

from typing_extensions import Protocol, runtime_checkable

from .exceptions import ResourceError, StreamError


# Spill to disk once a buffer grows past 2 MiB
DEFAULT_SPOOL_SIZE = 2 * 1024 * 1024
DEFAULT_CHUNK_SIZE = 64 * 1024


@runtime_checkable
class BinaryReader(Protocol):
    """Anything an upload can be read from."""

    def read(self, size: int = -1) -> bytes:
        ...


Resource = Union[str, "os.PathLike[str]", BinaryReader]


class StreamBuffer:
    """
    Rewindable byte buffer backed by a spooled temporary file.

    Data stays in memory until ``spool_size`` bytes have been written,
    then moves to an anonymous file on disk. The buffer is both the
    sink a backend writes into and the source a consumer reads from.
    """

    def __init__(self, spool_size: int = DEFAULT_SPOOL_SIZE) -> None:
        if spool_size < 0:
            raise ValueError("spool_size must be non-negative")

        self._file: IO[bytes] = tempfile.SpooledTemporaryFile(max_size=spool_size, mode="w+b")
        self._closed = False

    @classmethod
    def from_bytes(
        cls,
        data: Union[bytes, str],
        spool_size: int = DEFAULT_SPOOL_SIZE,
    ) -> "StreamBuffer":
        """
        Create a buffer holding ``data``, positioned at the start.

        Args:
            data: Bytes to hold. Strings are encoded as UTF-8
            spool_size: In-memory threshold before spilling to disk

        Returns:
            New StreamBuffer ready for reading
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        buffer = cls(spool_size)
        buffer.write(data)
        buffer.rewind()
        return buffer

    def _check_open(self) -> None:
        if self._closed:
            raise StreamError("Cannot use closed buffer")

    def write(self, data: bytes) -> int:
        """Append ``data`` at the current position."""
        self._check_open()
        return self._file.write(data)

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything left if negative."""
        self._check_open()
        return self._file.read(size)

    def readline(self, size: int = -1) -> bytes:
        """Read one line, including its terminator."""
        self._check_open()
        return self._file.readline(size)

    def __iter__(self) -> Iterator[bytes]:
        self._check_open()
        while True:
            line = self._file.readline()
            if not line:
                return
            yield line

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the rest of the buffer in chunks of ``chunk_size`` bytes."""
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        while True:
            chunk = self.read(chunk_size)
            if not chunk:
                return
            yield chunk

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        self._check_open()
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        self._check_open()
        return self._file.tell()

    def rewind(self) -> None:
        """Move back to position 0."""
        self.seek(0)

    @property
    def size(self) -> int:
        """Total number of bytes held, independent of position."""
        position = self.tell()
        end = self._file.seek(0, os.SEEK_END)
        self._file.seek(position)
        return end

    def getvalue(self) -> bytes:
        """Return the whole content without moving the position."""
        position = self.tell()
        self._file.seek(0)
        data = self._file.read()
        self._file.seek(position)
        return data

    def close(self) -> None:
        """Release the buffer. Closing twice is a no-op."""
        if not self._closed:
            self._closed = True
            self._file.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "StreamBuffer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"size={self.size}"
        return f"<StreamBuffer {state}>"


def open_resource(resource: Resource) -> Tuple[BinaryReader, bool]:
    """
    Turn an upload resource into a readable stream.

    Paths are opened read-only; open streams are returned untouched
    (position included).

    Args:
        resource: A filesystem path or an open binary stream

    Returns:
        Tuple of (stream, owned). ``owned`` is True when the stream was
        opened here and must be closed by the caller of this function.

    Raises:
        ResourceError: If the path cannot be opened
    """
    if isinstance(resource, (str, os.PathLike)):
        path = os.fspath(resource)
        try:
            return open(path, "rb"), True
        except OSError as e:
            raise ResourceError(path, cause=e) from e

    if not isinstance(resource, BinaryReader):
        raise TypeError(f"resource must be a path or a readable stream, got {type(resource).__name__}")

    return resource, False


def stream_length(stream: BinaryReader) -> Optional[int]:
    """
    Number of bytes left to read from ``stream``, if it can be known.

    Args:
        stream: Upload source

    Returns:
        Remaining length, or None for non-seekable streams
    """
    if isinstance(stream, StreamBuffer):
        return stream.size - stream.tell()

    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        return None

    try:
        position = stream.tell()  # type: ignore[attr-defined]
        end = stream.seek(0, os.SEEK_END)  # type: ignore[attr-defined]
        stream.seek(position)  # type: ignore[attr-defined]
    except (OSError, ValueError):
        return None

    return end - position
