"""Shared utilities for upload-digest."""

from __future__ import annotations

import base64
from collections.abc import Iterator
from typing import BinaryIO

DEFAULT_CHUNK_SIZE = 64 * 1024


def chunked_read(
    stream: BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE
) -> Iterator[bytes]:
    """Read stream in chunks until it is exhausted.

    Args:
        stream: Binary stream to read from
        chunk_size: Size of each chunk in bytes

    Yields:
        Data chunks as bytes

    Raises:
        ValueError: If chunk_size is not positive

    Example:
        >>> import io
        >>> stream = io.BytesIO(b"hello world")
        >>> list(chunked_read(stream, chunk_size=5))
        [b'hello', b' worl', b'd']
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        yield chunk


def is_seekable(stream: object) -> bool:
    """Check whether a stream can report and restore its position.

    Objects without a ``seekable`` method are treated as not seekable.

    Example:
        >>> import io
        >>> is_seekable(io.BytesIO(b""))
        True
        >>> is_seekable(object())
        False
    """
    seekable = getattr(stream, "seekable", None)
    if seekable is None:
        return False
    return bool(seekable())


def b64encode(data: bytes) -> str:
    """Encode bytes as standard (padded) base64 text.

    Example:
        >>> b64encode(b"hello")
        'aGVsbG8='
    """
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    """Decode standard base64 text.

    Raises:
        ValueError: If text is not valid base64

    Example:
        >>> b64decode("aGVsbG8=")
        b'hello'
    """
    return base64.b64decode(text, validate=True)


def format_size(size: int) -> str:
    """Format byte size as human-readable string.

    Example:
        >>> format_size(1024)
        '1.0 KB'
        >>> format_size(512)
        '512 B'
    """
    if size < 0:
        return "0 B"

    size_float = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_float < 1024.0:
            if unit == "B":
                return f"{int(size_float)} {unit}"
            return f"{size_float:.1f} {unit}"
        size_float /= 1024.0
    return f"{size_float:.1f} PB"
