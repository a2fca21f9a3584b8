"""Pytest configuration and shared fixtures for upload_digest tests."""

import io
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from upload_digest.core.config import DigestOptions


class NonSeekableStream(io.RawIOBase):
    """Readable stream that refuses to seek, like a socket or pipe."""

    def __init__(self, data: bytes):
        self._inner = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, buffer) -> int:
        data = self._inner.read(len(buffer))
        buffer[:len(data)] = data
        return len(data)


class CountingStream(io.BytesIO):
    """BytesIO that counts read calls."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.reads = 0

    def read(self, size: int | None = -1) -> bytes:
        self.reads += 1
        return super().read(size)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def sample_data() -> bytes:
    """Sample upload body."""
    return b"%PDF-1.4\n" + bytes(range(256)) * 64 + b"\n%%EOF\n"


@pytest.fixture
def digest_options() -> DigestOptions:
    """Enabled digest options with the default algorithm."""
    return DigestOptions()


@pytest.fixture
def counting_stream(sample_data: bytes) -> CountingStream:
    """Seekable stream over the sample data that counts reads."""
    return CountingStream(sample_data)


@pytest.fixture
def non_seekable_stream(sample_data: bytes) -> NonSeekableStream:
    """Stream over the sample data that cannot seek."""
    return NonSeekableStream(sample_data)
