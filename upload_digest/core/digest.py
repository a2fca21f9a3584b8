"""Digest header attachment for upload request bodies.

Computes a hash of a seekable upload stream and attaches it to an outgoing
request as ``Digest: <algorithm>=<base64 digest>``. The digest is cached in
the caller's DigestOptions so repeated requests for the same upload (for
example retries) reuse it without reading the stream again.

The digest covers the bytes from the stream's current position to its end.
Callers that want the whole file digested must seek to 0 first. The stream
position is restored after hashing.
"""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Callable
from dataclasses import dataclass, replace
from functools import partial
from typing import Any, BinaryIO, TypeVar

import httpx
import structlog

from upload_digest.core.config import DigestOptions
from upload_digest.core.utils import (
    DEFAULT_CHUNK_SIZE,
    b64encode,
    chunked_read,
    is_seekable,
)

logger = structlog.get_logger()

DIGEST_HEADER = "Digest"
DEFAULT_ALGORITHM = "SHA-256"

HeaderTarget = TypeVar("HeaderTarget", httpx.Client, httpx.AsyncClient, httpx.Request)


class ConfigurationError(Exception):
    """Raised when no hash algorithm can be resolved for a digest.

    Attributes:
        algorithm: The algorithm name that could not be resolved
    """

    def __init__(self, message: str, *, algorithm: str | None = None):
        self.algorithm = algorithm
        super().__init__(message)


@dataclass(frozen=True)
class HashAlgorithm:
    """A named hash implementation."""

    name: str
    factory: Callable[[], Any]

    def new(self) -> Any:
        """Create a fresh hash object."""
        return self.factory()


@dataclass(frozen=True)
class DigestResult:
    """Outcome of a digest computation or cache lookup."""

    algorithm: str
    value: bytes
    computed: bool

    @property
    def base64(self) -> str:
        return b64encode(self.value)

    @property
    def header_value(self) -> str:
        """Value for the Digest header, e.g. ``SHA-256=<base64>``."""
        return f"{self.algorithm}={self.base64}"


class AlgorithmRegistry:
    """Maps algorithm names to hash implementations.

    Names are matched case-insensitively against registered names and
    aliases. Unregistered names are looked up in hashlib when
    ``generic_lookup`` is enabled, which makes any algorithm the local
    OpenSSL build provides usable.
    """

    def __init__(
        self,
        default: str = DEFAULT_ALGORITHM,
        generic_lookup: bool = True
    ):
        self.default = default
        self.generic_lookup = generic_lookup
        self._algorithms: dict[str, HashAlgorithm] = {}

    @staticmethod
    def _key(name: str) -> str:
        return name.strip().upper()

    def register(
        self,
        name: str,
        factory: Callable[[], Any],
        *aliases: str
    ) -> HashAlgorithm:
        """Register an algorithm under its canonical name and aliases.

        Args:
            name: Canonical name used in the Digest header
            factory: Zero-argument callable returning a hash object
            aliases: Additional accepted spellings

        Returns:
            The registered algorithm
        """
        algorithm = HashAlgorithm(name, factory)
        for alias in (name, *aliases):
            self._algorithms[self._key(alias)] = algorithm
        return algorithm

    def names(self) -> list[str]:
        """Canonical names of all registered algorithms."""
        return sorted({algorithm.name for algorithm in self._algorithms.values()})

    def resolve(self, name: str | None) -> HashAlgorithm | None:
        """Resolve a name to an algorithm, or None if it is unknown."""
        if not name:
            return None

        algorithm = self._algorithms.get(self._key(name))
        if algorithm is not None:
            return algorithm

        if self.generic_lookup:
            return self._lookup_hashlib(name)
        return None

    def _lookup_hashlib(self, name: str) -> HashAlgorithm | None:
        lowered = name.strip().lower()
        candidates = dict.fromkeys((
            name.strip(),
            lowered,
            lowered.replace("-", "_"),
            lowered.replace("-", ""),
        ))
        for candidate in candidates:
            try:
                hasher = hashlib.new(candidate)
            except ValueError:
                continue
            # Variable length digests (shake_*) need a length to finalise
            if hasher.digest_size == 0:
                continue
            return HashAlgorithm(name.strip(), partial(hashlib.new, candidate))
        return None

    def select(self, name: str | None) -> HashAlgorithm:
        """Resolve a name, falling back to the default algorithm.

        Args:
            name: Requested algorithm name, may be None

        Returns:
            The requested algorithm named as requested, or the default
            algorithm under its canonical name if the name is unknown

        Raises:
            ConfigurationError: If neither the name nor the default resolves
        """
        algorithm = self.resolve(name)
        if algorithm is not None:
            return replace(algorithm, name=name.strip())

        algorithm = self.resolve(self.default)
        if algorithm is None:
            raise ConfigurationError(
                f"No hash algorithm for '{name}'",
                algorithm=name,
            )

        if name:
            logger.warning(
                "digest_algorithm_fallback",
                requested=name,
                algorithm=algorithm.name,
            )
        return algorithm


def _build_default_registry() -> AlgorithmRegistry:
    registry = AlgorithmRegistry()
    registry.register("SHA-1", hashlib.sha1, "SHA1")
    registry.register("SHA-256", hashlib.sha256, "SHA256")
    registry.register("SHA-384", hashlib.sha384, "SHA384")
    registry.register("SHA-512", hashlib.sha512, "SHA512")
    return registry


default_registry = _build_default_registry()


def compute_digest(
    stream: BinaryIO,
    options: DigestOptions,
    *,
    registry: AlgorithmRegistry | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> DigestResult | None:
    """Compute or reuse the digest for an upload stream.

    Does not modify ``options``; use DigestOptions.remember to cache a
    computed result.

    Args:
        stream: Binary stream positioned at the first byte to digest
        options: Digest options for this upload
        registry: Algorithm registry, defaults to the built-in SHA family
        chunk_size: Read size in bytes

    Returns:
        The digest result, or None if digesting is disabled or the stream
        cannot be seeked back after reading

    Raises:
        ConfigurationError: If no hash algorithm can be resolved
    """
    if not options.enabled:
        logger.debug("digest_skipped", reason="disabled")
        return None

    if options.hash_value is not None:
        if not options.algorithm:
            logger.debug("digest_skipped", reason="unnamed_hash")
            return None
        logger.debug("digest_cached", algorithm=options.algorithm)
        return DigestResult(options.algorithm, options.hash_value, computed=False)

    if not is_seekable(stream):
        logger.debug("digest_skipped", reason="not_seekable")
        return None

    algorithm = (registry or default_registry).select(options.algorithm)

    position = stream.tell()
    hasher = algorithm.new()
    size = 0
    try:
        for chunk in chunked_read(stream, chunk_size):
            hasher.update(chunk)
            size += len(chunk)
    finally:
        stream.seek(position)

    logger.debug(
        "digest_computed",
        algorithm=algorithm.name,
        size=size,
        position=position,
    )
    return DigestResult(algorithm.name, hasher.digest(), computed=True)


def ensure_hash(
    stream: BinaryIO,
    options: DigestOptions,
    *,
    registry: AlgorithmRegistry | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> None:
    """Populate ``options.hash_value`` from the stream if not already set."""
    result = compute_digest(stream, options, registry=registry, chunk_size=chunk_size)
    if result is not None and result.computed:
        options.remember(result)


def _apply(target: HeaderTarget, options: DigestOptions, result: DigestResult | None) -> HeaderTarget:
    if result is None:
        return target

    if result.computed:
        options.remember(result)

    target.headers[DIGEST_HEADER] = result.header_value
    return target


def attach_digest(
    target: HeaderTarget,
    stream: BinaryIO,
    options: DigestOptions,
    *,
    registry: AlgorithmRegistry | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> HeaderTarget:
    """Attach a Digest header for the stream to a client or request.

    Args:
        target: httpx client or request; anything with a mutable ``headers``
            mapping works
        stream: Upload stream, digested from its current position
        options: Digest options; the computed hash and the algorithm
            actually used are stored back into it
        registry: Algorithm registry, defaults to the built-in SHA family
        chunk_size: Read size in bytes

    Returns:
        The same target, for chaining

    Raises:
        ConfigurationError: If no hash algorithm can be resolved
    """
    result = compute_digest(stream, options, registry=registry, chunk_size=chunk_size)
    return _apply(target, options, result)


with_digest = attach_digest


async def attach_digest_async(
    target: HeaderTarget,
    stream: BinaryIO,
    options: DigestOptions,
    *,
    registry: AlgorithmRegistry | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> HeaderTarget:
    """Async variant of attach_digest; hashing runs in a worker thread."""
    result = await asyncio.to_thread(
        compute_digest,
        stream,
        options,
        registry=registry,
        chunk_size=chunk_size,
    )
    return _apply(target, options, result)
