"""Core functionality for upload_digest.

This module provides:
- Digest options and application configuration
- Hash algorithm resolution
- Digest computation and header attachment
- Stream utilities
"""

from upload_digest.core.config import AppConfig, DigestOptions
from upload_digest.core.digest import (
    DEFAULT_ALGORITHM,
    DIGEST_HEADER,
    AlgorithmRegistry,
    ConfigurationError,
    DigestResult,
    HashAlgorithm,
    attach_digest,
    attach_digest_async,
    compute_digest,
    default_registry,
    ensure_hash,
    with_digest,
)
from upload_digest.core.utils import (
    b64decode,
    b64encode,
    chunked_read,
    format_size,
    is_seekable,
)

__all__ = [
    # Config
    "AppConfig",
    "DigestOptions",
    # Digest
    "DEFAULT_ALGORITHM",
    "DIGEST_HEADER",
    "AlgorithmRegistry",
    "ConfigurationError",
    "DigestResult",
    "HashAlgorithm",
    "attach_digest",
    "attach_digest_async",
    "compute_digest",
    "default_registry",
    "ensure_hash",
    "with_digest",
    # Utils
    "b64decode",
    "b64encode",
    "chunked_read",
    "format_size",
    "is_seekable",
]
