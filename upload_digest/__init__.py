"""Upload Digest - Digest headers for HTTP upload request bodies.

Computes a hash of a seekable upload stream and attaches it to an httpx
client or request as a ``Digest: <algorithm>=<base64>`` header, caching the
hash in the caller's options and leaving the stream position untouched.

Key modules:
- core: Digest computation, configuration and utilities
"""

__version__ = "0.1.0"
__author__ = "Upload Digest Team"

# Re-export commonly used types and functions
from upload_digest.core.config import DigestOptions
from upload_digest.core.digest import (
    ConfigurationError,
    DigestResult,
    attach_digest,
    compute_digest,
    with_digest,
)

__all__ = [
    "__version__",
    "__author__",
    "ConfigurationError",
    "DigestOptions",
    "DigestResult",
    "attach_digest",
    "compute_digest",
    "with_digest",
]
