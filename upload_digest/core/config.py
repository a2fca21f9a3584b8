"""Configuration management for upload-digest."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field, field_validator

from upload_digest.core.utils import DEFAULT_CHUNK_SIZE

if TYPE_CHECKING:
    from upload_digest.core.digest import DigestResult

logger = structlog.get_logger()


class DigestOptions(BaseModel):
    """Digest options for a single upload.

    Instances are owned by the caller and passed by reference into the
    digest functions. ``hash_value`` acts as a write-once cache: once it
    holds a digest, that digest is reused for every later request built
    from the same options.
    """

    enabled: bool = Field(
        default=True,
        description="Whether a Digest header should be attached"
    )
    algorithm: str | None = Field(
        default="SHA-256",
        description="Hash algorithm name, e.g. SHA-256 or SHA1"
    )
    hash_value: bytes | None = Field(
        default=None,
        description="Computed digest bytes, set once"
    )

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str | None) -> str | None:
        """Normalise blank algorithm names to None."""
        if v is None:
            return None
        v = v.strip()
        return v or None

    def remember(self, result: DigestResult) -> bool:
        """Store a digest result unless a hash is already cached.

        Args:
            result: Result returned by compute_digest

        Returns:
            True if the result was stored, False if a hash was already cached
        """
        if self.hash_value is not None:
            return False

        self.hash_value = result.value
        self.algorithm = result.algorithm
        return True


class AppConfig(BaseModel):
    """Application configuration."""

    digest: DigestOptions = Field(
        default_factory=DigestOptions,
        description="Default digest options"
    )
    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE,
        description="Read size in bytes used while hashing"
    )

    # Output settings
    output_format: str = Field(
        default="rich",
        description="Output format (rich, json, plain)"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    @classmethod
    def load(cls, config_file: Path | None = None) -> AppConfig:
        """Load configuration from file.

        Args:
            config_file: Path to config file, uses default if None

        Returns:
            Application configuration
        """
        if config_file is None:
            config_file = Path.home() / ".config" / "upload-digest" / "config.json"

        if config_file.exists():
            with open(config_file) as f:
                data = json.load(f)
                return cls(**data)

        # Return defaults
        return cls()

    def save(self, config_file: Path | None = None) -> None:
        """Save configuration to file.

        The cached digest is per upload and is never written out.

        Args:
            config_file: Path to config file, uses default if None
        """
        if config_file is None:
            config_file = Path.home() / ".config" / "upload-digest" / "config.json"

        config_file.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode="json", exclude={"digest": {"hash_value"}})
        with open(config_file, "w") as f:
            json.dump(data, f, indent=2)

        logger.info("config_saved", path=str(config_file))

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        """Validate chunk size value."""
        if v <= 0:
            raise ValueError("Chunk size must be positive")
        return v

    @field_validator("output_format")
    @classmethod
    def validate_output_format(cls, v: str) -> str:
        """Validate output format."""
        valid_formats = {"rich", "json", "plain"}
        if v not in valid_formats:
            raise ValueError(f"Invalid output format: {v}. Valid formats: {valid_formats}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {valid_levels}")
        return v
