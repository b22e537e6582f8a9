"""Centralized configuration for s3-cacher."""

import os
from dataclasses import dataclass, field

from .errors import InvalidRequestError

DEFAULT_CACHE_CONTROL = "public,max-age=3600"
MIN_PART_SIZE_MB = 5


@dataclass(slots=True)
class CacherConfig:
    """All s3-cacher configuration in one place.

    Environment variables (all optional):
        CACHER_LOG_LEVEL:       Logging level. Default "INFO".
        CACHER_PART_SIZE_MB:    Multipart upload part size in MB. Default 8,
                                never below 5 (the S3 minimum).
        CACHER_CACHE_CONTROL:   Cache-Control header stored on saved objects.
                                Default "public,max-age=3600".
        CACHER_ENDPOINT_URL:    S3-compatible endpoint (MinIO, LocalStack, ...).
    """

    log_level: str = "INFO"
    part_size_mb: int = 8
    cache_control: str = DEFAULT_CACHE_CONTROL

    # Connection params (typically passed by CLI)
    endpoint_url: str | None = field(default=None, repr=False)
    region: str | None = None
    profile: str | None = None

    @property
    def part_size(self) -> int:
        """Multipart part size in bytes."""
        return max(self.part_size_mb, MIN_PART_SIZE_MB) * 1024 * 1024

    @classmethod
    def from_env(
        cls,
        *,
        log_level: str | None = None,
        endpoint_url: str | None = None,
        region: str | None = None,
        profile: str | None = None,
    ) -> "CacherConfig":
        """Build config from environment variables + explicit overrides.

        Raises:
            InvalidRequestError: If ``CACHER_PART_SIZE_MB`` is not an integer.
        """
        raw_part_size = os.environ.get("CACHER_PART_SIZE_MB", "8")
        try:
            part_size_mb = int(raw_part_size)
        except ValueError as e:
            raise InvalidRequestError(
                f"CACHER_PART_SIZE_MB must be an integer, got {raw_part_size!r}"
            ) from e

        return cls(
            log_level=log_level or os.environ.get("CACHER_LOG_LEVEL", "INFO"),
            part_size_mb=part_size_mb,
            cache_control=os.environ.get("CACHER_CACHE_CONTROL", DEFAULT_CACHE_CONTROL),
            endpoint_url=endpoint_url or os.environ.get("CACHER_ENDPOINT_URL"),
            region=region,
            profile=profile,
        )
