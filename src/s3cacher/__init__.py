"""s3-cacher - Save and restore directory caches in S3."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("s3-cacher")
except PackageNotFoundError:
    # Package is not installed, so version is not available
    __version__ = "0.0.0+unknown"

from .core import (
    CacheMissError,
    CacherError,
    CacheService,
    RestoreRequest,
    SaveRequest,
)

__all__ = [
    "CacheMissError",
    "CacheService",
    "CacherError",
    "RestoreRequest",
    "SaveRequest",
    "__version__",
]
