"""Adapters for s3-cacher."""

from .clock_utc import UtcClockAdapter
from .hash_blake2b import Blake2bHashAdapter
from .logger_std import StdLoggerAdapter
from .storage_s3 import S3ObjectReader, S3ObjectWriter, S3StorageAdapter

__all__ = [
    "Blake2bHashAdapter",
    "S3ObjectReader",
    "S3ObjectWriter",
    "S3StorageAdapter",
    "StdLoggerAdapter",
    "UtcClockAdapter",
]
