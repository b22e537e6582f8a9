"""Port interfaces for s3-cacher."""

from .clock import ClockPort
from .hash import HashPort
from .logger import LoggerPort
from .storage import ObjectHead, ObjectWriter, StoragePort

__all__ = [
    "ClockPort",
    "HashPort",
    "LoggerPort",
    "ObjectHead",
    "ObjectWriter",
    "StoragePort",
]
