"""Core domain logic."""

from .errors import (
    ArchiveIOError,
    CacheMissError,
    CacherError,
    CorruptArchiveError,
    InvalidRequestError,
    KeyTemplateError,
    ObjectNotFoundError,
    StoreError,
    UnsupportedEntryError,
)
from .models import (
    ArchiveStats,
    Entry,
    EntryKind,
    RestoreRequest,
    RestoreSummary,
    SaveRequest,
    SaveSummary,
)
from .service import CacheService

__all__ = [
    "ArchiveIOError",
    "ArchiveStats",
    "CacheMissError",
    "CacheService",
    "CacherError",
    "CorruptArchiveError",
    "Entry",
    "EntryKind",
    "InvalidRequestError",
    "KeyTemplateError",
    "ObjectNotFoundError",
    "RestoreRequest",
    "RestoreSummary",
    "SaveRequest",
    "SaveSummary",
    "StoreError",
    "UnsupportedEntryError",
]
