"""Core domain errors."""

from collections.abc import Sequence


class CacherError(Exception):
    """Base error for s3-cacher."""

    pass


class InvalidRequestError(CacherError, ValueError):
    """A required request field is missing or empty."""

    pass


class KeyTemplateError(InvalidRequestError):
    """Cache key template could not be rendered."""

    pass


class StoreError(CacherError):
    """Talking to the remote object store failed."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class ObjectNotFoundError(StoreError):
    """Object does not exist in the store."""

    pass


class CacheMissError(CacherError):
    """None of the candidate keys exist in the store."""

    def __init__(self, keys: Sequence[str]):
        self.keys = tuple(keys)
        tried = ", ".join(repr(k) for k in self.keys)
        super().__init__(f"Failed to find cached objects among keys [{tried}]")


class CorruptArchiveError(CacherError):
    """Archive stream is malformed or truncated."""

    pass


class UnsupportedEntryError(CorruptArchiveError):
    """Archive holds an entry that is neither a file nor a directory."""

    def __init__(self, path: str, kind: str):
        super().__init__(f"Unsupported entry type {kind!r} for {path}")
        self.path = path
        self.kind = kind


class ArchiveIOError(CacherError, OSError):
    """Local filesystem read or write failed."""

    def __init__(self, message: str, path: str | None = None):
        CacherError.__init__(self, message)
        self.path = path
