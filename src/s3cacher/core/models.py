"""Core domain models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .errors import InvalidRequestError


class EntryKind(str, Enum):
    """Kind of filesystem object captured in an archive."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True, slots=True)
class Entry:
    """One filesystem object in an archive.

    ``path`` is slash-separated and relative to the cached root. ``source`` is
    the on-disk file the content is streamed from; content is never held in
    memory.
    """

    kind: EntryKind
    path: str
    mode: int
    size: int = 0
    mtime: float = 0.0
    source: Path | None = None


@dataclass(slots=True)
class ArchiveStats:
    """Counters gathered while encoding or decoding an archive."""

    files: int = 0
    directories: int = 0
    bytes: int = 0


@dataclass(frozen=True, slots=True)
class SaveRequest:
    """Input to the save operation."""

    bucket: str
    directory: str
    key: str

    def __post_init__(self) -> None:
        if not self.bucket:
            raise InvalidRequestError("missing bucket")
        if not self.directory:
            raise InvalidRequestError("missing directory")
        if not self.key:
            raise InvalidRequestError("missing key")


@dataclass(frozen=True, slots=True)
class RestoreRequest:
    """Input to the restore operation.

    ``keys`` is ordered most specific first. A list is accepted and stored as a
    tuple.
    """

    bucket: str
    directory: str
    keys: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.bucket:
            raise InvalidRequestError("missing bucket")
        if not self.directory:
            raise InvalidRequestError("missing directory")
        keys = tuple(self.keys or ())
        if not keys:
            raise InvalidRequestError("expected at least one cache key")
        if any(not k for k in keys):
            raise InvalidRequestError("cache keys must not be empty")
        object.__setattr__(self, "keys", keys)


@dataclass(slots=True)
class SaveSummary:
    """Result of a save operation."""

    bucket: str
    key: str
    files: int
    bytes: int
    duration: float


@dataclass(slots=True)
class RestoreSummary:
    """Result of a restore operation."""

    bucket: str
    matched_key: str
    keys_tried: list[str] = field(default_factory=list)
    files: int = 0
    directories: int = 0
    bytes: int = 0
    duration: float = 0.0
