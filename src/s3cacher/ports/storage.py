"""Storage port interface."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Protocol


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Remote object metadata."""

    key: str
    last_modified: datetime
    size: int = 0
    content_type: str | None = None
    cache_control: str | None = None


class ObjectWriter(Protocol):
    """Writable stream to a remote object.

    Nothing is visible to readers until ``commit`` returns. ``abort`` discards
    everything written so far.
    """

    def write(self, data: bytes) -> int:
        """Append bytes to the object."""
        ...

    def commit(self) -> None:
        """Publish the object."""
        ...

    def abort(self) -> None:
        """Discard the upload without publishing."""
        ...


class StoragePort(Protocol):
    """Port for object store operations."""

    def head(self, bucket: str, key: str) -> ObjectHead:
        """Get object metadata. Raises ObjectNotFoundError if absent."""
        ...

    def open_writer(
        self,
        bucket: str,
        key: str,
        content_type: str,
        cache_control: str,
    ) -> ObjectWriter:
        """Open a write stream to an object."""
        ...

    def open_reader(self, bucket: str, key: str) -> BinaryIO:
        """Open a read stream on an object. Raises ObjectNotFoundError if absent."""
        ...

    def list(self, bucket: str, prefix: str) -> Iterator[ObjectHead]:
        """List objects under a prefix."""
        ...
