"""BLAKE2b hashing adapter."""

import hashlib
from collections.abc import Sequence
from pathlib import Path

from ..core.errors import ArchiveIOError
from ..ports.hash import HashPort

DIGEST_SIZE = 16
CHUNK_SIZE = 64 * 1024


class Blake2bHashAdapter(HashPort):
    """BLAKE2b implementation of HashPort with a 128-bit digest.

    Every file's content is fed, in list order, into one hasher, so the digest
    depends on both the bytes and the order of the files.
    """

    def hash_files(self, paths: Sequence[str | Path]) -> str:
        h = hashlib.blake2b(digest_size=DIGEST_SIZE)
        for path in paths:
            try:
                with open(path, "rb") as f:
                    for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                        h.update(chunk)
            except OSError as e:
                raise ArchiveIOError(f"failed to hash {path}: {e}", path=str(path)) from e
        return h.hexdigest()
