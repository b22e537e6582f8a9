"""Hash port interface."""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol


class HashPort(Protocol):
    """Port for content hashing."""

    def hash_files(self, paths: Sequence[str | Path]) -> str:
        """Hash the concatenated content of files, in order, as hex."""
        ...
