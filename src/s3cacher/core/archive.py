"""Archive codec: directory tree <-> tar stream.

Only regular files and directories are supported. Encoding emits one entry per
regular file found beneath the root; symlinks and special files are skipped.
Decoding accepts file and directory entries and rejects everything else.
"""

import gzip
import os
import shutil
import stat
import tarfile
import zlib
from collections.abc import Iterator
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from .errors import ArchiveIOError, CorruptArchiveError, UnsupportedEntryError
from .models import ArchiveStats, Entry, EntryKind

COPY_BUFSIZE = 64 * 1024
DIRECTORY_MODE = 0o755

# Errors raised by tarfile/gzip/zlib when the stream itself is bad
_STREAM_ERRORS = (tarfile.TarError, EOFError, zlib.error, gzip.BadGzipFile)

_ENTRY_KIND_NAMES = {
    tarfile.SYMTYPE: "symlink",
    tarfile.LNKTYPE: "hardlink",
    tarfile.CHRTYPE: "character device",
    tarfile.BLKTYPE: "block device",
    tarfile.FIFOTYPE: "fifo",
}


def entry_path(root: str, path: str, sep: str = os.sep) -> str:
    """Return ``path`` relative to ``root`` as a forward-slash path.

    The root prefix and any leading separator are stripped. ``sep`` is the
    separator used by both arguments, so the result does not depend on the
    host platform.

    Raises:
        ValueError: If ``path`` is not beneath ``root``.
    """
    root_posix = root.replace(sep, "/").rstrip("/")
    path_posix = path.replace(sep, "/")
    if root_posix:
        if path_posix != root_posix and not path_posix.startswith(root_posix + "/"):
            raise ValueError(f"{path!r} is not beneath {root!r}")
        path_posix = path_posix[len(root_posix) :]
    return path_posix.lstrip("/")


def iter_entries(root: str | Path) -> Iterator[Entry]:
    """Lazily yield an Entry for every regular file beneath ``root``.

    Traversal is sorted so the same tree always produces the same sequence.
    Symlinks are never followed.

    Raises:
        ArchiveIOError: If the tree cannot be walked or a file cannot be stat-ed.
    """
    top = os.fspath(root)

    def _onerror(exc: OSError) -> None:
        raise ArchiveIOError(
            f"failed to walk {exc.filename}: {exc.strerror or exc}", path=exc.filename
        ) from exc

    for dirpath, dirnames, filenames in os.walk(top, onerror=_onerror):
        dirnames.sort()
        for name in sorted(filenames):
            full = os.path.join(dirpath, name)
            try:
                st = os.lstat(full)
            except OSError as e:
                raise ArchiveIOError(f"failed to stat {full}: {e}", path=full) from e

            if not stat.S_ISREG(st.st_mode):
                continue

            yield Entry(
                kind=EntryKind.FILE,
                path=entry_path(top, full),
                mode=stat.S_IMODE(st.st_mode),
                size=st.st_size,
                mtime=st.st_mtime,
                source=Path(full),
            )


def write_archive(root: str | Path, fileobj: BinaryIO) -> ArchiveStats:
    """Stream every regular file beneath ``root`` into ``fileobj`` as tar.

    The tar stream is finalized before returning; ``fileobj`` itself is left
    open for the caller.
    """
    stats = ArchiveStats()
    with tarfile.open(fileobj=fileobj, mode="w|", format=tarfile.PAX_FORMAT) as tar:
        for entry in iter_entries(root):
            info = tarfile.TarInfo(entry.path)
            info.type = tarfile.REGTYPE
            info.mode = entry.mode
            info.size = entry.size
            info.mtime = int(entry.mtime)

            source = entry.source if entry.source is not None else Path(root, entry.path)
            try:
                with open(source, "rb") as src:
                    tar.addfile(info, src)
            except OSError as e:
                raise ArchiveIOError(
                    f"failed to archive {entry.path}: {e}", path=str(source)
                ) from e

            stats.files += 1
            stats.bytes += entry.size
    return stats


def extract_archive(fileobj: BinaryIO, target: str | Path) -> ArchiveStats:
    """Replay a tar stream from ``fileobj`` into the ``target`` directory.

    Entries are processed in stream order. Missing parent directories are
    created as needed.

    Raises:
        CorruptArchiveError: If the stream is malformed, truncated, or holds an
            entry path that escapes ``target``.
        UnsupportedEntryError: If an entry is neither a file nor a directory.
        ArchiveIOError: If a local file or directory cannot be written.
    """
    root = Path(target)
    stats = ArchiveStats()
    try:
        with tarfile.open(fileobj=fileobj, mode="r|") as tar:
            for member in tar:
                _extract_member(tar, member, root, stats)
    except _STREAM_ERRORS as e:
        raise CorruptArchiveError(f"failed to read archive: {e}") from e
    return stats


def _extract_member(
    tar: tarfile.TarFile, member: tarfile.TarInfo, root: Path, stats: ArchiveStats
) -> None:
    dest = _member_target(root, member.name)

    if member.isdir():
        _make_dirs(dest)
        stats.directories += 1
    elif member.isreg():
        _make_dirs(dest.parent)
        src = tar.extractfile(member)
        if src is None:
            raise CorruptArchiveError(f"missing content for {member.name}")
        _write_file(dest, src, stat.S_IMODE(member.mode))
        stats.files += 1
        stats.bytes += member.size
    else:
        kind = _ENTRY_KIND_NAMES.get(member.type, repr(member.type))
        raise UnsupportedEntryError(member.name, kind)


def _member_target(root: Path, name: str) -> Path:
    path = PurePosixPath(name)
    if not name or path.is_absolute() or ".." in path.parts:
        raise CorruptArchiveError(f"unsafe entry path {name!r}")
    return root.joinpath(*path.parts)


def _make_dirs(path: Path) -> None:
    try:
        path.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
    except OSError as e:
        raise ArchiveIOError(f"failed to make directory {path}: {e}", path=str(path)) from e


def _write_file(dest: Path, src: BinaryIO, mode: int) -> None:
    try:
        fd = os.open(dest, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as out:
            shutil.copyfileobj(src, out, COPY_BUFSIZE)
        # open() only applies the mode on creation and through the umask
        os.chmod(dest, mode)
    except _STREAM_ERRORS:
        raise
    except OSError as e:
        raise ArchiveIOError(f"failed to write {dest}: {e}", path=str(dest)) from e
