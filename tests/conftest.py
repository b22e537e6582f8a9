"""Shared fixtures."""

import io
import os
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from s3cacher.adapters import StdLoggerAdapter
from s3cacher.core import CacheService
from s3cacher.core.errors import ObjectNotFoundError
from s3cacher.ports.storage import ObjectHead

EPOCH = datetime(2026, 1, 1, tzinfo=UTC)


@dataclass
class StoredObject:
    data: bytes
    last_modified: datetime
    content_type: str | None = None
    cache_control: str | None = None


class InMemoryWriter(io.RawIOBase):
    """Object writer that publishes into InMemoryStorage on commit."""

    def __init__(self, storage, bucket, key, content_type, cache_control):
        super().__init__()
        self.storage = storage
        self.bucket = bucket
        self.key = key
        self.content_type = content_type
        self.cache_control = cache_control
        self.buffer = bytearray()
        self.committed = False
        self.aborted = False

    def writable(self):
        return True

    def write(self, data):
        if self.storage.fail_write is not None:
            raise self.storage.fail_write
        self.buffer += bytes(data)
        return len(data)

    def commit(self):
        if self.storage.fail_commit is not None:
            raise self.storage.fail_commit
        self.committed = True
        self.storage.put(
            self.bucket,
            self.key,
            bytes(self.buffer),
            content_type=self.content_type,
            cache_control=self.cache_control,
        )

    def abort(self):
        self.aborted = True
        if self.storage.fail_abort is not None:
            raise self.storage.fail_abort


class InMemoryStorage:
    """StoragePort fake.

    Every published object gets a last-modified time one second later than the
    previous one, unless an explicit time is given to ``put``.
    """

    def __init__(self):
        self.objects: dict[tuple[str, str], StoredObject] = {}
        self.writers: list[InMemoryWriter] = []
        self.head_errors: dict[str, Exception] = {}
        self.head_calls: list[str] = []
        self.fail_write: Exception | None = None
        self.fail_commit: Exception | None = None
        self.fail_abort: Exception | None = None
        self._tick = 0

    def put(self, bucket, key, data, last_modified=None, content_type=None, cache_control=None):
        if last_modified is None:
            self._tick += 1
            last_modified = EPOCH + timedelta(seconds=self._tick)
        self.objects[(bucket, key)] = StoredObject(
            data=data,
            last_modified=last_modified,
            content_type=content_type,
            cache_control=cache_control,
        )

    def head(self, bucket: str, key: str) -> ObjectHead:
        self.head_calls.append(key)
        if key in self.head_errors:
            raise self.head_errors[key]
        obj = self.objects.get((bucket, key))
        if obj is None:
            raise ObjectNotFoundError(f"Object not found: {bucket}/{key}", key=key)
        return ObjectHead(
            key=key,
            last_modified=obj.last_modified,
            size=len(obj.data),
            content_type=obj.content_type,
            cache_control=obj.cache_control,
        )

    def open_writer(self, bucket, key, content_type, cache_control):
        writer = InMemoryWriter(self, bucket, key, content_type, cache_control)
        self.writers.append(writer)
        return writer

    def open_reader(self, bucket, key):
        obj = self.objects.get((bucket, key))
        if obj is None:
            raise ObjectNotFoundError(f"Object not found: {bucket}/{key}", key=key)
        return io.BytesIO(obj.data)

    def list(self, bucket: str, prefix: str) -> Iterator[ObjectHead]:
        for (b, key), obj in sorted(self.objects.items()):
            if b == bucket and key.startswith(prefix):
                yield ObjectHead(key=key, last_modified=obj.last_modified, size=len(obj.data))


class FixedClock:
    def __init__(self, now=EPOCH):
        self._now = now

    def now(self):
        return self._now


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def service(storage):
    logger = StdLoggerAdapter(name="s3cacher.tests", level="ERROR")
    return CacheService(storage=storage, clock=FixedClock(), logger=logger)


@pytest.fixture
def tree(tmp_path):
    """Small source tree with nested files and distinct permission bits."""
    root = tmp_path / "src"
    (root / "pkg" / "sub").mkdir(parents=True)
    (root / "empty").mkdir()
    files = {
        "top.txt": (b"top level\n", 0o644),
        "pkg/module.py": (b"print('hi')\n", 0o600),
        "pkg/sub/run.sh": (b"#!/bin/sh\necho run\n", 0o755),
        "pkg/sub/blob.bin": (os.urandom(200_000), 0o640),
        "pkg/zero": (b"", 0o444),
    }
    for rel, (data, mode) in files.items():
        path = root / rel
        path.write_bytes(data)
        path.chmod(mode)
    return root, files


def read_tree(root):
    """Map of relative path -> (bytes, mode) for every regular file under root."""
    out = {}
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            full = os.path.join(dirpath, name)
            if os.path.islink(full):
                continue
            rel = os.path.relpath(full, root).replace(os.sep, "/")
            with open(full, "rb") as f:
                out[rel] = (f.read(), os.stat(full).st_mode & 0o7777)
    return out
