"""Core CacheService orchestration."""

import gzip
from pathlib import Path

from ..ports import ClockPort, LoggerPort, StoragePort
from ..ports.storage import ObjectHead
from .archive import extract_archive, write_archive
from .cleanup import CloseStack, describe_error
from .config import DEFAULT_CACHE_CONTROL
from .errors import (
    ArchiveIOError,
    CacheMissError,
    CorruptArchiveError,
    ObjectNotFoundError,
    StoreError,
)
from .models import (
    ArchiveStats,
    RestoreRequest,
    RestoreSummary,
    SaveRequest,
    SaveSummary,
)

CONTENT_TYPE = "application/gzip"
COMPRESS_LEVEL = 9


class CacheService:
    """Core service for cache save and restore."""

    def __init__(
        self,
        storage: StoragePort,
        clock: ClockPort,
        logger: LoggerPort,
        cache_control: str = DEFAULT_CACHE_CONTROL,
    ):
        self.storage = storage
        self.clock = clock
        self.logger = logger
        self.cache_control = cache_control

    def save(self, request: SaveRequest) -> SaveSummary:
        """Archive ``request.directory`` and upload it under ``request.key``.

        The archive is streamed straight from disk through gzip into the
        object writer. The object is published only if every stage, including
        teardown of the compressor, succeeds; otherwise the upload is aborted,
        also when the process is interrupted.
        """
        start_time = self.clock.now()
        directory = Path(request.directory)

        self.logger.info(
            "Starting save operation",
            bucket=request.bucket,
            key=request.key,
            dir=str(directory),
        )

        if not directory.is_dir():
            raise ArchiveIOError(
                f"failed to walk files: {directory} is not a directory", path=str(directory)
            )

        stack = CloseStack()
        error: BaseException | None = None
        stats = ArchiveStats()
        try:
            writer = self.storage.open_writer(
                request.bucket,
                request.key,
                content_type=CONTENT_TYPE,
                cache_control=self.cache_control,
            )
            stack.push(
                "object writer",
                lambda ok: writer.commit() if ok else writer.abort(),
                StoreError,
            )

            compressor = gzip.GzipFile(
                fileobj=writer,  # type: ignore[arg-type]
                mode="wb",
                compresslevel=COMPRESS_LEVEL,
                mtime=0,
            )
            stack.push("gzip writer", lambda ok: compressor.close(), ArchiveIOError)

            stats = write_archive(directory, compressor)
        except BaseException as e:
            error = e

        error = stack.unwind(error)
        if error is not None:
            self.logger.error(
                "Save failed",
                bucket=request.bucket,
                key=request.key,
                error=describe_error(error),
            )
            raise error

        duration = (self.clock.now() - start_time).total_seconds()
        self.logger.log_operation(
            op="save",
            key=request.key,
            bucket=request.bucket,
            sizes={"files": stats.files, "bytes": stats.bytes},
            durations={"total": duration},
        )

        return SaveSummary(
            bucket=request.bucket,
            key=request.key,
            files=stats.files,
            bytes=stats.bytes,
            duration=duration,
        )

    def restore(self, request: RestoreRequest) -> RestoreSummary:
        """Restore the freshest object among ``request.keys`` into the directory."""
        start_time = self.clock.now()

        self.logger.info(
            "Starting restore operation",
            bucket=request.bucket,
            keys=list(request.keys),
            dir=request.directory,
        )

        match = self.find_match(request.bucket, request.keys)
        self.logger.info(
            "Found cached object",
            key=match.key,
            last_modified=match.last_modified.isoformat(),
            size=match.size,
        )

        directory = Path(request.directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveIOError(
                f"failed to make target directory: {e}", path=str(directory)
            ) from e

        stack = CloseStack()
        error: BaseException | None = None
        stats = ArchiveStats()
        try:
            reader = self.storage.open_reader(request.bucket, match.key)
            stack.push("object reader", lambda ok: reader.close(), StoreError)

            decompressor = gzip.GzipFile(fileobj=reader, mode="rb")
            stack.push("gzip reader", lambda ok: decompressor.close(), CorruptArchiveError)

            stats = extract_archive(decompressor, directory)
        except BaseException as e:
            error = e

        error = stack.unwind(error)
        if error is not None:
            self.logger.error(
                "Restore failed",
                bucket=request.bucket,
                key=match.key,
                error=describe_error(error),
            )
            raise error

        duration = (self.clock.now() - start_time).total_seconds()
        self.logger.log_operation(
            op="restore",
            key=match.key,
            bucket=request.bucket,
            sizes={"files": stats.files, "bytes": stats.bytes, "object": match.size},
            durations={"total": duration},
            keys_tried=len(request.keys),
        )

        return RestoreSummary(
            bucket=request.bucket,
            matched_key=match.key,
            keys_tried=list(request.keys),
            files=stats.files,
            directories=stats.directories,
            bytes=stats.bytes,
            duration=duration,
        )

    def find_match(self, bucket: str, keys: tuple[str, ...] | list[str]) -> ObjectHead:
        """Return the most recently updated existing object among ``keys``.

        Missing keys are skipped. Ties keep the earlier key.

        Raises:
            CacheMissError: If none of the keys exist.
            StoreError: If a lookup fails for any reason other than not found.
        """
        best: ObjectHead | None = None
        for key in keys:
            try:
                head = self.storage.head(bucket, key)
            except ObjectNotFoundError:
                self.logger.debug("Cache key not found", key=key)
                continue
            except StoreError as e:
                raise StoreError(f"failed to get attributes for {key}: {e}", key=key) from e

            if best is None or head.last_modified > best.last_modified:
                best = head

        if best is None:
            raise CacheMissError(keys)
        return best

    def list_entries(self, bucket: str, prefix: str = "") -> list[ObjectHead]:
        """List cached objects under ``prefix``, newest first."""
        self.logger.debug("Listing cached objects", bucket=bucket, prefix=prefix)
        heads = list(self.storage.list(bucket, prefix))
        heads.sort(key=lambda h: h.last_modified, reverse=True)
        return heads
