"""S3 storage adapter."""

import io
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.cleanup import fold_close_error
from ..core.errors import ObjectNotFoundError, StoreError
from ..ports.storage import ObjectHead, StoragePort

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client

DEFAULT_PART_SIZE = 8 * 1024 * 1024

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _store_error(op: str, bucket: str, key: str, exc: Exception) -> StoreError:
    """Map a botocore failure to the domain error taxonomy."""
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        if code in _NOT_FOUND_CODES:
            return ObjectNotFoundError(f"Object not found: {bucket}/{key}", key=key)
    return StoreError(f"failed to {op} {bucket}/{key}: {exc}", key=key)


class S3ObjectWriter(io.RawIOBase):
    """Write stream publishing one S3 object on commit.

    Small objects go out as a single PutObject. Once more than one part's worth
    of data has been written a multipart upload is started; commit completes
    it, abort cancels it. S3 never exposes a partially uploaded object.
    """

    def __init__(
        self,
        client: "S3Client",
        bucket: str,
        key: str,
        content_type: str,
        cache_control: str,
        part_size: int = DEFAULT_PART_SIZE,
    ):
        super().__init__()
        self.client = client
        self.bucket = bucket
        self.key = key
        self.content_type = content_type
        self.cache_control = cache_control
        self.part_size = part_size
        self._buffer = bytearray()
        self._upload_id: str | None = None
        self._parts: list[dict[str, Any]] = []
        self._finished = False

    def writable(self) -> bool:
        return True

    def write(self, data: Any) -> int:
        if self._finished:
            raise ValueError("write to finished object writer")
        view = memoryview(data)
        self._buffer += view
        while len(self._buffer) >= self.part_size:
            chunk = bytes(self._buffer[: self.part_size])
            del self._buffer[: self.part_size]
            self._upload_part(chunk)
        return view.nbytes

    def commit(self) -> None:
        """Publish the object."""
        self._finish()
        try:
            if self._upload_id is None:
                self.client.put_object(
                    Bucket=self.bucket,
                    Key=self.key,
                    Body=bytes(self._buffer),
                    ContentType=self.content_type,
                    CacheControl=self.cache_control,
                )
            else:
                if self._buffer:
                    self._upload_part(bytes(self._buffer))
                self.client.complete_multipart_upload(
                    Bucket=self.bucket,
                    Key=self.key,
                    UploadId=self._upload_id,
                    MultipartUpload={"Parts": self._parts},
                )
        except BaseException as e:
            error = e
            if isinstance(e, (BotoCoreError, ClientError)):
                error = _store_error("upload", self.bucket, self.key, e)
            if self._upload_id is not None:
                try:
                    self._abort_upload()
                except StoreError as abort_error:
                    fold_close_error(error, abort_error, "multipart upload")
            if error is e:
                raise
            raise error from e
        finally:
            self._buffer.clear()
            super().close()

    def abort(self) -> None:
        """Discard everything written without publishing."""
        self._finish()
        try:
            if self._upload_id is not None:
                self._abort_upload()
        finally:
            self._buffer.clear()
            super().close()

    def _finish(self) -> None:
        if self._finished:
            raise ValueError("object writer already committed or aborted")
        self._finished = True

    def _upload_part(self, chunk: bytes) -> None:
        try:
            if self._upload_id is None:
                response = self.client.create_multipart_upload(
                    Bucket=self.bucket,
                    Key=self.key,
                    ContentType=self.content_type,
                    CacheControl=self.cache_control,
                )
                self._upload_id = response["UploadId"]

            part_number = len(self._parts) + 1
            response = self.client.upload_part(
                Bucket=self.bucket,
                Key=self.key,
                UploadId=self._upload_id,
                PartNumber=part_number,
                Body=chunk,
            )
        except (BotoCoreError, ClientError) as e:
            raise _store_error("upload part to", self.bucket, self.key, e) from e
        self._parts.append({"ETag": response["ETag"], "PartNumber": part_number})

    def _abort_upload(self) -> None:
        try:
            self.client.abort_multipart_upload(
                Bucket=self.bucket, Key=self.key, UploadId=self._upload_id
            )
        except (BotoCoreError, ClientError) as e:
            raise _store_error("abort upload of", self.bucket, self.key, e) from e
        finally:
            self._upload_id = None


class S3ObjectReader(io.RawIOBase):
    """Raw read stream over a GetObject response body."""

    def __init__(self, body: Any, bucket: str, key: str):
        super().__init__()
        self._body = body
        self.bucket = bucket
        self.key = key

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        try:
            data = self._body.read(len(buffer))
        except (BotoCoreError, ClientError) as e:
            raise _store_error("read", self.bucket, self.key, e) from e
        n = len(data)
        buffer[:n] = data
        return n

    def close(self) -> None:
        if not self.closed:
            try:
                self._body.close()
            finally:
                super().close()


class S3StorageAdapter(StoragePort):
    """S3 implementation of StoragePort."""

    def __init__(
        self,
        client: "S3Client | None" = None,
        endpoint_url: str | None = None,
        region: str | None = None,
        profile: str | None = None,
        part_size: int = DEFAULT_PART_SIZE,
    ):
        """Initialize with S3 client.

        Args:
            client: Pre-built boto3 S3 client. Built from the other args if omitted.
            endpoint_url: Custom endpoint for S3-compatible stores.
            region: AWS region name.
            profile: Named AWS profile.
            part_size: Multipart upload part size in bytes.
        """
        if client is None:
            try:
                session = boto3.Session(profile_name=profile, region_name=region)
                client = session.client("s3", endpoint_url=endpoint_url)
            except BotoCoreError as e:
                raise StoreError(f"failed to create storage client: {e}") from e
        self.client = client
        self.part_size = part_size

    def head(self, bucket: str, key: str) -> ObjectHead:
        """Get object metadata."""
        try:
            response = self.client.head_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise _store_error("head", bucket, key, e) from e

        return ObjectHead(
            key=key,
            last_modified=response["LastModified"],
            size=response.get("ContentLength", 0),
            content_type=response.get("ContentType"),
            cache_control=response.get("CacheControl"),
        )

    def open_writer(
        self,
        bucket: str,
        key: str,
        content_type: str,
        cache_control: str,
    ) -> S3ObjectWriter:
        """Open a write stream to an object."""
        return S3ObjectWriter(
            self.client,
            bucket,
            key,
            content_type=content_type,
            cache_control=cache_control,
            part_size=self.part_size,
        )

    def open_reader(self, bucket: str, key: str) -> BinaryIO:
        """Open a read stream on an object."""
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise _store_error("get", bucket, key, e) from e
        return S3ObjectReader(response["Body"], bucket, key)  # type: ignore[return-value]

    def list(self, bucket: str, prefix: str) -> Iterator[ObjectHead]:
        """List objects under a prefix."""
        paginator = self.client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    yield ObjectHead(
                        key=obj["Key"],
                        last_modified=obj["LastModified"],
                        size=obj.get("Size", 0),
                    )
        except (BotoCoreError, ClientError) as e:
            raise _store_error("list", bucket, prefix, e) from e
