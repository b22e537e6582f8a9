"""Tests for the S3 storage adapter."""

import io
from datetime import UTC, datetime

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from s3cacher.adapters import S3StorageAdapter
from s3cacher.core.errors import ObjectNotFoundError, StoreError

MODIFIED = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(client):
    with Stubber(client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def adapter(client):
    return S3StorageAdapter(client=client, part_size=4)


class TestHead:
    def test_returns_metadata(self, adapter, stubber):
        stubber.add_response(
            "head_object",
            {
                "LastModified": MODIFIED,
                "ContentLength": 42,
                "ContentType": "application/gzip",
                "CacheControl": "public,max-age=3600",
            },
            {"Bucket": "ci", "Key": "deps-1"},
        )

        head = adapter.head("ci", "deps-1")

        assert head.key == "deps-1"
        assert head.last_modified == MODIFIED
        assert head.size == 42
        assert head.content_type == "application/gzip"
        assert head.cache_control == "public,max-age=3600"

    def test_missing_object(self, adapter, stubber):
        stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)

        with pytest.raises(ObjectNotFoundError) as exc_info:
            adapter.head("ci", "deps-1")
        assert exc_info.value.key == "deps-1"

    def test_access_denied_is_store_error(self, adapter, stubber):
        stubber.add_client_error("head_object", service_error_code="403", http_status_code=403)

        with pytest.raises(StoreError) as exc_info:
            adapter.head("ci", "deps-1")
        assert not isinstance(exc_info.value, ObjectNotFoundError)
        assert "ci/deps-1" in str(exc_info.value)


class TestWriter:
    def test_small_object_single_put(self, client, stubber):
        adapter = S3StorageAdapter(client=client, part_size=1024)
        stubber.add_response(
            "put_object",
            {"ETag": '"abc"'},
            {
                "Bucket": "ci",
                "Key": "k",
                "Body": b"hello",
                "ContentType": "application/gzip",
                "CacheControl": "public,max-age=3600",
            },
        )

        writer = adapter.open_writer("ci", "k", "application/gzip", "public,max-age=3600")
        writer.write(b"hel")
        writer.write(b"lo")
        writer.commit()

        assert writer.closed

    def test_multipart_upload(self, adapter, stubber):
        stubber.add_response(
            "create_multipart_upload",
            {"Bucket": "ci", "Key": "k", "UploadId": "up-1"},
            {
                "Bucket": "ci",
                "Key": "k",
                "ContentType": "application/gzip",
                "CacheControl": "no-store",
            },
        )
        for number, body in ((1, b"abcd"), (2, b"efgh"), (3, b"ij")):
            stubber.add_response(
                "upload_part",
                {"ETag": f'"e{number}"'},
                {
                    "Bucket": "ci",
                    "Key": "k",
                    "UploadId": "up-1",
                    "PartNumber": number,
                    "Body": body,
                },
            )
        stubber.add_response(
            "complete_multipart_upload",
            {"Bucket": "ci", "Key": "k", "ETag": '"final"'},
            {
                "Bucket": "ci",
                "Key": "k",
                "UploadId": "up-1",
                "MultipartUpload": {
                    "Parts": [
                        {"ETag": '"e1"', "PartNumber": 1},
                        {"ETag": '"e2"', "PartNumber": 2},
                        {"ETag": '"e3"', "PartNumber": 3},
                    ]
                },
            },
        )

        writer = adapter.open_writer("ci", "k", "application/gzip", "no-store")
        assert writer.write(b"abcdefghij") == 10
        writer.commit()

    def test_abort_cancels_multipart_upload(self, adapter, stubber):
        stubber.add_response("create_multipart_upload", {"UploadId": "up-1"})
        stubber.add_response("upload_part", {"ETag": '"e1"'})
        stubber.add_response(
            "abort_multipart_upload", {}, {"Bucket": "ci", "Key": "k", "UploadId": "up-1"}
        )

        writer = adapter.open_writer("ci", "k", "application/gzip", "no-store")
        writer.write(b"abcdef")
        writer.abort()

        assert writer.closed

    def test_abort_before_any_part_makes_no_calls(self, client, stubber):
        adapter = S3StorageAdapter(client=client, part_size=1024)

        writer = adapter.open_writer("ci", "k", "application/gzip", "no-store")
        writer.write(b"abc")
        writer.abort()

    def test_commit_failure_aborts_upload(self, adapter, stubber):
        stubber.add_response("create_multipart_upload", {"UploadId": "up-1"})
        stubber.add_response("upload_part", {"ETag": '"e1"'})
        stubber.add_client_error(
            "complete_multipart_upload", service_error_code="InvalidPart", http_status_code=400
        )
        stubber.add_response(
            "abort_multipart_upload", {}, {"Bucket": "ci", "Key": "k", "UploadId": "up-1"}
        )

        writer = adapter.open_writer("ci", "k", "application/gzip", "no-store")
        writer.write(b"abcd")

        with pytest.raises(StoreError, match="InvalidPart"):
            writer.commit()

    def test_abort_failure_keeps_upload_error(self, adapter, stubber):
        stubber.add_response("create_multipart_upload", {"UploadId": "up-1"})
        stubber.add_response("upload_part", {"ETag": '"e1"'})
        stubber.add_client_error(
            "complete_multipart_upload", service_error_code="InvalidPart", http_status_code=400
        )
        stubber.add_client_error(
            "abort_multipart_upload", service_error_code="NoSuchUpload", http_status_code=404
        )

        writer = adapter.open_writer("ci", "k", "application/gzip", "no-store")
        writer.write(b"abcd")

        with pytest.raises(StoreError, match="InvalidPart") as exc_info:
            writer.commit()

        notes = exc_info.value.__notes__
        assert any("multipart upload" in n and "NoSuchUpload" in n for n in notes)
        assert writer.closed

    def test_interrupted_commit_aborts_upload(self, client, adapter, stubber, monkeypatch):
        stubber.add_response("create_multipart_upload", {"UploadId": "up-1"})
        stubber.add_response("upload_part", {"ETag": '"e1"'})
        stubber.add_response(
            "abort_multipart_upload", {}, {"Bucket": "ci", "Key": "k", "UploadId": "up-1"}
        )

        writer = adapter.open_writer("ci", "k", "application/gzip", "no-store")
        writer.write(b"abcd")

        def interrupted(**kwargs):
            raise KeyboardInterrupt

        monkeypatch.setattr(client, "complete_multipart_upload", interrupted)

        with pytest.raises(KeyboardInterrupt):
            writer.commit()

    def test_part_failure_is_store_error(self, adapter, stubber):
        stubber.add_response("create_multipart_upload", {"UploadId": "up-1"})
        stubber.add_client_error("upload_part", service_error_code="SlowDown", http_status_code=503)

        writer = adapter.open_writer("ci", "k", "application/gzip", "no-store")

        with pytest.raises(StoreError, match="SlowDown"):
            writer.write(b"abcd")

    def test_commit_twice_rejected(self, client, stubber):
        adapter = S3StorageAdapter(client=client, part_size=1024)
        stubber.add_response("put_object", {"ETag": '"abc"'})

        writer = adapter.open_writer("ci", "k", "application/gzip", "no-store")
        writer.commit()

        with pytest.raises(ValueError):
            writer.commit()


class TestReader:
    def test_streams_body(self, adapter, stubber):
        data = b"x" * 10_000
        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(data), len(data))},
            {"Bucket": "ci", "Key": "k"},
        )

        with adapter.open_reader("ci", "k") as reader:
            assert reader.read(10) == b"x" * 10
            assert reader.read() == data[10:]

    def test_missing_object(self, adapter, stubber):
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

        with pytest.raises(ObjectNotFoundError):
            adapter.open_reader("ci", "k")


class TestList:
    def test_lists_prefix(self, adapter, stubber):
        stubber.add_response(
            "list_objects_v2",
            {
                "IsTruncated": False,
                "Contents": [
                    {"Key": "npm-1", "LastModified": MODIFIED, "Size": 10},
                    {"Key": "npm-2", "LastModified": MODIFIED, "Size": 20},
                ],
            },
            {"Bucket": "ci", "Prefix": "npm-"},
        )

        heads = list(adapter.list("ci", "npm-"))

        assert [(h.key, h.size) for h in heads] == [("npm-1", 10), ("npm-2", 20)]

    def test_list_failure(self, adapter, stubber):
        stubber.add_client_error(
            "list_objects_v2", service_error_code="NoSuchBucket", http_status_code=404
        )

        with pytest.raises(StoreError):
            list(adapter.list("ci", ""))
