"""Tests for the aioboto3-backed S3 capability."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from bucketstore.core import constants as C
from bucketstore.core.errors import ErrorCode, InputError, StorageNotFound, TransportError
from bucketstore.storage.config import S3Config
from bucketstore.storage.objects import BytesStream
from bucketstore.storage.s3_store import S3Capability, is_not_found


def client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class ChunkStream:
    """Yields `parts` full chunks, counting reads that returned data."""

    def __init__(self, parts: int):
        self.remaining = parts
        self.reads = 0

    async def read(self, amt=None):
        if self.remaining == 0:
            return b""
        self.remaining -= 1
        self.reads += 1
        return b"\0" * amt


class TestNotFoundDetection:
    """Test ClientError classification."""

    @pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
    def test_not_found_codes(self, code):
        assert is_not_found(client_error(code))

    @pytest.mark.parametrize("code", ["403", "AccessDenied", "500"])
    def test_other_codes(self, code):
        assert not is_not_found(client_error(code))

    def test_non_client_error(self):
        assert not is_not_found(RuntimeError("404"))


class TestS3Capability:
    """Test S3Capability against a mocked client."""

    @pytest.fixture
    def mock_s3(self):
        """Mock aioboto3 S3 client."""
        return AsyncMock()

    @pytest.fixture
    def capability(self, mock_s3):
        return S3Capability("media", S3Config(max_concurrency=2), client=mock_s3)

    @pytest.mark.asyncio
    async def test_put_object(self, capability, mock_s3):
        metadata = {"owner": "alice", "content-type": "text/plain"}

        result = await capability.put_object("a.txt", BytesStream(b"hello"), 5, metadata)

        assert result.is_ok()
        mock_s3.put_object.assert_awaited_once_with(
            Bucket="media",
            Key="a.txt",
            Metadata=metadata,
            ContentType="text/plain",
            Body=b"hello",
        )
        assert capability.metrics.put_count == 1
        assert capability.metrics.bytes_uploaded == 5

    @pytest.mark.asyncio
    async def test_put_object_failure(self, capability, mock_s3):
        mock_s3.put_object.side_effect = client_error("AccessDenied", "PutObject")

        result = await capability.put_object("a.txt", BytesStream(b"x"), 1, {})

        assert result.is_err()
        assert result.error.code == ErrorCode.TRANSPORT_FAILURE
        assert result.error.operation == "put_object"
        assert capability.metrics.transport_errors == 1

    @pytest.mark.asyncio
    async def test_upload_multipart(self, capability, mock_s3):
        mock_s3.create_multipart_upload.return_value = {"UploadId": "up-1"}
        mock_s3.upload_part.side_effect = lambda **kw: {"ETag": f"etag-{kw['PartNumber']}"}
        size = 2 * C.DEFAULT_MULTIPART_CHUNK_BYTES + 1

        result = await capability.upload_multipart(
            "big.bin", BytesStream(b"\0" * size), size, {"owner": "alice"}
        )

        assert result.is_ok()
        mock_s3.create_multipart_upload.assert_awaited_once_with(
            Bucket="media", Key="big.bin", Metadata={"owner": "alice"}
        )
        assert mock_s3.upload_part.await_count == 3
        mock_s3.complete_multipart_upload.assert_awaited_once_with(
            Bucket="media",
            Key="big.bin",
            UploadId="up-1",
            MultipartUpload={"Parts": [
                {"PartNumber": 1, "ETag": "etag-1"},
                {"PartNumber": 2, "ETag": "etag-2"},
                {"PartNumber": 3, "ETag": "etag-3"},
            ]},
        )
        mock_s3.abort_multipart_upload.assert_not_awaited()
        assert capability.metrics.parts_uploaded == 3

    @pytest.mark.asyncio
    async def test_upload_multipart_aborts_on_failure(self, capability, mock_s3):
        mock_s3.create_multipart_upload.return_value = {"UploadId": "up-1"}
        mock_s3.upload_part.side_effect = client_error("500", "UploadPart")
        size = C.DEFAULT_MULTIPART_CHUNK_BYTES + 1

        result = await capability.upload_multipart("big.bin", BytesStream(b"\0" * size), size, {})

        assert result.is_err()
        assert isinstance(result.error, TransportError)
        mock_s3.complete_multipart_upload.assert_not_awaited()
        mock_s3.abort_multipart_upload.assert_awaited_once_with(
            Bucket="media", Key="big.bin", UploadId="up-1"
        )

    @pytest.mark.asyncio
    async def test_upload_multipart_stops_reading_after_failure(self, mock_s3):
        capability = S3Capability("media", S3Config(max_concurrency=1), client=mock_s3)
        mock_s3.create_multipart_upload.return_value = {"UploadId": "up-1"}
        mock_s3.upload_part.side_effect = client_error("500", "UploadPart")
        size = 20 * C.DEFAULT_MULTIPART_CHUNK_BYTES
        body = ChunkStream(parts=20)

        result = await capability.upload_multipart("big.bin", body, size, {})

        assert isinstance(result.error, TransportError)
        assert mock_s3.upload_part.await_count <= 2
        assert body.reads <= 2
        mock_s3.abort_multipart_upload.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_upload_multipart_empty_body(self, capability, mock_s3):
        mock_s3.create_multipart_upload.return_value = {"UploadId": "up-1"}
        size = C.DEFAULT_MULTIPART_CHUNK_BYTES + 1

        result = await capability.upload_multipart("big.bin", BytesStream(b""), size, {})

        assert isinstance(result.error, InputError)
        assert result.error.code == ErrorCode.INPUT_EMPTY
        mock_s3.upload_part.assert_not_awaited()
        mock_s3.complete_multipart_upload.assert_not_awaited()
        mock_s3.abort_multipart_upload.assert_awaited_once_with(
            Bucket="media", Key="big.bin", UploadId="up-1"
        )

    @pytest.mark.asyncio
    async def test_get_object(self, capability, mock_s3):
        body = BytesStream(b"abc")
        mock_s3.get_object.return_value = {
            "Body": body,
            "Metadata": {"owner": "alice"},
            "ContentLength": 3,
        }

        fetched = (await capability.get_object("a.txt")).unwrap()

        assert fetched.body is body
        assert fetched.metadata == {"owner": "alice"}
        assert fetched.size == 3

    @pytest.mark.asyncio
    async def test_get_object_missing(self, capability, mock_s3):
        mock_s3.get_object.side_effect = client_error("NoSuchKey", "GetObject")

        result = await capability.get_object("nope")

        assert isinstance(result.error, StorageNotFound)
        assert result.error.key == "nope"
        assert capability.metrics.transport_errors == 0

    @pytest.mark.asyncio
    async def test_head_object(self, capability, mock_s3):
        mock_s3.head_object.return_value = {"Metadata": {"k": "v"}, "ContentLength": 1}
        assert (await capability.head_object("a")).unwrap() == {"k": "v"}

    @pytest.mark.asyncio
    async def test_head_object_missing(self, capability, mock_s3):
        mock_s3.head_object.side_effect = client_error("404")
        result = await capability.head_object("a")
        assert isinstance(result.error, StorageNotFound)

    @pytest.mark.asyncio
    async def test_head_object_forbidden_is_not_absence(self, capability, mock_s3):
        mock_s3.head_object.side_effect = client_error("403")
        result = await capability.head_object("a")
        assert result.is_err()
        assert not isinstance(result.error, StorageNotFound)

    @pytest.mark.asyncio
    async def test_copy_object(self, capability, mock_s3):
        assert (await capability.copy_object("old", "new")).is_ok()
        mock_s3.copy_object.assert_awaited_once_with(
            Bucket="media",
            Key="new",
            CopySource={"Bucket": "media", "Key": "old"},
            MetadataDirective="COPY",
        )

    @pytest.mark.asyncio
    async def test_delete_object(self, capability, mock_s3):
        assert (await capability.delete_object("a")).is_ok()
        mock_s3.delete_object.assert_awaited_once_with(Bucket="media", Key="a")

    @pytest.mark.asyncio
    async def test_list_keys(self, capability, mock_s3):
        mock_s3.list_objects_v2.return_value = {
            "Contents": [{"Key": "a"}, {"Key": "b"}],
            "IsTruncated": True,
            "NextContinuationToken": "tok",
        }

        page = (await capability.list_keys(limit=2)).unwrap()

        assert page.keys == ("a", "b")
        assert page.next_token == "tok"
        mock_s3.list_objects_v2.assert_awaited_once_with(Bucket="media", MaxKeys=2)

    @pytest.mark.asyncio
    async def test_list_keys_last_page(self, capability, mock_s3):
        mock_s3.list_objects_v2.return_value = {"IsTruncated": False}

        page = (await capability.list_keys(continuation_token="tok")).unwrap()

        assert page.keys == ()
        assert page.next_token is None
        mock_s3.list_objects_v2.assert_awaited_once_with(
            Bucket="media", MaxKeys=1000, ContinuationToken="tok"
        )

    @pytest.mark.asyncio
    async def test_health_check(self, capability, mock_s3):
        report = (await capability.health_check()).unwrap()
        assert report["connected"] is True
        assert report["bucket"] == "media"
        mock_s3.head_bucket.assert_awaited_once_with(Bucket="media")


class TestS3CapabilityLifecycle:
    """Test connect/close."""

    @pytest.mark.asyncio
    async def test_not_connected(self):
        capability = S3Capability("media", S3Config())

        result = await capability.head_object("a")

        assert result.is_err()
        assert result.error.code == ErrorCode.TRANSPORT_NOT_CONNECTED

    @pytest.mark.asyncio
    async def test_connect_and_close(self):
        mock_client = AsyncMock()
        client_cm = MagicMock()
        client_cm.__aenter__ = AsyncMock(return_value=mock_client)
        client_cm.__aexit__ = AsyncMock(return_value=None)

        with patch("bucketstore.storage.s3_store.aioboto3.Session") as session_cls:
            session_cls.return_value.client.return_value = client_cm

            async with S3Capability("media", S3Config(region="eu-west-1")) as capability:
                mock_client.head_bucket.assert_awaited_once_with(Bucket="media")
                assert (await capability.delete_object("a")).is_ok()

        _, kwargs = session_cls.return_value.client.call_args
        assert kwargs["region_name"] == "eu-west-1"
        client_cm.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure(self):
        mock_client = AsyncMock()
        mock_client.head_bucket.side_effect = client_error("403", "HeadBucket")
        client_cm = MagicMock()
        client_cm.__aenter__ = AsyncMock(return_value=mock_client)
        client_cm.__aexit__ = AsyncMock(return_value=None)

        with patch("bucketstore.storage.s3_store.aioboto3.Session") as session_cls:
            session_cls.return_value.client.return_value = client_cm
            capability = S3Capability("media", S3Config())

            result = await capability.connect()

        assert result.is_err()
        assert result.error.operation == "connect"
        client_cm.__aexit__.assert_awaited_once()
