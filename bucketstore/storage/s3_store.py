"""
S3-Compatible Storage Capability
================================

Production StorageCapability for AWS S3, MinIO, Cloudflare R2 and other
S3-compatible services, built on aioboto3.

Design Principles:
------------------
1. **Streaming**: Multipart bodies are read part by part, never buffered whole
2. **Bounded parts**: At most max_concurrency parts are in flight
3. **Result Monad**: No exceptions for control flow
4. **Honest absence**: Only 404/NoSuchKey/NotFound map to StorageNotFound;
   every other ClientError stays a TransportError

Algorithmic Complexity:
-----------------------
| Operation        | Time | Space    | Notes                       |
|------------------|------|----------|-----------------------------|
| put_object       | O(n) | O(n)     | single-shot, below threshold|
| upload_multipart | O(n) | O(c * p) | c = chunk, p = parallel parts|
| get_object       | O(1) | O(1)     | body streamed by the caller |
| head_object      | O(1) | O(1)     | metadata only               |
| list_keys        | O(k) | O(k)     | k = page size               |

Thread Safety:
--------------
- aioboto3 clients are safe for concurrent async operations
- Metrics counters are only touched from the event loop thread
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import aioboto3
from botocore.config import Config
from botocore.exceptions import ClientError

from bucketstore.core import constants as C
from bucketstore.core.errors import BucketError, InputError, StorageNotFound, TransportError
from bucketstore.core.types import Err, Ok, Result
from bucketstore.observability.logging import StructuredLogger
from bucketstore.storage.config import S3Config
from bucketstore.storage.objects import AsyncByteStream
from bucketstore.storage.protocols import FetchedObject, ListPage

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client

logger = StructuredLogger(__name__)

# Error codes botocore reports for a missing key (HEAD has no body, so "404").
_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def is_not_found(exc: BaseException) -> bool:
    """True if exc is a ClientError signalling a missing key."""
    if not isinstance(exc, ClientError):
        return False
    code = exc.response.get("Error", {}).get("Code")
    return str(code) in _NOT_FOUND_CODES


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

@dataclass(slots=True)
class S3Metrics:
    """
    Counters for S3 operations.

    Tracks request counts, upload volume and transport failures.
    """
    put_count: int = 0
    multipart_count: int = 0
    parts_uploaded: int = 0
    get_count: int = 0
    head_count: int = 0
    delete_count: int = 0
    copy_count: int = 0
    list_count: int = 0

    bytes_uploaded: int = 0
    upload_latency_sum_ns: int = 0

    transport_errors: int = 0

    def record_upload(self, size_bytes: int, latency_ns: int) -> None:
        """Record a completed upload, single-shot or multipart."""
        self.bytes_uploaded += size_bytes
        self.upload_latency_sum_ns += latency_ns

    def get_upload_throughput_mbps(self) -> float:
        """Calculate average upload throughput in MB/s."""
        if self.upload_latency_sum_ns == 0:
            return 0.0
        seconds = self.upload_latency_sum_ns / 1_000_000_000
        return (self.bytes_uploaded / 1_000_000) / seconds


# =============================================================================
# S3 CAPABILITY
# =============================================================================

class S3Capability:
    """
    StorageCapability backed by one S3 bucket.

    Example:
        >>> async with S3Capability("media", S3Config.from_env()) as s3:
        ...     result = await s3.head_object("avatar.png")
    """

    __slots__ = (
        "_bucket_name",
        "_config",
        "_client",
        "_client_cm",
        "_metrics",
    )

    def __init__(
        self,
        bucket_name: str,
        config: S3Config,
        client: Optional[S3Client] = None,
    ) -> None:
        """
        Initialize the capability.

        Args:
            bucket_name: Bucket all operations target.
            config: Connection configuration.
            client: Pre-built S3 client (skips connect()).

        Note:
            Call `connect()` before performing operations unless a
            client is injected.
        """
        self._bucket_name = bucket_name
        self._config = config
        self._client: Optional[S3Client] = client
        self._client_cm: Any = None
        self._metrics = S3Metrics()

    # -------------------------------------------------------------------------
    # CONNECTION MANAGEMENT
    # -------------------------------------------------------------------------

    async def connect(self) -> Result[None, TransportError]:
        """
        Open the aioboto3 client and verify the bucket is reachable.

        Returns:
            Ok(None) on success, Err(TransportError) on failure.
        """
        if self._client is not None:
            return Ok(None)

        try:
            session = aioboto3.Session(**self._config.session_kwargs())
            client_config = Config(
                max_pool_connections=self._config.max_concurrency,
                connect_timeout=self._config.connect_timeout_seconds,
                read_timeout=self._config.read_timeout_seconds,
                retries={"max_attempts": self._config.max_retries},
            )
            self._client_cm = session.client(
                "s3", config=client_config, **self._config.client_kwargs()
            )
            self._client = await self._client_cm.__aenter__()
            await self._client.head_bucket(Bucket=self._bucket_name)
        except Exception as e:
            await self.close()
            return self._fail("connect", None, e)

        logger.info("S3 capability connected", bucket=self._bucket_name)
        return Ok(None)

    async def close(self) -> None:
        """
        Close the client and release pooled connections.

        Safe to call multiple times. An injected client is left to its owner.
        """
        if self._client_cm is not None:
            await self._client_cm.__aexit__(None, None, None)
            self._client_cm = None
            self._client = None

    async def __aenter__(self) -> S3Capability:
        result = await self.connect()
        if result.is_err():
            raise result.error
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def health_check(self) -> Result[Dict[str, Any], TransportError]:
        """Check bucket reachability and report metrics."""
        if self._client is None:
            return Err(TransportError.not_connected("health_check"))

        try:
            await self._client.head_bucket(Bucket=self._bucket_name)
        except Exception as e:
            return self._fail("health_check", None, e)

        return Ok({
            "connected": True,
            "bucket": self._bucket_name,
            "metrics": {
                "put_count": self._metrics.put_count,
                "multipart_count": self._metrics.multipart_count,
                "get_count": self._metrics.get_count,
                "bytes_uploaded": self._metrics.bytes_uploaded,
                "upload_throughput_mbps": self._metrics.get_upload_throughput_mbps(),
                "transport_errors": self._metrics.transport_errors,
            },
        })

    # -------------------------------------------------------------------------
    # UPLOADS
    # -------------------------------------------------------------------------

    async def put_object(
        self,
        key: str,
        body: AsyncByteStream,
        size: int,
        metadata: Dict[str, str],
    ) -> Result[None, TransportError]:
        """
        Single PUT of the whole body.

        The body is drained first; this path is only taken for objects
        at or below the multipart threshold.
        """
        if self._client is None:
            return Err(TransportError.not_connected("put_object"))

        start_ns = time.perf_counter_ns()

        try:
            data = await body.read()
            await self._client.put_object(**self._upload_kwargs(key, metadata), Body=data)
        except Exception as e:
            return self._fail("put_object", key, e)

        self._metrics.put_count += 1
        self._metrics.record_upload(len(data), time.perf_counter_ns() - start_ns)
        return Ok(None)

    async def upload_multipart(
        self,
        key: str,
        body: AsyncByteStream,
        size: int,
        metadata: Dict[str, str],
    ) -> Result[None, BucketError]:
        """
        Multipart upload: initiate, stream parts, complete.

        Parts are read sequentially from the body and uploaded with at
        most max_concurrency in flight. Any failure aborts the session,
        and no further parts are read once one has failed. A body that
        yields no bytes aborts with InputError, since S3 rejects a
        completion without parts.
        """
        if self._client is None:
            return Err(TransportError.not_connected("upload_multipart"))

        start_ns = time.perf_counter_ns()

        try:
            created = await self._client.create_multipart_upload(
                **self._upload_kwargs(key, metadata)
            )
        except Exception as e:
            return self._fail("create_multipart_upload", key, e)

        upload_id = created["UploadId"]

        try:
            parts = await self._upload_parts(key, upload_id, body)
            if not parts:
                await self._abort(key, upload_id)
                logger.warning("Multipart body was empty", key=key, declared_size=size)
                return Err(InputError.empty_body(key, size))
            await self._client.complete_multipart_upload(
                Bucket=self._bucket_name,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={"Parts": parts},
            )
        except Exception as e:
            await self._abort(key, upload_id)
            return self._fail("upload_multipart", key, e)

        self._metrics.multipart_count += 1
        self._metrics.parts_uploaded += len(parts)
        self._metrics.record_upload(size, time.perf_counter_ns() - start_ns)
        return Ok(None)

    async def _upload_parts(
        self,
        key: str,
        upload_id: str,
        body: AsyncByteStream,
    ) -> List[Dict[str, Any]]:
        """Read and upload every part; returns the completed-part list."""
        chunk_size = self._config.multipart_chunksize_bytes
        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        tasks: List[asyncio.Task] = []

        async def upload_part(part_number: int, data: bytes) -> Dict[str, Any]:
            try:
                response = await self._client.upload_part(
                    Bucket=self._bucket_name,
                    Key=key,
                    UploadId=upload_id,
                    PartNumber=part_number,
                    Body=data,
                )
            finally:
                semaphore.release()
            return {"PartNumber": part_number, "ETag": response["ETag"]}

        try:
            part_number = 0
            while True:
                # Acquire before reading so buffered chunks stay bounded
                await semaphore.acquire()
                if any(t.done() and not t.cancelled() and t.exception() for t in tasks):
                    # A part already failed; gather below re-raises it
                    semaphore.release()
                    break
                chunk = await body.read(chunk_size)
                if not chunk:
                    semaphore.release()
                    break
                part_number += 1
                tasks.append(asyncio.create_task(upload_part(part_number, chunk)))

            parts = list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        # S3 requires parts in ascending order
        parts.sort(key=lambda p: p["PartNumber"])
        return parts

    async def _abort(self, key: str, upload_id: str) -> None:
        try:
            await self._client.abort_multipart_upload(
                Bucket=self._bucket_name,
                Key=key,
                UploadId=upload_id,
            )
        except Exception as e:
            # Orphaned parts are reclaimed by the bucket lifecycle policy
            logger.warning(
                "Multipart abort failed",
                key=key,
                upload_id=upload_id,
                cause=str(e),
            )

    def _upload_kwargs(self, key: str, metadata: Dict[str, str]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "Bucket": self._bucket_name,
            "Key": key,
            "Metadata": metadata,
        }
        content_type = metadata.get(C.CONTENT_TYPE_METADATA_KEY)
        if content_type:
            kwargs["ContentType"] = content_type
        return kwargs

    # -------------------------------------------------------------------------
    # READS
    # -------------------------------------------------------------------------

    async def get_object(self, key: str) -> Result[FetchedObject, TransportError]:
        """
        Fetch an object; the body is returned unread.

        Returns:
            Ok(FetchedObject) on success.
            Err(StorageNotFound) if the key does not exist.
        """
        if self._client is None:
            return Err(TransportError.not_connected("get_object"))

        try:
            response = await self._client.get_object(Bucket=self._bucket_name, Key=key)
        except Exception as e:
            return self._fail("get_object", key, e)

        self._metrics.get_count += 1
        return Ok(FetchedObject(
            body=response["Body"],
            metadata=dict(response.get("Metadata") or {}),
            size=response.get("ContentLength"),
        ))

    async def head_object(self, key: str) -> Result[Dict[str, str], TransportError]:
        """
        Metadata-only fetch.

        Returns:
            Ok(user metadata) if the key exists.
            Err(StorageNotFound) if it does not.
        """
        if self._client is None:
            return Err(TransportError.not_connected("head_object"))

        try:
            response = await self._client.head_object(Bucket=self._bucket_name, Key=key)
        except Exception as e:
            return self._fail("head_object", key, e)

        self._metrics.head_count += 1
        return Ok(dict(response.get("Metadata") or {}))

    # -------------------------------------------------------------------------
    # MUTATIONS
    # -------------------------------------------------------------------------

    async def delete_object(self, key: str) -> Result[None, TransportError]:
        """Delete key. S3 reports success for missing keys."""
        if self._client is None:
            return Err(TransportError.not_connected("delete_object"))

        try:
            await self._client.delete_object(Bucket=self._bucket_name, Key=key)
        except Exception as e:
            return self._fail("delete_object", key, e)

        self._metrics.delete_count += 1
        return Ok(None)

    async def copy_object(
        self,
        source_key: str,
        dest_key: str,
    ) -> Result[None, TransportError]:
        """Server-side copy; metadata travels with the object."""
        if self._client is None:
            return Err(TransportError.not_connected("copy_object"))

        try:
            await self._client.copy_object(
                Bucket=self._bucket_name,
                Key=dest_key,
                CopySource={"Bucket": self._bucket_name, "Key": source_key},
                MetadataDirective="COPY",
            )
        except Exception as e:
            return self._fail("copy_object", source_key, e)

        self._metrics.copy_count += 1
        return Ok(None)

    # -------------------------------------------------------------------------
    # LIST OPERATIONS
    # -------------------------------------------------------------------------

    async def list_keys(
        self,
        continuation_token: Optional[str] = None,
        limit: int = C.MAX_LIST_PAGE_SIZE,
    ) -> Result[ListPage, TransportError]:
        """
        One ListObjectsV2 page.

        Returns:
            Ok(ListPage); next_token is None when listing is complete.
        """
        if self._client is None:
            return Err(TransportError.not_connected("list_keys"))

        list_kwargs: Dict[str, Any] = {
            "Bucket": self._bucket_name,
            "MaxKeys": limit,
        }
        if continuation_token:
            list_kwargs["ContinuationToken"] = continuation_token

        try:
            response = await self._client.list_objects_v2(**list_kwargs)
        except Exception as e:
            return self._fail("list_keys", None, e)

        self._metrics.list_count += 1

        keys = tuple(obj["Key"] for obj in response.get("Contents", []))
        next_token = (
            response.get("NextContinuationToken")
            if response.get("IsTruncated")
            else None
        )
        return Ok(ListPage(keys=keys, next_token=next_token))

    # -------------------------------------------------------------------------
    # UTILITY
    # -------------------------------------------------------------------------

    def _fail(
        self,
        operation: str,
        key: Optional[str],
        exc: BaseException,
    ) -> Err[TransportError]:
        """Classify a transport exception and wrap it in Err."""
        if key is not None and is_not_found(exc):
            return Err(StorageNotFound.for_key(operation, key, cause=exc))

        self._metrics.transport_errors += 1
        logger.warning(
            "S3 operation failed",
            operation=operation,
            bucket=self._bucket_name,
            key=key,
            cause=str(exc),
        )
        return Err(TransportError.failed(operation, key=key, cause=exc))

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def metrics(self) -> S3Metrics:
        """Get current metrics snapshot."""
        return self._metrics


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "S3Capability",
    "S3Metrics",
    "is_not_found",
]
