"""
In-Memory Storage Capability

Development/testing implementation of StorageCapability. Keeps
objects in a dict guarded by an asyncio.Lock; listing is sorted by key
and paginated with integer offsets as continuation tokens.

Example:
    capability = InMemoryCapability()
    bucket = create_bucket(BucketConfig(bucket_name="dev"), capability)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Optional

from bucketstore.core import constants as C
from bucketstore.core.errors import BucketError, InputError, StorageNotFound, TransportError
from bucketstore.core.types import Err, Ok, Result
from bucketstore.storage.objects import AsyncByteStream, BytesStream
from bucketstore.storage.protocols import FetchedObject, ListPage


@dataclass(slots=True)
class _StoredBlob:
    data: bytes
    metadata: Dict[str, str] = field(default_factory=dict)
    parts: int = 1


class InMemoryCapability:
    """
    Dict-backed object store for one bucket.

    Multipart uploads are honoured by reading the body in
    chunk_size pieces and concatenating them, so callers exercise
    the same streaming path as against S3.
    """

    __slots__ = ("_objects", "_lock", "_chunk_size")

    def __init__(self, chunk_size: int = C.DEFAULT_MULTIPART_CHUNK_BYTES) -> None:
        self._objects: Dict[str, _StoredBlob] = {}
        self._lock = asyncio.Lock()
        self._chunk_size = chunk_size

    async def put_object(
        self,
        key: str,
        body: AsyncByteStream,
        size: int,
        metadata: Dict[str, str],
    ) -> Result[None, TransportError]:
        data = await body.read()
        async with self._lock:
            self._objects[key] = _StoredBlob(data=data, metadata=dict(metadata))
        return Ok(None)

    async def upload_multipart(
        self,
        key: str,
        body: AsyncByteStream,
        size: int,
        metadata: Dict[str, str],
    ) -> Result[None, BucketError]:
        chunks: list[bytes] = []
        while True:
            chunk = await body.read(self._chunk_size)
            if not chunk:
                break
            chunks.append(chunk)
        if not chunks:
            return Err(InputError.empty_body(key, size))

        async with self._lock:
            self._objects[key] = _StoredBlob(
                data=b"".join(chunks),
                metadata=dict(metadata),
                parts=len(chunks),
            )
        return Ok(None)

    async def get_object(self, key: str) -> Result[FetchedObject, TransportError]:
        async with self._lock:
            blob = self._objects.get(key)
        if blob is None:
            return Err(StorageNotFound.for_key("get_object", key))
        return Ok(FetchedObject(
            body=BytesStream(blob.data),
            metadata=dict(blob.metadata),
            size=len(blob.data),
        ))

    async def head_object(self, key: str) -> Result[Dict[str, str], TransportError]:
        async with self._lock:
            blob = self._objects.get(key)
        if blob is None:
            return Err(StorageNotFound.for_key("head_object", key))
        return Ok(dict(blob.metadata))

    async def delete_object(self, key: str) -> Result[None, TransportError]:
        async with self._lock:
            self._objects.pop(key, None)
        return Ok(None)

    async def copy_object(
        self,
        source_key: str,
        dest_key: str,
    ) -> Result[None, TransportError]:
        async with self._lock:
            blob = self._objects.get(source_key)
            if blob is None:
                return Err(StorageNotFound.for_key("copy_object", source_key))
            self._objects[dest_key] = _StoredBlob(
                data=blob.data,
                metadata=dict(blob.metadata),
                parts=blob.parts,
            )
        return Ok(None)

    async def list_keys(
        self,
        continuation_token: Optional[str] = None,
        limit: int = C.MAX_LIST_PAGE_SIZE,
    ) -> Result[ListPage, TransportError]:
        async with self._lock:
            keys = sorted(self._objects)

        start_idx = 0
        if continuation_token:
            try:
                start_idx = int(continuation_token)
            except ValueError as e:
                return Err(TransportError.failed("list_keys", cause=e))

        end_idx = start_idx + limit
        next_token = str(end_idx) if end_idx < len(keys) else None
        return Ok(ListPage(keys=tuple(keys[start_idx:end_idx]), next_token=next_token))

    def parts_of(self, key: str) -> Optional[int]:
        """Number of parts the stored object was uploaded in."""
        blob = self._objects.get(key)
        return blob.parts if blob else None

    def __len__(self) -> int:
        return len(self._objects)
