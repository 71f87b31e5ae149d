"""
Stored Object Model
===================

Value entities the bucket facade operates on:

- AsyncByteStream: read-once byte source (`await stream.read(amt)`).
  aiobotocore's StreamingBody satisfies it natively; FileStream and
  BytesStream are the local implementations.
- StorageObject: one blob (key, body, metadata, declared size).
- ObjectBuilder: staged construction of a StorageObject for upload.

Stream Semantics:
-----------------
An object's body is consumed exactly once, like a network response
body. Reading again after exhaustion returns b"" (or whatever the
underlying stream does); this is the caller's responsibility and is
not guarded here.
"""

from __future__ import annotations

import asyncio
import inspect
import io
import mimetypes
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Mapping, Optional, Protocol, Union

from bucketstore.core import constants as C
from bucketstore.core.errors import InputError
from bucketstore.core.types import Err, Ok, Result
from bucketstore.storage.metadata import Metadata


# =============================================================================
# BYTE STREAMS
# =============================================================================

class AsyncByteStream(Protocol):
    """Read-once asynchronous byte source."""

    async def read(self, amt: Optional[int] = None) -> bytes:
        """Read up to amt bytes, or everything left when amt is None."""
        ...


class BytesStream:
    """In-memory stream over a bytes payload."""

    __slots__ = ("_buffer",)

    def __init__(self, data: bytes) -> None:
        self._buffer = io.BytesIO(data)

    async def read(self, amt: Optional[int] = None) -> bytes:
        return self._buffer.read(-1 if amt is None else amt)

    def close(self) -> None:
        self._buffer.close()


class FileStream:
    """
    Stream over an open binary file.

    Reads run in the default executor so a large local file never
    blocks the event loop.
    """

    __slots__ = ("_handle",)

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle

    async def read(self, amt: Optional[int] = None) -> bytes:
        return await asyncio.to_thread(self._handle.read, -1 if amt is None else amt)

    def close(self) -> None:
        self._handle.close()


async def close_stream(stream: object) -> None:
    """Close a stream whose close() may be sync or async, if it has one."""
    close = getattr(stream, "close", None)
    if close is None:
        return
    outcome = close()
    if inspect.isawaitable(outcome):
        await outcome


# =============================================================================
# STORED OBJECT
# =============================================================================

@dataclass(frozen=True)
class StorageObject:
    """
    One blob stored (or about to be stored) in a bucket.

    Attributes:
        key: Storage address, unique within the bucket.
        body: Read-once byte stream.
        metadata: User metadata, owned by this object.
        size: Declared size in bytes. Required for uploads; may be
            None on inbound reads when the store did not report it.
    """

    key: str
    body: AsyncByteStream
    metadata: Metadata = field(default_factory=Metadata)
    size: Optional[int] = None

    @property
    def content_type(self) -> Optional[str]:
        return self.metadata.get(C.CONTENT_TYPE_METADATA_KEY)

    async def read_all(self) -> bytes:
        """Drain the body. Call at most once per object."""
        return await self.body.read()

    async def close(self) -> None:
        await close_stream(self.body)


# =============================================================================
# BUILDER
# =============================================================================

class ObjectBuilder:
    """
    Staged construction of a StorageObject from a raw source.

    The declared size must be known before the facade can pick an
    upload strategy; from_file and from_bytes resolve it, with_body
    takes it explicitly.

    Example:
        >>> builder = ObjectBuilder.from_bytes("notes.txt", b"hello")
        >>> builder.with_metadata({"owner": "alice"}).size
        5
    """

    __slots__ = ("_key", "_body", "_size", "_metadata", "_source")

    def __init__(self, key: Optional[str] = None, source: Optional[str] = None) -> None:
        self._key = key
        self._body: Optional[AsyncByteStream] = None
        self._size: Optional[int] = None
        self._metadata = Metadata()
        self._source = source or key or "<builder>"

    # -------------------------------------------------------------------------
    # CONSTRUCTORS
    # -------------------------------------------------------------------------

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> Result[ObjectBuilder, InputError]:
        """
        Builder over a local file.

        Key is the file name; the guessed MIME type is recorded in the
        metadata under "content-type".

        Returns:
            Ok(builder) with size, open stream and default metadata.
            Err(InputError) if the file cannot be stat'ed or opened.
        """
        file_path = Path(path)
        source = str(file_path)

        try:
            stat = file_path.stat()
        except OSError as e:
            return Err(InputError.unreadable(source, cause=e))

        if not file_path.is_file():
            return Err(InputError.unreadable(source))

        try:
            handle = file_path.open("rb")
        except OSError as e:
            return Err(InputError.unreadable(source, cause=e))

        content_type, _ = mimetypes.guess_type(file_path.name)

        builder = cls(key=file_path.name, source=source)
        builder.with_body(FileStream(handle), size=stat.st_size)
        builder.with_content_type(content_type or C.DEFAULT_CONTENT_TYPE)
        return Ok(builder)

    @classmethod
    def from_bytes(
        cls,
        key: str,
        data: bytes,
        metadata: Optional[Mapping[str, str]] = None,
    ) -> ObjectBuilder:
        """Builder over an in-memory payload."""
        builder = cls(key=key)
        builder.with_body(BytesStream(data), size=len(data))
        if metadata:
            builder.with_metadata(metadata)
        return builder

    # -------------------------------------------------------------------------
    # STAGES
    # -------------------------------------------------------------------------

    def with_key(self, key: str) -> ObjectBuilder:
        self._key = key
        return self

    def with_body(self, body: AsyncByteStream, size: Optional[int] = None) -> ObjectBuilder:
        self._body = body
        self._size = size
        return self

    def with_metadata(self, entries: Mapping[str, str]) -> ObjectBuilder:
        for key, value in entries.items():
            self._metadata.set(key, value)
        return self

    def with_content_type(self, content_type: str) -> ObjectBuilder:
        self._metadata.set(C.CONTENT_TYPE_METADATA_KEY, content_type)
        return self

    # -------------------------------------------------------------------------
    # ACCESSORS
    # -------------------------------------------------------------------------

    @property
    def key(self) -> Optional[str]:
        return self._key

    @property
    def size(self) -> Optional[int]:
        return self._size

    @property
    def metadata(self) -> Metadata:
        return self._metadata

    @property
    def source(self) -> str:
        return self._source

    def build(self) -> Result[StorageObject, InputError]:
        """Produce the object; fails if the key or body was never set."""
        if not self._key:
            return Err(InputError.incomplete(self._source, "key"))
        if self._body is None:
            return Err(InputError.incomplete(self._source, "body"))

        return Ok(StorageObject(
            key=self._key,
            body=self._body,
            metadata=self._metadata,
            size=self._size,
        ))

    async def discard(self) -> None:
        """Release the source stream of a builder that will not be uploaded."""
        if self._body is not None:
            await close_stream(self._body)
