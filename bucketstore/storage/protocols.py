"""
Storage Protocol Definitions
============================

Structural subtyping protocols (PEP 544) for the two seams of the system:

- StorageCapability: the external object store as consumed by
  BucketInternal (S3Capability, InMemoryCapability).
- BucketProtocol: the bucket-level capability the Bucket facade
  depends on (BucketInternal).

Design Principles:
    - Zero-exception control flow via Result[T, E] monad
    - Async-first for non-blocking I/O
    - Protocol classes for structural subtyping, not inheritance

Error Contract:
    Capability methods fail with TransportError. Absence of a key on
    head/get is reported as StorageNotFound (a TransportError subtype)
    so callers can tell "not there" from "could not ask".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from bucketstore.core.errors import BucketError, TransportError
from bucketstore.core.types import Result
from bucketstore.storage.objects import AsyncByteStream, StorageObject


# =============================================================================
# CAPABILITY RESPONSE TYPES
# =============================================================================

@dataclass(frozen=True, slots=True)
class FetchedObject:
    """
    Body and metadata returned by a capability read.

    Attributes:
        body: Response stream, read-once.
        metadata: User metadata as returned by the store.
        size: Content length when the store reports it.
    """
    body: AsyncByteStream
    metadata: dict[str, str] = field(default_factory=dict)
    size: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ListPage:
    """
    One page of a key listing.

    next_token is None on the last page.
    """
    keys: tuple[str, ...]
    next_token: Optional[str] = None


# =============================================================================
# EXTERNAL STORAGE CAPABILITY
# =============================================================================

class StorageCapability(Protocol):
    """
    Raw object-store operations against one bucket.

    Implementations own authentication, connection pooling and
    transport-level retries. Multipart bookkeeping (initiate, parts,
    complete, abort) is internal to upload_multipart.
    """

    async def put_object(
        self,
        key: str,
        body: AsyncByteStream,
        size: int,
        metadata: dict[str, str],
    ) -> Result[None, TransportError]:
        """
        Whole-body upload. Overwrites silently.

        Returns:
            Ok(None) on success.
            Err(TransportError) on failure.
        """
        ...

    async def upload_multipart(
        self,
        key: str,
        body: AsyncByteStream,
        size: int,
        metadata: dict[str, str],
    ) -> Result[None, BucketError]:
        """
        Chunked upload: initiate, send parts, complete.

        The session is aborted on failure so no orphaned parts remain.

        Returns:
            Ok(None) on success.
            Err(InputError) if the body yields no bytes.
            Err(TransportError) on failure.
        """
        ...

    async def get_object(self, key: str) -> Result[FetchedObject, TransportError]:
        """
        Fetch body stream and metadata.

        Returns:
            Ok(FetchedObject) on success.
            Err(StorageNotFound) if the key does not exist.
        """
        ...

    async def head_object(self, key: str) -> Result[dict[str, str], TransportError]:
        """
        Metadata-only fetch.

        Returns:
            Ok(user metadata) if the key exists.
            Err(StorageNotFound) if it does not.
        """
        ...

    async def delete_object(self, key: str) -> Result[None, TransportError]:
        """Delete key. Deleting a missing key is not an error."""
        ...

    async def copy_object(
        self,
        source_key: str,
        dest_key: str,
    ) -> Result[None, TransportError]:
        """Server-side copy, metadata included."""
        ...

    async def list_keys(
        self,
        continuation_token: Optional[str] = None,
        limit: int = 1000,
    ) -> Result[ListPage, TransportError]:
        """One page of keys, in the store's listing order."""
        ...


# =============================================================================
# BUCKET CAPABILITY
# =============================================================================

class BucketProtocol(Protocol):
    """
    Bucket-level operations without precondition logic.

    The Bucket facade wraps any implementation of this protocol with
    existence checks and upload-strategy selection.
    """

    @property
    def bucket_name(self) -> str:
        ...

    async def create_object_single(self, obj: StorageObject) -> Result[None, BucketError]:
        ...

    async def create_object_multipart(self, obj: StorageObject) -> Result[None, BucketError]:
        ...

    async def get_object(self, key: str) -> Result[StorageObject, BucketError]:
        ...

    async def delete_object(self, key: str) -> Result[None, BucketError]:
        ...

    async def rename_object(self, old_key: str, new_key: str) -> Result[None, BucketError]:
        ...

    async def list_contents(self) -> Result[list[str], BucketError]:
        ...

    async def contains_object(self, key: str) -> Result[bool, BucketError]:
        ...

    def public_url(self, key: str) -> str:
        ...

    async def list_object_urls(self) -> Result[list[str], BucketError]:
        ...
