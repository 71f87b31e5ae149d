"""
Bucket Storage Adapter
======================

Translates bucket-level intents into StorageCapability calls. No
precondition logic lives here: creates overwrite silently, deletes of
missing keys succeed, and reads of missing keys surface the capability's
StorageNotFound. The Bucket facade enforces existence on top.

Rename Outcomes:
----------------
Object stores have no rename primitive, so rename is copy then delete.
The three outcomes stay distinct:

| Outcome          | Result                        | Store state          |
|------------------|-------------------------------|----------------------|
| Full success     | Ok(None)                      | only new_key         |
| Copy failed      | Err(TransportError)           | unchanged            |
| Delete failed    | Err(PartialRenameFailure)     | old_key and new_key  |

A partial rename is never rolled back; the caller decides whether to
retry the delete or treat the old key as redundant.
"""

from __future__ import annotations

from typing import List

from bucketstore.core.config import BucketConfig
from bucketstore.core.errors import (
    BucketError,
    PartialRenameFailure,
    StorageNotFound,
)
from bucketstore.core.types import Err, Ok, Result
from bucketstore.observability.logging import StructuredLogger
from bucketstore.storage.metadata import Metadata
from bucketstore.storage.objects import StorageObject
from bucketstore.storage.protocols import StorageCapability

logger = StructuredLogger(__name__)


class BucketInternal:
    """
    BucketProtocol implementation over a StorageCapability.

    Holds only the immutable bucket configuration and the shared
    capability handle.
    """

    __slots__ = ("_capability", "_config")

    def __init__(self, capability: StorageCapability, config: BucketConfig) -> None:
        self._capability = capability
        self._config = config

    @property
    def bucket_name(self) -> str:
        return self._config.bucket_name

    @property
    def config(self) -> BucketConfig:
        return self._config

    # -------------------------------------------------------------------------
    # UPLOADS
    # -------------------------------------------------------------------------

    async def create_object_single(self, obj: StorageObject) -> Result[None, BucketError]:
        """Whole-body put. Overwrites any existing object at obj.key."""
        # Live view: the capability copies what it keeps
        return await self._capability.put_object(
            obj.key, obj.body, obj.size or 0, obj.metadata.as_record()
        )

    async def create_object_multipart(self, obj: StorageObject) -> Result[None, BucketError]:
        """One logical create; part bookkeeping belongs to the capability."""
        return await self._capability.upload_multipart(
            obj.key, obj.body, obj.size or 0, obj.metadata.as_record()
        )

    # -------------------------------------------------------------------------
    # READS
    # -------------------------------------------------------------------------

    async def get_object(self, key: str) -> Result[StorageObject, BucketError]:
        """
        Fetch and rebuild an object.

        Returns:
            Ok(StorageObject) with an unread body.
            Err(StorageNotFound) if the key is absent at call time.
        """
        result = await self._capability.get_object(key)
        if result.is_err():
            return result

        fetched = result.value
        return Ok(StorageObject(
            key=key,
            body=fetched.body,
            metadata=Metadata(fetched.metadata),
            size=fetched.size,
        ))

    async def contains_object(self, key: str) -> Result[bool, BucketError]:
        """
        Metadata-only existence probe.

        Only StorageNotFound means absent; permission or network
        failures are returned as-is.
        """
        result = await self._capability.head_object(key)
        if result.is_ok():
            return Ok(True)
        if isinstance(result.error, StorageNotFound):
            return Ok(False)
        return result

    async def list_contents(self) -> Result[List[str], BucketError]:
        """Every key in the bucket, following continuation tokens."""
        keys: List[str] = []
        token = None

        while True:
            result = await self._capability.list_keys(
                continuation_token=token,
                limit=self._config.list_page_size,
            )
            if result.is_err():
                return result

            page = result.value
            keys.extend(page.keys)
            token = page.next_token
            if not token:
                return Ok(keys)

    # -------------------------------------------------------------------------
    # MUTATIONS
    # -------------------------------------------------------------------------

    async def delete_object(self, key: str) -> Result[None, BucketError]:
        """Idempotent delete."""
        return await self._capability.delete_object(key)

    async def rename_object(self, old_key: str, new_key: str) -> Result[None, BucketError]:
        """Copy to new_key, then delete old_key. See module docstring."""
        copied = await self._capability.copy_object(old_key, new_key)
        if copied.is_err():
            return copied

        deleted = await self._capability.delete_object(old_key)
        if deleted.is_err():
            logger.error(
                "Rename left both keys present",
                bucket=self.bucket_name,
                old_key=old_key,
                new_key=new_key,
                cause=str(deleted.error),
            )
            return Err(PartialRenameFailure.for_keys(
                old_key, new_key, self.bucket_name, cause=deleted.error
            ))

        return Ok(None)

    # -------------------------------------------------------------------------
    # PUBLIC URLS
    # -------------------------------------------------------------------------

    def public_url(self, key: str) -> str:
        return self._config.public_url(key)

    async def list_object_urls(self) -> Result[List[str], BucketError]:
        return (await self.list_contents()).map(
            lambda keys: [self.public_url(key) for key in keys]
        )
