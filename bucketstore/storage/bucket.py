"""
Bucket Facade
=============

Public entry point for object storage. Wraps any BucketProtocol with
the one invariant the raw store does not give us:

    create must not silently overwrite; get/delete/rename must target
    an object that exists.

Every precondition is a fresh probe issued before the mutating call it
guards. Nothing is cached.

Check-Then-Act:
---------------
Probe and mutation are separate round-trips. Two writers racing for the
same key can both observe "absent" and both create; the later put wins.
The guarantee is "no conflict was observed at check time", not
linearizability. Stores with conditional writes (If-None-Match) could
fold the check into the put; this facade does not assume one.

Concurrency:
------------
| Operation       | Probes                    | Fan-out                  |
|-----------------|---------------------------|--------------------------|
| create_object   | contains(key)             | none                     |
| get/delete      | contains(key)             | none                     |
| rename_object   | contains(new), contains(old) concurrently | none     |
| get_all_objects | none                      | one get per listed key   |

get_all_objects is unbounded unless BucketConfig.max_concurrency is set.

Example:
    >>> bucket = create_bucket(BucketConfig(bucket_name="media"))
    >>> created = await bucket.create_object(ObjectBuilder.from_bytes("a.txt", b"hi"))
    >>> created.is_ok()
    True
"""

from __future__ import annotations

import asyncio
import os
from typing import List, Optional, Union

from bucketstore.core.config import BucketConfig
from bucketstore.core.errors import (
    BucketError,
    ExistingObject,
    InputError,
    MissingObject,
)
from bucketstore.core.types import Err, Ok, Result
from bucketstore.observability.logging import StructuredLogger
from bucketstore.storage.objects import ObjectBuilder, StorageObject
from bucketstore.storage.protocols import BucketProtocol

logger = StructuredLogger(__name__)


class Bucket:
    """
    Precondition-enforcing facade over a bucket capability.

    Holds no mutable state beyond the immutable config and the shared
    capability handle, so one instance may serve concurrent callers.
    """

    __slots__ = ("_internal", "_config", "_log")

    def __init__(self, internal: BucketProtocol, config: BucketConfig) -> None:
        self._internal = internal
        self._config = config
        self._log = logger.with_extra(bucket=config.bucket_name)

    @property
    def name(self) -> str:
        return self._config.bucket_name

    @property
    def config(self) -> BucketConfig:
        return self._config

    # -------------------------------------------------------------------------
    # CREATE
    # -------------------------------------------------------------------------

    async def create_object(
        self,
        builder: ObjectBuilder,
    ) -> Result[StorageObject, BucketError]:
        """
        Upload a new object; never overwrites.

        Steps: probe key (ExistingObject if present), require a known
        size (InputError otherwise), then single PUT when
        size <= multipart threshold, multipart above it.

        The builder's stream is closed when a precondition or the
        upload fails.

        Returns:
            Ok(StorageObject) as built and uploaded.
            Err(ExistingObject | InputError | TransportError).
        """
        key = builder.key
        if not key:
            await builder.discard()
            return Err(InputError.incomplete(builder.source, "key"))

        probe = await self._internal.contains_object(key)
        if probe.is_err():
            await builder.discard()
            return probe
        if probe.value:
            await builder.discard()
            self._log.warning("Create rejected: key exists", key=key)
            return Err(ExistingObject.for_key(key, self.name))

        if builder.size is None:
            await builder.discard()
            self._log.warning("Create rejected: size unknown", key=key)
            return Err(InputError.size_unknown(builder.source))

        built = builder.build()
        if built.is_err():
            await builder.discard()
            return built
        obj = built.value

        if obj.size <= self._config.multipart_threshold_bytes:
            strategy = "single"
            uploaded = await self._internal.create_object_single(obj)
        else:
            strategy = "multipart"
            uploaded = await self._internal.create_object_multipart(obj)

        if uploaded.is_err():
            await obj.close()
            return uploaded

        self._log.info("Object created", key=key, size=obj.size, strategy=strategy)
        return Ok(obj)

    async def create_object_from_file(
        self,
        path: Union[str, os.PathLike],
    ) -> Result[StorageObject, BucketError]:
        """Upload a local file under its file name. See create_object."""
        built = ObjectBuilder.from_file(path)
        if built.is_err():
            return built
        return await self.create_object(built.value)

    # -------------------------------------------------------------------------
    # READ / DELETE
    # -------------------------------------------------------------------------

    async def get_object(self, key: str) -> Result[StorageObject, BucketError]:
        """
        Fetch an existing object.

        A delete racing between probe and fetch surfaces as the
        adapter's StorageNotFound.
        """
        missing = await self._require_exists(key)
        if missing is not None:
            return missing
        return await self._internal.get_object(key)

    async def delete_object(self, key: str) -> Result[None, BucketError]:
        """Delete an existing object; MissingObject if absent."""
        missing = await self._require_exists(key)
        if missing is not None:
            return missing

        deleted = await self._internal.delete_object(key)
        if deleted.is_ok():
            self._log.info("Object deleted", key=key)
        return deleted

    # -------------------------------------------------------------------------
    # RENAME
    # -------------------------------------------------------------------------

    async def rename_object(self, old_key: str, new_key: str) -> Result[None, BucketError]:
        """
        Move old_key to new_key.

        The conflict probe on new_key and the existence probe on old_key
        target disjoint keys and run concurrently. Either failing stops
        the rename before any copy.

        Returns:
            Ok(None): only new_key remains.
            Err(MissingObject | ExistingObject | TransportError): nothing changed.
            Err(PartialRenameFailure): copy done, delete failed; both keys exist.
        """
        new_probe, old_probe = await asyncio.gather(
            self._internal.contains_object(new_key),
            self._internal.contains_object(old_key),
        )

        if new_probe.is_err():
            return new_probe
        if old_probe.is_err():
            return old_probe

        if new_probe.value:
            self._log.warning("Rename rejected: target exists", old_key=old_key, new_key=new_key)
            return Err(ExistingObject.for_key(new_key, self.name))
        if not old_probe.value:
            self._log.warning("Rename rejected: source missing", old_key=old_key, new_key=new_key)
            return Err(MissingObject.for_key(old_key, self.name))

        renamed = await self._internal.rename_object(old_key, new_key)
        if renamed.is_ok():
            self._log.info("Object renamed", old_key=old_key, new_key=new_key)
        return renamed

    # -------------------------------------------------------------------------
    # BULK / PASS-THROUGH
    # -------------------------------------------------------------------------

    async def get_all_objects(self) -> Result[List[StorageObject], BucketError]:
        """
        Fetch every listed object concurrently.

        The result is aligned with the listing order, not completion
        order. The first failure (in listing order) is returned; bodies
        of objects fetched alongside it are closed.
        """
        listed = await self._internal.list_contents()
        if listed.is_err():
            return listed
        keys = listed.value

        limit = self._config.max_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None

        async def fetch(key: str) -> Result[StorageObject, BucketError]:
            if semaphore is None:
                return await self._internal.get_object(key)
            async with semaphore:
                return await self._internal.get_object(key)

        results = await asyncio.gather(*(fetch(key) for key in keys))

        failure: Optional[Err[BucketError]] = next(
            (r for r in results if r.is_err()), None
        )
        if failure is not None:
            for r in results:
                if r.is_ok():
                    await r.value.close()
            return failure

        return Ok([r.value for r in results])

    async def contains(self, key: str) -> Result[bool, BucketError]:
        return await self._internal.contains_object(key)

    async def list_content(self) -> Result[List[str], BucketError]:
        return await self._internal.list_contents()

    # -------------------------------------------------------------------------
    # PUBLIC URLS
    # -------------------------------------------------------------------------

    async def get_public_url(self, key: str) -> Result[str, BucketError]:
        """Public URL of an existing object."""
        missing = await self._require_exists(key)
        if missing is not None:
            return missing
        return Ok(self._internal.public_url(key))

    async def list_object_urls(self) -> Result[List[str], BucketError]:
        return await self._internal.list_object_urls()

    # -------------------------------------------------------------------------
    # PRECONDITIONS
    # -------------------------------------------------------------------------

    async def _require_exists(self, key: str) -> Optional[Err[BucketError]]:
        """None if key exists; otherwise the Err to return."""
        probe = await self._internal.contains_object(key)
        if probe.is_err():
            return probe
        if not probe.value:
            self._log.warning("Precondition failed: key missing", key=key)
            return Err(MissingObject.for_key(key, self.name))
        return None
