"""
Storage Module: Bucket-Scoped Object Storage
============================================

Provides:
- Metadata, StorageObject and ObjectBuilder value types
- Protocol definitions for the store capability and bucket capability
- In-memory capability for development/testing
- S3-compatible capability (AWS S3, MinIO, R2) via aioboto3
- BucketInternal adapter and the precondition-enforcing Bucket facade
- Factory functions for capability selection

Design Principles:
-----------------
1. **Backend Agnostic**: Same facade over in-memory and S3 capabilities
2. **Factory Pattern**: Runtime capability selection via configuration
3. **Lazy Loading**: aioboto3 is imported only when S3 is configured
4. **Result Monad**: No exceptions for control flow

Example:
    >>> # Development (in-memory)
    >>> bucket = create_bucket(BucketConfig(bucket_name="media"))

    >>> # Production
    >>> capability = create_capability(S3Config.from_env(), bucket_name="media")
    >>> await capability.connect()
    >>> bucket = create_bucket(BucketConfig.from_env(), capability)
"""

from __future__ import annotations

from typing import Any, Optional, TYPE_CHECKING

from bucketstore.core.config import BucketConfig
from bucketstore.storage.metadata import Metadata
from bucketstore.storage.objects import (
    AsyncByteStream,
    BytesStream,
    FileStream,
    ObjectBuilder,
    StorageObject,
)
from bucketstore.storage.protocols import (
    BucketProtocol,
    FetchedObject,
    ListPage,
    StorageCapability,
)
from bucketstore.storage.config import S3Config
from bucketstore.storage.memory_store import InMemoryCapability
from bucketstore.storage.internal import BucketInternal
from bucketstore.storage.bucket import Bucket

# Lazy imports for production backends
if TYPE_CHECKING:
    from bucketstore.storage.s3_store import S3Capability


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def create_capability(
    s3_config: Optional[S3Config] = None,
    bucket_name: Optional[str] = None,
) -> Any:
    """
    Create the external store capability.

    Args:
        s3_config: S3 configuration; None selects the in-memory store.
        bucket_name: Bucket the S3 capability targets (required with s3_config).

    Returns:
        InMemoryCapability: If s3_config is None (development).
        S3Capability: If s3_config is provided (not yet connected).

    Raises:
        ValueError: If s3_config is given without bucket_name.
    """
    if s3_config is None:
        return InMemoryCapability()

    if not bucket_name:
        raise ValueError("bucket_name is required for the S3 capability")

    from bucketstore.storage.s3_store import S3Capability
    return S3Capability(bucket_name, s3_config)


def create_bucket(
    config: BucketConfig,
    capability: Optional[StorageCapability] = None,
) -> Bucket:
    """
    Assemble the facade over a capability.

    Args:
        config: Bucket identity and upload policy.
        capability: Store capability; defaults to a fresh in-memory store.

    Example:
        >>> bucket = create_bucket(BucketConfig(bucket_name="dev"))
    """
    if capability is None:
        capability = InMemoryCapability()
    return Bucket(BucketInternal(capability, config), config)


__all__ = [
    # Value types
    "Metadata",
    "AsyncByteStream",
    "BytesStream",
    "FileStream",
    "ObjectBuilder",
    "StorageObject",
    # Protocols
    "BucketProtocol",
    "FetchedObject",
    "ListPage",
    "StorageCapability",
    # Configuration
    "BucketConfig",
    "S3Config",
    # Implementations
    "InMemoryCapability",
    "BucketInternal",
    "Bucket",
    # Factories
    "create_capability",
    "create_bucket",
]
