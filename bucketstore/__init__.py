"""
bucketstore: Bucket-Scoped Object Storage

An async facade over S3-compatible blob stores:
- Create/read/delete/rename/list with existence preconditions
- Transparent single-shot vs multipart upload selection
- Non-atomic rename reported distinctly when only half completes
- Typed errors carried in a Result monad

Backends:
- S3-compatible stores (AWS S3, MinIO, Cloudflare R2) via aioboto3
- In-memory store for development and tests
"""

__version__ = "1.0.0"

# =============================================================================
# PUBLIC API EXPORTS
# =============================================================================
from bucketstore.core.types import (
    Result,
    Ok,
    Err,
)
from bucketstore.core.errors import (
    ErrorCode,
    BucketError,
    MissingObject,
    ExistingObject,
    PartialRenameFailure,
    InputError,
    TransportError,
    StorageNotFound,
)
from bucketstore.core.config import BucketConfig
from bucketstore.storage import (
    Metadata,
    ObjectBuilder,
    StorageObject,
    S3Config,
    Bucket,
    create_bucket,
    create_capability,
)

__all__ = [
    "__version__",
    # Result monad
    "Result",
    "Ok",
    "Err",
    # Errors
    "ErrorCode",
    "BucketError",
    "MissingObject",
    "ExistingObject",
    "PartialRenameFailure",
    "InputError",
    "TransportError",
    "StorageNotFound",
    # Configuration
    "BucketConfig",
    "S3Config",
    # Storage
    "Metadata",
    "ObjectBuilder",
    "StorageObject",
    "Bucket",
    "create_bucket",
    "create_capability",
]
