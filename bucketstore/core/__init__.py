"""
Core module: Type definitions, error hierarchy, and configuration.

This module provides the foundational abstractions for bucketstore:
- Result/Either monad for zero-exception control flow
- Typed error hierarchy for precondition, input and transport failures
- Bucket configuration with validation
"""

from bucketstore.core.types import (
    Result,
    Ok,
    Err,
    Timestamp,
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
from bucketstore.core.config import BucketConfig, EnvReader

__all__ = [
    "Result",
    "Ok",
    "Err",
    "Timestamp",
    "ErrorCode",
    "BucketError",
    "MissingObject",
    "ExistingObject",
    "PartialRenameFailure",
    "InputError",
    "TransportError",
    "StorageNotFound",
    "BucketConfig",
    "EnvReader",
]
