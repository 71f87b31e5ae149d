"""
Error Hierarchy for bucketstore

Design Principles:
- Forbid exceptions for control flow (errors travel inside Err)
- Every failure is a typed, inspectable value carrying the offending
  key and bucket, never a bare message string
- Never mask unrelated failures as absence

Every error carries an ErrorCode, a message, an error_id and timestamp
to correlate with log lines, the underlying exception (cause), and a
context dict that backs the typed properties (key, bucket, ...).

Usage:
    result = await bucket.get_object("report.pdf")
    match result:
        case Ok(obj):
            process(obj)
        case Err(MissingObject() as missing):
            handle_missing(missing.key, missing.bucket)
        case Err(TransportError() as failure):
            handle_transport(failure)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from bucketstore.core.types import Timestamp


# =============================================================================
# ERROR CODE ENUMERATION
# =============================================================================
class ErrorCode(Enum):
    """
    Stable numeric codes, by range:
    - 1xxx: Bucket precondition errors
    - 2xxx: Upload input errors
    - 3xxx: Transport errors
    """

    # Precondition errors (1xxx)
    OBJECT_MISSING = 1001
    OBJECT_EXISTS = 1002
    RENAME_PARTIAL = 1003

    # Input errors (2xxx)
    INPUT_UNREADABLE = 2001
    INPUT_SIZE_UNKNOWN = 2002
    INPUT_INCOMPLETE = 2003
    INPUT_EMPTY = 2004

    # Transport errors (3xxx)
    TRANSPORT_FAILURE = 3001
    TRANSPORT_NOT_CONNECTED = 3002
    TRANSPORT_NOT_FOUND = 3003


# =============================================================================
# BASE ERROR CLASS
# =============================================================================
@dataclass
class BucketError(Exception):
    """
    Base class for all bucketstore errors.

    Dataclass fields; errors compare by value. Subclasses add
    factory classmethods and read-only views over `context`.
    """

    code: ErrorCode
    message: str
    error_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: Timestamp = field(default_factory=Timestamp.now)
    cause: Optional[BaseException] = None
    context: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def with_context(self, **kwargs: Any) -> BucketError:
        """Copy of this error with extra context fields (same class, same id)."""
        return type(self)(
            code=self.code,
            message=self.message,
            error_id=self.error_id,
            timestamp=self.timestamp,
            cause=self.cause,
            context={**self.context, **kwargs},
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Plain-dict form for log fields and API bodies. The cause is omitted.
        """
        return {
            "error_id": self.error_id,
            "code": self.code.name,
            "code_value": self.code.value,
            "message": self.message,
            "timestamp_nanos": self.timestamp.nanos,
            "context": self.context,
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (id={self.error_id[:8]})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code.name}, "
            f"message={self.message!r}, "
            f"error_id={self.error_id!r})"
        )


# =============================================================================
# PRECONDITION ERRORS
# =============================================================================
@dataclass
class MissingObject(BucketError):
    """Target key absent where presence was required."""

    @classmethod
    def for_key(cls, key: str, bucket: str) -> MissingObject:
        return cls(
            code=ErrorCode.OBJECT_MISSING,
            message=f"Object '{key}' does not exist in bucket '{bucket}'",
            context={"key": key, "bucket": bucket},
        )

    @property
    def key(self) -> str:
        return self.context["key"]

    @property
    def bucket(self) -> str:
        return self.context["bucket"]


@dataclass
class ExistingObject(BucketError):
    """Target key present where absence was required."""

    @classmethod
    def for_key(cls, key: str, bucket: str) -> ExistingObject:
        return cls(
            code=ErrorCode.OBJECT_EXISTS,
            message=f"Object '{key}' already exists in bucket '{bucket}'",
            context={"key": key, "bucket": bucket},
        )

    @property
    def key(self) -> str:
        return self.context["key"]

    @property
    def bucket(self) -> str:
        return self.context["bucket"]


@dataclass
class PartialRenameFailure(BucketError):
    """
    Copy step of a rename succeeded but the delete step failed.

    Both keys are present in the bucket. Nothing is rolled back:
    the caller may retry the delete of old_key or treat it as
    redundant.
    """

    @classmethod
    def for_keys(
        cls,
        old_key: str,
        new_key: str,
        bucket: str,
        cause: Optional[BaseException] = None,
    ) -> PartialRenameFailure:
        return cls(
            code=ErrorCode.RENAME_PARTIAL,
            message=(
                f"Copied '{old_key}' to '{new_key}' in bucket '{bucket}' "
                f"but failed to delete '{old_key}'"
            ),
            cause=cause,
            context={"old_key": old_key, "new_key": new_key, "bucket": bucket},
        )

    @property
    def old_key(self) -> str:
        return self.context["old_key"]

    @property
    def new_key(self) -> str:
        return self.context["new_key"]

    @property
    def bucket(self) -> str:
        return self.context["bucket"]


# =============================================================================
# INPUT ERRORS
# =============================================================================
@dataclass
class InputError(BucketError):
    """The upload source could not be read, sized or assembled."""

    @classmethod
    def unreadable(
        cls,
        source: str,
        cause: Optional[BaseException] = None,
    ) -> InputError:
        """Source could not be opened or stat'ed."""
        return cls(
            code=ErrorCode.INPUT_UNREADABLE,
            message=f"Cannot read upload source '{source}'",
            cause=cause,
            context={"source": source},
        )

    @classmethod
    def size_unknown(cls, source: str) -> InputError:
        """Declared size is required to choose an upload strategy."""
        return cls(
            code=ErrorCode.INPUT_SIZE_UNKNOWN,
            message=f"Size of upload source '{source}' is unknown",
            context={"source": source},
        )

    @classmethod
    def incomplete(cls, source: str, missing: str) -> InputError:
        """Builder is missing a required part (key or body)."""
        return cls(
            code=ErrorCode.INPUT_INCOMPLETE,
            message=f"Upload source '{source}' has no {missing}",
            context={"source": source, "missing": missing},
        )

    @classmethod
    def empty_body(cls, source: str, declared_size: int) -> InputError:
        return cls(
            code=ErrorCode.INPUT_EMPTY,
            message=(
                f"Upload source '{source}' declared {declared_size} bytes "
                f"but yielded none"
            ),
            context={"source": source, "declared_size": declared_size},
        )

    @property
    def source(self) -> str:
        return self.context["source"]


# =============================================================================
# TRANSPORT ERRORS
# =============================================================================
@dataclass
class TransportError(BucketError):
    """
    Any failure of the external storage capability not otherwise
    classified (network, auth, quota).
    """

    @classmethod
    def failed(
        cls,
        operation: str,
        key: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> TransportError:
        target = f" for '{key}'" if key is not None else ""
        return cls(
            code=ErrorCode.TRANSPORT_FAILURE,
            message=f"Storage operation '{operation}' failed{target}: {cause}",
            cause=cause,
            context={"operation": operation, "key": key},
        )

    @classmethod
    def not_connected(cls, operation: str) -> TransportError:
        return cls(
            code=ErrorCode.TRANSPORT_NOT_CONNECTED,
            message=f"Storage client not connected (operation '{operation}')",
            context={"operation": operation, "key": None},
        )

    @property
    def operation(self) -> str:
        return self.context["operation"]

    @property
    def key(self) -> Optional[str]:
        return self.context.get("key")


@dataclass
class StorageNotFound(TransportError):
    """The capability reported that a key does not exist."""

    @classmethod
    def for_key(
        cls,
        operation: str,
        key: str,
        cause: Optional[BaseException] = None,
    ) -> StorageNotFound:
        return cls(
            code=ErrorCode.TRANSPORT_NOT_FOUND,
            message=f"Storage operation '{operation}' found no object '{key}'",
            cause=cause,
            context={"operation": operation, "key": key},
        )

