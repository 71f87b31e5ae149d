"""
Bucket Configuration

Provides validated configuration with sensible defaults.
Supports environment variable overrides.

Design:
- Immutable after validation
- Fail-fast on invalid configuration
- Type-safe with dataclasses
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, overload

from bucketstore.core import constants as C


class EnvReader:
    """
    Typed lookups of `{prefix}_{NAME}` environment variables.

    Empty values count as unset.
    """

    _TRUE = frozenset({"1", "true", "yes", "on"})
    _FALSE = frozenset({"0", "false", "no", "off"})

    __slots__ = ("prefix",)

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def _raw(self, name: str) -> Optional[str]:
        return os.environ.get(f"{self.prefix}_{name}") or None

    def text(self, name: str, default: str = "") -> str:
        return self._raw(name) or default

    def optional(self, name: str, fallback_var: Optional[str] = None) -> Optional[str]:
        """Value of the prefixed variable, else of fallback_var, else None."""
        value = self._raw(name)
        if value is None and fallback_var:
            value = os.environ.get(fallback_var) or None
        return value

    def required(self, name: str) -> str:
        value = self._raw(name)
        if value is None:
            raise ValueError(f"Environment variable {self.prefix}_{name} is required")
        return value

    @overload
    def integer(self, name: str) -> Optional[int]: ...
    @overload
    def integer(self, name: str, default: int) -> int: ...

    def integer(self, name: str, default: Optional[int] = None) -> Optional[int]:
        value = self._raw(name)
        return int(value) if value is not None else default

    def flag(self, name: str, default: bool) -> bool:
        value = (self._raw(name) or "").lower()
        if value in self._TRUE:
            return True
        if value in self._FALSE:
            return False
        return default


@dataclass(frozen=True, slots=True)
class BucketConfig:
    """
    Identity and upload policy of one bucket.

    Attributes:
        bucket_name: Name of the bucket in the object store.
        public_url_base: Base of public object URLs; the object URL is
            "{public_url_base}/{key}".
        multipart_threshold_bytes: Objects of at most this size are
            uploaded with a single PUT, larger ones with multipart.
        list_page_size: Keys requested per listing page (1..1000).
        max_concurrency: Cap on in-flight fetches in bulk reads.
            None means unbounded.

    Example:
        >>> config = BucketConfig(
        ...     bucket_name="media",
        ...     public_url_base="https://media.example.com",
        ... )
    """

    bucket_name: str
    public_url_base: str = ""
    multipart_threshold_bytes: int = C.DEFAULT_MULTIPART_THRESHOLD_BYTES
    list_page_size: int = C.MAX_LIST_PAGE_SIZE
    max_concurrency: Optional[int] = None

    def __post_init__(self) -> None:
        """
        Validate configuration invariants.

        Raises:
            ValueError: If any invariant is violated.
        """
        if not self.bucket_name:
            raise ValueError("bucket_name must be non-empty")

        if self.multipart_threshold_bytes <= 0:
            raise ValueError(
                f"multipart_threshold_bytes must be > 0, "
                f"got {self.multipart_threshold_bytes}"
            )

        if not (1 <= self.list_page_size <= C.MAX_LIST_PAGE_SIZE):
            raise ValueError(
                f"list_page_size must be in [1, {C.MAX_LIST_PAGE_SIZE}], "
                f"got {self.list_page_size}"
            )

        if self.max_concurrency is not None and self.max_concurrency <= 0:
            raise ValueError(
                f"max_concurrency must be > 0 or None, got {self.max_concurrency}"
            )

        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "public_url_base", self.public_url_base.rstrip("/"))

    @classmethod
    def from_env(cls, prefix: str = "BUCKET") -> BucketConfig:
        """
        Construct configuration from environment variables.

        Environment Variables:
        - {prefix}_NAME: Bucket name (required)
        - {prefix}_PUBLIC_URL: Public URL base (default: "")
        - {prefix}_MULTIPART_THRESHOLD: Bytes (default: 5 MiB)
        - {prefix}_LIST_PAGE_SIZE: Keys per page (default: 1000)
        - {prefix}_MAX_CONCURRENCY: Bulk fetch cap (default: unbounded)

        Args:
            prefix: Environment variable prefix.

        Returns:
            BucketConfig populated from environment.

        Raises:
            ValueError: If the bucket name is missing.
        """
        env = EnvReader(prefix)
        return cls(
            bucket_name=env.required("NAME"),
            public_url_base=env.text("PUBLIC_URL"),
            multipart_threshold_bytes=env.integer(
                "MULTIPART_THRESHOLD", C.DEFAULT_MULTIPART_THRESHOLD_BYTES
            ),
            list_page_size=env.integer("LIST_PAGE_SIZE", C.MAX_LIST_PAGE_SIZE),
            max_concurrency=env.integer("MAX_CONCURRENCY"),
        )

    def public_url(self, key: str) -> str:
        """Public URL of an object in this bucket."""
        return f"{self.public_url_base}/{key}"
