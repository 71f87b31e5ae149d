"""
System-Wide Constants for bucketstore

All magic numbers and configuration defaults centralized here.
"""

from typing import Final

# =============================================================================
# SIZE UNITS
# =============================================================================
KB: Final[int] = 1024
MB: Final[int] = 1024 * KB
GB: Final[int] = 1024 * MB

# =============================================================================
# UPLOAD STRATEGY
# =============================================================================
# Objects at or below this size use a single PUT; larger ones go multipart.
DEFAULT_MULTIPART_THRESHOLD_BYTES: Final[int] = 5 * MB

# S3 rejects non-final multipart parts smaller than 5 MiB.
MIN_MULTIPART_CHUNK_BYTES: Final[int] = 5 * MB
DEFAULT_MULTIPART_CHUNK_BYTES: Final[int] = 8 * MB

# =============================================================================
# LISTING
# =============================================================================
# ListObjectsV2 returns at most 1000 keys per page.
MAX_LIST_PAGE_SIZE: Final[int] = 1000

# =============================================================================
# TRANSPORT
# =============================================================================
DEFAULT_S3_REGION: Final[str] = "us-east-1"
DEFAULT_S3_MAX_CONCURRENCY: Final[int] = 10
DEFAULT_CONNECT_TIMEOUT_S: Final[int] = 5
DEFAULT_READ_TIMEOUT_S: Final[int] = 60
DEFAULT_MAX_RETRIES: Final[int] = 3

DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"

# Metadata key under which the builder records the guessed MIME type.
CONTENT_TYPE_METADATA_KEY: Final[str] = "content-type"
