"""
S3 Transport Configuration

How to reach an S3-compatible endpoint (AWS, MinIO, R2): credentials,
endpoint, connection pool, timeouts and multipart part size. What the
bucket is and how it uploads lives in BucketConfig.

Unset credentials mean "let botocore resolve them" (IAM role, shared
config file, instance metadata).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from bucketstore.core import constants as C
from bucketstore.core.config import EnvReader


@dataclass(frozen=True, slots=True)
class S3Config:
    """
    Connection settings for S3Capability.

    Attributes:
        region: Signing region.
        endpoint_url: Non-AWS endpoint, e.g. "http://minio:9000".
        access_key_id / secret_access_key / session_token: Static
            credentials; leave None to use the default provider chain.
        multipart_chunksize_bytes: Size of every part but the last.
        max_concurrency: HTTP pool size; also caps parts in flight.
        connect_timeout_seconds / read_timeout_seconds: Socket timeouts.
        max_retries: botocore retry attempts.
        use_ssl / verify_ssl: TLS on, and certificate checking on.
    """
    region: str = C.DEFAULT_S3_REGION
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None

    multipart_chunksize_bytes: int = C.DEFAULT_MULTIPART_CHUNK_BYTES
    max_concurrency: int = C.DEFAULT_S3_MAX_CONCURRENCY

    connect_timeout_seconds: int = C.DEFAULT_CONNECT_TIMEOUT_S
    read_timeout_seconds: int = C.DEFAULT_READ_TIMEOUT_S
    max_retries: int = C.DEFAULT_MAX_RETRIES

    use_ssl: bool = True
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """
        Raises:
            ValueError: part size below the 5 MiB S3 floor, or a
                non-positive pool size or timeout.
        """
        if self.multipart_chunksize_bytes < C.MIN_MULTIPART_CHUNK_BYTES:
            raise ValueError(
                f"multipart_chunksize_bytes must be at least "
                f"{C.MIN_MULTIPART_CHUNK_BYTES} (S3 part minimum), "
                f"got {self.multipart_chunksize_bytes}"
            )
        for name in ("max_concurrency", "connect_timeout_seconds", "read_timeout_seconds"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

    @classmethod
    def from_env(cls, prefix: str = "S3") -> S3Config:
        """
        Read {prefix}_REGION, _ENDPOINT_URL, _ACCESS_KEY_ID,
        _SECRET_ACCESS_KEY, _MULTIPART_CHUNKSIZE, _MAX_CONCURRENCY,
        _CONNECT_TIMEOUT, _READ_TIMEOUT, _MAX_RETRIES, _USE_SSL and
        _VERIFY_SSL. Credentials fall back to the standard AWS_*
        variables.
        """
        env = EnvReader(prefix)
        return cls(
            region=env.text("REGION", C.DEFAULT_S3_REGION),
            endpoint_url=env.optional("ENDPOINT_URL"),
            access_key_id=env.optional("ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
            secret_access_key=env.optional("SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"),
            session_token=env.optional("SESSION_TOKEN", "AWS_SESSION_TOKEN"),
            multipart_chunksize_bytes=env.integer(
                "MULTIPART_CHUNKSIZE", C.DEFAULT_MULTIPART_CHUNK_BYTES
            ),
            max_concurrency=env.integer("MAX_CONCURRENCY", C.DEFAULT_S3_MAX_CONCURRENCY),
            connect_timeout_seconds=env.integer("CONNECT_TIMEOUT", C.DEFAULT_CONNECT_TIMEOUT_S),
            read_timeout_seconds=env.integer("READ_TIMEOUT", C.DEFAULT_READ_TIMEOUT_S),
            max_retries=env.integer("MAX_RETRIES", C.DEFAULT_MAX_RETRIES),
            use_ssl=env.flag("USE_SSL", True),
            verify_ssl=env.flag("VERIFY_SSL", True),
        )

    def session_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for aioboto3.Session()."""
        if not (self.access_key_id and self.secret_access_key):
            return {}
        kwargs: Dict[str, Any] = {
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key,
        }
        if self.session_token:
            kwargs["aws_session_token"] = self.session_token
        return kwargs

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for session.client("s3", ...), minus `config`."""
        kwargs: Dict[str, Any] = {"region_name": self.region, "use_ssl": self.use_ssl}
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        if not self.verify_ssl:
            kwargs["verify"] = False
        return kwargs
