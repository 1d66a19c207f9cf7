# reelbox/utils/aws.py
from __future__ import annotations

"""
🧊 ReelBox • S3 Utilities
=========================

Thin, synchronous boto3 wrapper used by the S3 object store gateway
(`reelbox.services.storage.s3`). One `S3Client` per bucket/tier.

🎯 Goals
--------
- Server-side put of uploaded media with optional SSE/KMS
- Deletes that report whether the object existed (absent ⇒ success)
- Streaming reads for the private tier + short-lived presigned GET
- CDN-aware public URL building
- Timeouts and retry budget come from settings, never from callers
- Zero secret leakage in logs

🔗 Contract
-----------
- Classes: `S3Client`, `S3StorageError`, `S3ObjectMissing`
- Methods: `put_bytes`, `delete`, `open_stream`, `presigned_get`,
           `head`, `exists`, `public_url`, `cdn_url`, `object_url`
"""

from typing import Any, Dict, Optional
import re

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from pydantic import SecretStr

from reelbox.core.config import settings


_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}

# ─────────────────────────────────────────────────────────────────────────────
# 🧱 Exceptions
# ─────────────────────────────────────────────────────────────────────────────

class S3StorageError(RuntimeError):
    """Raised when a storage operation fails (network, auth, policy, etc.)."""


class S3ObjectMissing(S3StorageError):
    """Raised when a read targets a key that does not exist."""


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Key and value validation
# ─────────────────────────────────────────────────────────────────────────────

_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f\\]")


def _normalize_key(key: str) -> str:
    """
    Normalize and validate S3 object keys.

    Steps
    -----
    1) Coerce to str, strip whitespace
    2) Remove leading '/'
    3) Collapse '//' runs
    4) Reject '..' path segments, control characters and backslashes

    Raises
    ------
    S3StorageError
        If key is empty or unsafe.
    """
    k = str(key or "").strip().lstrip("/")
    k = re.sub(r"/{2,}", "/", k)
    if not k:
        raise S3StorageError("Invalid storage key: empty")
    if any(part == ".." for part in k.split("/")):
        raise S3StorageError("Invalid storage key: path traversal detected")
    if _CONTROL_RE.search(k):
        raise S3StorageError("Invalid storage key: contains forbidden characters")
    return k


def _secret_value(v: Optional[SecretStr | str]) -> Optional[str]:
    """Return the underlying secret string without raising if not SecretStr."""
    if v is None:
        return None
    return v.get_secret_value() if isinstance(v, SecretStr) else str(v)


def _error_code(exc: BaseException) -> Optional[str]:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code"))
    return None


# ─────────────────────────────────────────────────────────────────────────────
# 📦 S3 Client
# ─────────────────────────────────────────────────────────────────────────────

class S3Client:
    """
    High-level S3 wrapper bound to one bucket.

    Parameters
    ----------
    bucket : str
        Destination bucket (public or private tier).
    region_name : str | None
        Defaults to `settings.AWS_REGION`.
    endpoint_url : str | None
        Custom S3-compatible endpoint (LocalStack/MinIO). Defaults to
        `settings.AWS_S3_ENDPOINT_URL`.
    cdn_base_url : str | None
        If set, `public_url()` prefers `{cdn}/{key}` over the bucket URL.
    sse_mode / kms_key_id : str | None
        Server-side encryption defaults (never logged).
    client : Any | None
        Pre-built boto3 client (tests, custom sessions).

    Notes
    -----
    * Credentials: explicit settings keys when present, otherwise the standard
      AWS credential chain (env, profile, ECS/EC2 role, IRSA).
    * Retries/Timeouts: `S3_MAX_ATTEMPTS`, `S3_CONNECT_TIMEOUT`, `S3_READ_TIMEOUT`.
    """

    def __init__(
        self,
        bucket: Optional[str],
        *,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        cdn_base_url: Optional[str] = None,
        sse_mode: Optional[str] = None,
        kms_key_id: Optional[str] = None,
        client: Any = None,
    ) -> None:
        if not bucket:
            raise S3StorageError("S3 bucket not configured")
        self.bucket = bucket
        self.region = region_name or settings.AWS_REGION
        self._cdn_base = (cdn_base_url or "").rstrip("/")
        self._sse_mode = sse_mode or settings.AWS_SSE_MODE
        self._kms_key_id = kms_key_id or settings.AWS_KMS_KEY_ID

        if client is not None:
            self.client = client
        else:
            self.client = self._build_client(endpoint_url or settings.AWS_S3_ENDPOINT_URL)

        self._repr = f"S3Client(bucket={self.bucket}, region={self.region})"

    def _build_client(self, endpoint_url: Optional[str]) -> Any:
        cfg = BotoConfig(
            signature_version="s3v4",
            retries={"max_attempts": settings.S3_MAX_ATTEMPTS, "mode": "standard"},
            connect_timeout=settings.S3_CONNECT_TIMEOUT,
            read_timeout=settings.S3_READ_TIMEOUT,
            s3={"addressing_style": "path" if endpoint_url else "virtual"},
        )
        client_kwargs: Dict[str, Any] = {"config": cfg, "region_name": self.region}
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url

        ak = settings.AWS_ACCESS_KEY_ID
        sk = _secret_value(settings.AWS_SECRET_ACCESS_KEY)
        st = _secret_value(settings.AWS_SESSION_TOKEN)
        if ak and sk:
            client_kwargs["aws_access_key_id"] = ak
            client_kwargs["aws_secret_access_key"] = sk
            if st:
                client_kwargs["aws_session_token"] = st

        try:
            return boto3.client("s3", **client_kwargs)
        except Exception as e:  # pragma: no cover
            raise S3StorageError(f"Failed to create S3 client: {e}") from e

    # ────────────────────────────────────────────────────────────────────────
    # 🚀 Writes
    # ────────────────────────────────────────────────────────────────────────

    def put_bytes(
        self,
        key: str,
        data: bytes,
        *,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
    ) -> str:
        """
        Upload a payload from the server.

        Returns
        -------
        str
            The normalized key actually written.

        Raises
        ------
        S3StorageError
            On upload failure or invalid key.
        """
        k = _normalize_key(key)
        args: Dict[str, Any] = {"Bucket": self.bucket, "Key": k, "Body": data}
        if content_type:
            args["ContentType"] = content_type
        if cache_control:
            args["CacheControl"] = cache_control
        if self._sse_mode:
            args["ServerSideEncryption"] = self._sse_mode
            if self._sse_mode == "aws:kms" and self._kms_key_id:
                args["SSEKMSKeyId"] = self._kms_key_id

        try:
            self.client.put_object(**args)
        except Exception as e:
            raise S3StorageError(f"Failed to upload object: {e}") from e
        return k

    def delete(self, key: str) -> bool:
        """
        Delete an object.

        Behavior
        --------
        - Returns True when the object existed and the delete was accepted.
        - Returns False when the key was already absent (idempotent delete).
        - Raises `S3StorageError` on any other failure.
        """
        k = _normalize_key(key)
        existed = self.exists(k)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=k)
        except Exception as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise S3StorageError(f"Failed to delete object: {e}") from e
        return existed

    # ────────────────────────────────────────────────────────────────────────
    # 📥 Reads
    # ────────────────────────────────────────────────────────────────────────

    def open_stream(self, key: str) -> Any:
        """
        Open the object body for streaming (botocore `StreamingBody`).

        Raises
        ------
        S3ObjectMissing
            When the key does not exist.
        S3StorageError
            On any other failure.
        """
        k = _normalize_key(key)
        try:
            resp = self.client.get_object(Bucket=self.bucket, Key=k)
        except Exception as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise S3ObjectMissing(f"Object not found: {k}") from e
            raise S3StorageError(f"Failed to read object: {e}") from e
        return resp["Body"]

    def presigned_get(self, key: str, *, expires_in: int = 300) -> str:
        """Generate a short-lived **presigned GET** URL."""
        k = _normalize_key(key)
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": k},
                ExpiresIn=int(expires_in),
            )
        except Exception as e:
            raise S3StorageError(f"Failed to create presigned GET: {e}") from e

    # ────────────────────────────────────────────────────────────────────────
    # 🌐 Public URL helpers
    # ────────────────────────────────────────────────────────────────────────

    def cdn_url(self, key: str) -> Optional[str]:
        """CDN URL for a key when a CDN base is configured, else None."""
        if not self._cdn_base:
            return None
        return f"{self._cdn_base}/{_normalize_key(key)}"

    def object_url(self, key: str) -> str:
        """
        Direct S3 HTTPS URL (non-signed). For custom endpoints, uses the
        configured endpoint host (path-style).
        """
        k = _normalize_key(key)
        ep = getattr(self.client, "meta", None)
        endpoint = getattr(ep, "endpoint_url", None) if ep else None
        if endpoint and "amazonaws.com" not in str(endpoint):
            return f"{str(endpoint).rstrip('/')}/{self.bucket}/{k}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{k}"

    def public_url(self, key: str) -> str:
        """Preferred public link: CDN when configured, bucket URL otherwise."""
        return self.cdn_url(key) or self.object_url(key)

    # ────────────────────────────────────────────────────────────────────────
    # 🔎 Metadata helpers
    # ────────────────────────────────────────────────────────────────────────

    def head(self, key: str) -> Optional[Dict[str, Any]]:
        """
        HEAD the object and return metadata dictionary, or None if not found.

        Raises
        ------
        S3StorageError
            For failures other than "not found" (auth, network).
        """
        k = _normalize_key(key)
        try:
            resp = self.client.head_object(Bucket=self.bucket, Key=k)
            return dict(resp or {})
        except Exception as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            raise S3StorageError(f"Failed to inspect object: {e}") from e

    def exists(self, key: str) -> bool:
        """Boolean existence check using `HEAD`."""
        return self.head(key) is not None

    def __repr__(self) -> str:  # pragma: no cover
        return self._repr
