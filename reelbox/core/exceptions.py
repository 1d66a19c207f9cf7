# reelbox/core/exceptions.py
from __future__ import annotations

"""
ReelBox — Application Exceptions
================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets us attach structured metadata and integrate cleanly with the JSON error
shape rendered by `reelbox.core.exception_handlers`.

Key ideas
---------
- One base `AppException` that carries `code`, `details`, `extra`.
- Media-lifecycle failures inherit from it so routers never translate them.
- `ConsistencyWarning` is a *warning*, not an error: it is logged and reported
  in operation outcomes but never raised.

Usage
-----
    raise UploadFailure(slot="poster", cause=exc, orphaned_keys=["...-a.png"])
"""

from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "NotFoundException",
    "ParentNotFoundException",
    "AssetRecordNotFoundException",
    "SlotNotSupportedException",
    "SlotOccupiedException",
    "ParentBusyException",
    "StorageFailure",
    "UploadFailure",
    "DeleteFailure",
    "ConsistencyWarning",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code (e.g., 400/404/409/422/502).
    message : str
        Human-readable error message (serialized as `detail` as well).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    details : dict | list | str | None
        Machine-readable details (slot names, keys, ids).
    extra : dict | None
        Additional non-sensitive metadata to surface to clients.
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        details: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.details: Optional[Any] = details
        self.extra: Dict[str, Any] = extra or {}

    def __str__(self) -> str:
        return self.message

    # ── [Helper] Canonical body used by handlers ───────────────────────────
    def to_problem(self) -> Dict[str, Any]:
        """Return a dict matching our problem-like JSON shape."""
        body: Dict[str, Any] = {
            "error": True,
            "message": self.message,
            "code": self.code,
        }
        if self.details is not None:
            body["details"] = self.details
        extra_sanitized = dict(self.extra) if self.extra else {}
        for k in ("token", "authorization", "password", "secret"):
            extra_sanitized.pop(k, None)
        body.update(extra_sanitized)
        return body


# ──────────────────────────────────────────────────────────────
# 🔎 Not found
# ──────────────────────────────────────────────────────────────
class NotFoundException(AppException):
    """Something the caller referenced does not exist (404)."""

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, message=message, details=details)


class ParentNotFoundException(NotFoundException):
    """The parent entity (movie/series/season/episode) is not live."""

    def __init__(self, *, kind: str, parent_id: Any) -> None:
        super().__init__(
            f"{kind} #{parent_id} does not exist",
            details={"kind": kind, "parent_id": parent_id},
        )
        self.kind = kind
        self.parent_id = parent_id


class AssetRecordNotFoundException(NotFoundException):
    """An asset record expected to exist was already gone."""

    def __init__(self, *, file_key: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Asset record {file_key!r} does not exist", details={"file_key": file_key})
        self.file_key = file_key


# ──────────────────────────────────────────────────────────────
# 🎞️ Slot validation
# ──────────────────────────────────────────────────────────────
class SlotNotSupportedException(AppException):
    """A slot was supplied that the parent kind does not carry, or twice."""

    def __init__(self, *, kind: str, slot: str, reason: str = "not supported") -> None:
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message=f"Slot '{slot}' {reason} for {kind}",
            details={"kind": kind, "slot": slot},
        )
        self.slot = slot


class SlotOccupiedException(AppException):
    """`create` was asked to fill a slot that already holds a live asset."""

    def __init__(self, *, kind: str, parent_id: Any, slots: Sequence[str]) -> None:
        joined = ", ".join(slots)
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            message=f"{kind} #{parent_id} already has live media for: {joined}; use update to replace",
            details={"kind": kind, "parent_id": parent_id, "slots": list(slots)},
        )
        self.slots = list(slots)


class ParentBusyException(AppException):
    """Another request holds the parent's lock past `blocking_timeout`."""

    def __init__(self, *, lock: str, waited: float) -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            message="Busy processing a similar request; retry",
            details={"lock": lock, "waited_seconds": waited},
        )
        self.lock = lock


# ──────────────────────────────────────────────────────────────
# 📦 Storage failures (surfaced as 502: the object store is upstream)
# ──────────────────────────────────────────────────────────────
class StorageFailure(AppException):
    """Base for object-store failures; keeps the underlying cause."""

    def __init__(self, message: str, *, cause: BaseException, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, message=message, details=details)
        self.cause = cause


class UploadFailure(StorageFailure):
    """The object-store put for one slot failed.

    `orphaned_keys` lists objects uploaded earlier in the same call that were
    not rolled back; `completed_slots` lists slots fully persisted before it.
    """

    def __init__(
        self,
        *,
        slot: str,
        cause: BaseException,
        orphaned_keys: Optional[List[str]] = None,
        completed_slots: Optional[List[str]] = None,
    ) -> None:
        self.slot = slot
        self.orphaned_keys = list(orphaned_keys or [])
        self.completed_slots = list(completed_slots or [])
        super().__init__(
            f"Error uploading {slot} to storage: {cause}",
            cause=cause,
            details={
                "slot": slot,
                "orphaned_keys": self.orphaned_keys,
                "completed_slots": self.completed_slots,
            },
        )


class DeleteFailure(StorageFailure):
    """The object-store delete failed for a reason other than "already absent"."""

    def __init__(
        self,
        *,
        tier: str,
        key: str,
        cause: BaseException,
        slot: Optional[str] = None,
        completed_slots: Optional[List[str]] = None,
        failed: int = 1,
    ) -> None:
        self.tier = tier
        self.key = key
        self.slot = slot
        self.completed_slots = list(completed_slots or [])
        self.failed = failed
        super().__init__(
            f"Error deleting {key!r} from the {tier} bucket: {cause}",
            cause=cause,
            details={
                "tier": tier,
                "key": key,
                "slot": slot,
                "failed": failed,
                "completed_slots": self.completed_slots,
            },
        )


# ──────────────────────────────────────────────────────────────
# ⚠️ Non-fatal
# ──────────────────────────────────────────────────────────────
class ConsistencyWarning:
    """A live asset record pointed at an object the store no longer had.

    Logged and reported alongside the result; never raised.
    """

    def __init__(self, *, tier: str, key: str, slot: str) -> None:
        self.tier = tier
        self.key = key
        self.slot = slot

    def __str__(self) -> str:
        return f"{self.slot} object {self.key!r} was already absent from the {self.tier} bucket"

    def __repr__(self) -> str:
        return f"ConsistencyWarning(tier={self.tier!r}, key={self.key!r}, slot={self.slot!r})"
