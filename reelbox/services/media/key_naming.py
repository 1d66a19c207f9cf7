from __future__ import annotations

"""Storage key derivation for uploaded media.

    "  My Poster FINAL.PNG " → "3f2c…-my-poster-final.png"

The sanitized filename keeps its extension; the random prefix keeps two
uploads with the same name from ever sharing a key. File content is never
inspected.
"""

import re
from typing import Callable
from uuid import uuid4

_WHITESPACE_RE = re.compile(r"\s+")
_SEPARATOR_RE = re.compile(r"[\\/]+")

FALLBACK_NAME = "upload"


def strip_and_hyphenate(filename: str) -> str:
    """Trim, lowercase, and turn every whitespace run into a single hyphen.

    Path separators are hyphenated as well so keys stay flat.
    """
    name = _WHITESPACE_RE.sub("-", str(filename or "").strip().lower())
    return _SEPARATOR_RE.sub("-", name)


def build_storage_key(filename: str, *, token_factory: Callable[[], object] = uuid4) -> str:
    """`{token}-{sanitized filename}`; an empty name falls back to `upload`."""
    return f"{token_factory()}-{strip_and_hyphenate(filename) or FALLBACK_NAME}"


__all__ = ["strip_and_hyphenate", "build_storage_key", "FALLBACK_NAME"]
