"""Canonical hashing helpers for commitments and content addressing."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes — deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_digest(data: bytes) -> bytes:
    """Return the raw 32-byte SHA-256 digest."""
    return hashlib.sha256(data).digest()


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def content_address(data: bytes) -> str:
    """Content-address raw bytes as ``sha256:<hex>``."""
    return f"sha256:{sha256_hex(data)}"


def commitment_of(label: str) -> bytes:
    """SHA-256 of a UTF-8 label, e.g. ``commitment_of("test-root")``."""
    return sha256_digest(label.encode("utf-8"))
