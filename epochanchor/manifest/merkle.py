"""Merkle root over 32-byte task leaf hashes.

Uses SHA-256 as the hash function. Leaves are sorted before tree
construction so the root does not depend on task order in the manifest.
An odd node at any level is paired with itself. An empty tree's root is
``sha256(b"")``.
"""

from __future__ import annotations

from collections.abc import Iterable

from epochanchor.core.hasher import sha256_digest


def hash_leaf(data: bytes) -> bytes:
    """Leaf hash of raw task bytes."""
    return sha256_digest(data)


def hash_pair(left: bytes, right: bytes) -> bytes:
    return sha256_digest(left + right)


def merkle_root(leaves: Iterable[bytes]) -> bytes:
    """Compute the 32-byte root of *leaves*."""
    level = sorted(bytes(leaf) for leaf in leaves)
    if not level:
        return sha256_digest(b"")

    while len(level) > 1:
        next_level: list[bytes] = []
        for i in range(0, len(level), 2):
            left = level[i]
            right = level[i + 1] if i + 1 < len(level) else left
            next_level.append(hash_pair(left, right))
        level = next_level

    return level[0]
