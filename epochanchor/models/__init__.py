"""epochanchor data models — all Pydantic v2, all frozen (immutable)."""

from epochanchor.models.epoch import (
    COMMITMENT_SIZE,
    MAX_UINT256,
    EpochAnchored,
    EpochRecord,
    coerce_commitment,
    commitment_hex,
)

__all__ = [
    "COMMITMENT_SIZE",
    "MAX_UINT256",
    "EpochAnchored",
    "EpochRecord",
    "coerce_commitment",
    "commitment_hex",
]
