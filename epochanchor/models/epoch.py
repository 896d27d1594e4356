"""Epoch record and anchoring notification models.

An EpochRecord is written once and never changes:
- commitment is a 32-byte digest (the epoch's Merkle root)
- locator is an opaque, non-empty pointer to the off-ledger manifest
- epoch_id and schema_version are unsigned integers
- anchored_at is assigned by the ledger, never by the caller
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

COMMITMENT_SIZE = 32
MAX_UINT256 = 2**256 - 1


def coerce_commitment(value: Any) -> bytes:
    """Normalise a digest given as raw bytes or hex text (``0x`` optional).

    Raises ValueError unless the result is exactly 32 bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
    elif isinstance(value, str):
        text = value.strip().removeprefix("0x").removeprefix("0X")
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise ValueError(f"commitment is not valid hex: {value!r}") from exc
    else:
        raise ValueError(
            f"commitment must be bytes or hex str, got {type(value).__name__}"
        )
    if len(raw) != COMMITMENT_SIZE:
        raise ValueError(
            f"commitment must be {COMMITMENT_SIZE} bytes, got {len(raw)}"
        )
    return raw


def commitment_hex(commitment: bytes) -> str:
    return "0x" + commitment.hex()


class _EpochFields(BaseModel):
    model_config = ConfigDict(frozen=True)

    commitment: bytes
    locator: str = Field(min_length=1)
    epoch_id: int
    schema_version: int
    anchored_at: datetime

    @field_validator("commitment", mode="before")
    @classmethod
    def _validate_commitment(cls, value: Any) -> bytes:
        return coerce_commitment(value)

    @field_validator("epoch_id", "schema_version", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("expected an unsigned integer, got bool")
        return value

    @field_validator("epoch_id", "schema_version")
    @classmethod
    def _check_unsigned(cls, value: int) -> int:
        if not 0 <= value <= MAX_UINT256:
            raise ValueError(f"expected an unsigned 256-bit integer, got {value}")
        return value

    @field_serializer("commitment", when_used="json")
    def _serialize_commitment(self, commitment: bytes) -> str:
        return commitment_hex(commitment)

    @property
    def commitment_hex(self) -> str:
        return commitment_hex(self.commitment)


class EpochRecord(_EpochFields):
    """One anchored epoch. Immutable once written."""

    def to_event(self) -> EpochAnchored:
        return EpochAnchored(
            commitment=self.commitment,
            locator=self.locator,
            epoch_id=self.epoch_id,
            anchored_at=self.anchored_at,
            schema_version=self.schema_version,
        )


class EpochAnchored(_EpochFields):
    """Notification emitted after an epoch record is committed.

    Carries (commitment, locator, epoch_id, anchored_at, schema_version)
    for external observers such as indexers.
    """

    event_type: str = "epoch_anchored"
