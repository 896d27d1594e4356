"""Epoch manifest models — the off-ledger proof document behind a locator.

A manifest lists every task in an epoch with its leaf hash. Re-assembling
the leaf hashes into a Merkle tree must reproduce the anchored root.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from epochanchor.models.epoch import coerce_commitment, commitment_hex


class ManifestTask(BaseModel):
    """One unit of off-chain work and its leaf hash."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    task_id: str = Field(alias="taskId")
    task_type: str = Field(default="", alias="type")
    worker: str = ""
    leaf_hash: bytes = Field(alias="leafHash")
    metadata: dict[str, Any] = {}

    @field_validator("leaf_hash", mode="before")
    @classmethod
    def _validate_leaf(cls, value: Any) -> bytes:
        return coerce_commitment(value)

    @field_serializer("leaf_hash", when_used="json")
    def _serialize_leaf(self, leaf_hash: bytes) -> str:
        return commitment_hex(leaf_hash)


class VerificationSummary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_tasks: int = Field(default=0, ge=0, alias="totalTasks")
    valid_tasks: int = Field(default=0, ge=0, alias="validTasks")
    invalid_tasks: int = Field(default=0, ge=0, alias="invalidTasks")


class EpochManifest(BaseModel):
    """Full proof manifest for one epoch, stored outside the ledger."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    epoch_id: int = Field(ge=0, alias="epochId")
    schema_version: int = Field(default=1, ge=0, alias="schemaVersion")
    merkle_root: bytes = Field(alias="merkleRoot")
    timestamp: int = 0
    tasks: list[ManifestTask] = []
    verification: VerificationSummary = VerificationSummary()

    @field_validator("merkle_root", mode="before")
    @classmethod
    def _validate_root(cls, value: Any) -> bytes:
        return coerce_commitment(value)

    @field_serializer("merkle_root", when_used="json")
    def _serialize_root(self, merkle_root: bytes) -> str:
        return commitment_hex(merkle_root)

    @property
    def leaf_hashes(self) -> list[bytes]:
        return [task.leaf_hash for task in self.tasks]

    def to_json_bytes(self) -> bytes:
        """Serialize using the wire field names (``epochId``, ``merkleRoot``...)."""
        return self.model_dump_json(by_alias=True).encode("utf-8")


class ManifestVerdict(BaseModel):
    """Outcome of cross-checking a stored manifest against the ledger."""

    model_config = ConfigDict(frozen=True)

    epoch_id: int
    locator: str = ""
    anchored_root: str = ""
    declared_root: str = ""
    computed_root: str = ""
    verified: bool = False
    reason: str = ""
