"""Off-ledger proof manifests: models, Merkle roots, storage, verification."""

from epochanchor.manifest.merkle import hash_leaf, merkle_root
from epochanchor.manifest.models import (
    EpochManifest,
    ManifestTask,
    ManifestVerdict,
    VerificationSummary,
)
from epochanchor.manifest.pipeline import EpochPublisher, ManifestMismatch, verify_epoch
from epochanchor.manifest.store import ManifestIntegrityError, ManifestNotFound, ManifestStore

__all__ = [
    "EpochManifest",
    "EpochPublisher",
    "ManifestIntegrityError",
    "ManifestMismatch",
    "ManifestNotFound",
    "ManifestStore",
    "ManifestTask",
    "ManifestVerdict",
    "VerificationSummary",
    "hash_leaf",
    "merkle_root",
    "verify_epoch",
]
