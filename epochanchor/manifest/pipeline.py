"""Publish manifests and verify anchored epochs against them.

Publishing: recompute the root from task leaves, check the caller and the
epoch id against the ledger, store the manifest, then anchor (root,
locator, epoch_id, schema_version) through the ledger's normal write path.

Verifying: fetch the anchored record, resolve its locator, recompute the
root from the manifest's leaves and cross-check it with
``verify_epoch_root``.
"""

from __future__ import annotations

import logging

from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.core.errors import DuplicateEpoch, EpochNotFound, Unauthorized
from epochanchor.manifest.merkle import merkle_root
from epochanchor.manifest.models import EpochManifest, ManifestVerdict
from epochanchor.manifest.store import ManifestIntegrityError, ManifestNotFound, ManifestStore
from epochanchor.models.epoch import EpochRecord, commitment_hex

logger = logging.getLogger(__name__)


class ManifestMismatch(ValueError):
    """Raised when a manifest's declared root disagrees with its task leaves."""


class EpochPublisher:
    """Stores a manifest and anchors its root in one step."""

    def __init__(self, ledger: AnchorLedger, store: ManifestStore) -> None:
        self._ledger = ledger
        self._store = store

    def publish(self, manifest: EpochManifest, *, caller: str) -> EpochRecord:
        computed = merkle_root(manifest.leaf_hashes)
        if computed != manifest.merkle_root:
            raise ManifestMismatch(
                f"Manifest for epoch {manifest.epoch_id} declares root "
                f"{commitment_hex(manifest.merkle_root)} but its tasks reduce to "
                f"{commitment_hex(computed)}"
            )

        # A rejected publish stores nothing.
        if caller != self._ledger.anchorer:
            raise Unauthorized(caller, self._ledger.anchorer)
        if self._ledger.has_epoch(manifest.epoch_id):
            raise DuplicateEpoch(manifest.epoch_id)

        locator = self._store.put(manifest)
        record = self._ledger.anchor_epoch(
            computed,
            locator,
            manifest.epoch_id,
            manifest.schema_version,
            caller=caller,
        )
        logger.info("Published epoch %d (%d tasks) at %s", record.epoch_id, len(manifest.tasks), locator)
        return record


def verify_epoch(ledger: AnchorLedger, store: ManifestStore, epoch_id: int) -> ManifestVerdict:
    """Cross-check the manifest behind an anchored epoch."""
    try:
        record = ledger.get_epoch(epoch_id)
    except EpochNotFound:
        return ManifestVerdict(epoch_id=epoch_id, reason="epoch is not anchored")

    anchored = record.commitment_hex
    try:
        manifest = store.get(record.locator)
    except (ManifestNotFound, ManifestIntegrityError) as exc:
        logger.warning("Epoch %d: manifest unavailable: %s", epoch_id, exc)
        return ManifestVerdict(
            epoch_id=epoch_id,
            locator=record.locator,
            anchored_root=anchored,
            reason=f"manifest unavailable: {exc}",
        )

    computed = merkle_root(manifest.leaf_hashes)
    verdict = {
        "epoch_id": epoch_id,
        "locator": record.locator,
        "anchored_root": anchored,
        "declared_root": commitment_hex(manifest.merkle_root),
        "computed_root": commitment_hex(computed),
    }

    if manifest.epoch_id != epoch_id:
        reason = f"manifest describes epoch {manifest.epoch_id}"
    elif manifest.merkle_root != computed:
        reason = "declared root does not match task leaves"
    elif not ledger.verify_epoch_root(epoch_id, computed):
        reason = "computed root does not match anchored commitment"
    else:
        return ManifestVerdict(**verdict, verified=True, reason="ok")

    logger.warning("Epoch %d failed manifest verification: %s", epoch_id, reason)
    return ManifestVerdict(**verdict, reason=reason)
