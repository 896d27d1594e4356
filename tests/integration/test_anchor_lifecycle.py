"""Integration tests — anchor, observe, rotate, publish and verify end to end."""

from __future__ import annotations

from pathlib import Path

import pytest

from epochanchor.config import AnchorConfig
from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.core.deployment import build_registry, create_ledger, open_ledger
from epochanchor.core.errors import DuplicateEpoch, EpochNotFound, Unauthorized
from epochanchor.core.hasher import commitment_of
from epochanchor.core.notifier import JsonlEventSink
from epochanchor.manifest.pipeline import EpochPublisher, verify_epoch
from epochanchor.manifest.store import ManifestStore


def test_anchor_verify_scenario(any_ledger: AnchorLedger, anchorer, outsider, locator):
    """Anchorer anchors epoch 1, anyone verifies, nobody overwrites."""
    root = commitment_of("test-root")
    any_ledger.anchor_epoch(root, locator, 1, 1, caller=anchorer)

    record = any_ledger.get_epoch(1)
    assert (record.commitment, record.locator, record.epoch_id, record.schema_version) == (root, locator, 1, 1)
    assert any_ledger.verify_epoch_root(1, commitment_of("test-root")) is True
    assert any_ledger.verify_epoch_root(1, commitment_of("wrong-root")) is False

    with pytest.raises(DuplicateEpoch):
        any_ledger.anchor_epoch(root, locator, 1, 1, caller=anchorer)
    with pytest.raises(Unauthorized):
        any_ledger.anchor_epoch(root, locator, 1, 1, caller=outsider)
    with pytest.raises(EpochNotFound):
        any_ledger.get_epoch(2)
    assert any_ledger.total_epochs() == 1


def test_count_is_monotonic(any_ledger: AnchorLedger, anchorer, outsider):
    observed = [any_ledger.total_epochs()]
    for epoch_id in range(1, 11):
        any_ledger.anchor_epoch(commitment_of(f"r{epoch_id}"), f"loc-{epoch_id}", epoch_id, 1, caller=anchorer)
        observed.append(any_ledger.total_epochs())
        with pytest.raises(DuplicateEpoch):
            any_ledger.anchor_epoch(commitment_of("again"), "again", epoch_id, 1, caller=anchorer)
        with pytest.raises(Unauthorized):
            any_ledger.anchor_epoch(commitment_of("x"), "x", 1000 + epoch_id, 1, caller=outsider)
        observed.append(any_ledger.total_epochs())
    assert observed == [0] + [n for n in range(1, 11) for _ in (0, 1)]


def test_durable_lifecycle(tmp_path: Path, anchorer, successor, make_manifest):
    """Publish through a configured deployment, restart, rotate, verify."""
    events_path = tmp_path / "feed" / "events.jsonl"
    cfg = AnchorConfig(
        ledger_path=tmp_path / "anchor.db",
        manifest_store_path=tmp_path / "manifests",
        event_log_path=events_path,
        registry_owner="ops-multisig",
    )
    store = ManifestStore(cfg.manifest_store_path, scheme=cfg.locator_scheme, bucket=cfg.manifest_bucket)

    ledger = create_ledger(anchorer, cfg=cfg)
    registry = build_registry(ledger, cfg=cfg)
    publisher = EpochPublisher(ledger, store)
    first = publisher.publish(make_manifest(epoch_id=1, task_count=4), caller=anchorer)
    assert first.locator.startswith("greenfield://epoch-manifests/sha256:")

    # Restart: a new process opens the same files.
    reopened = open_ledger(cfg=cfg)
    assert reopened.total_epochs() == 1
    assert reopened.get_epoch(1) == first

    reopened.set_anchorer(successor, caller=anchorer)
    with pytest.raises(Unauthorized):
        EpochPublisher(reopened, store).publish(make_manifest(epoch_id=2), caller=anchorer)
    second = EpochPublisher(reopened, store).publish(make_manifest(epoch_id=2, task_count=9), caller=successor)

    for epoch_id in (1, 2):
        verdict = verify_epoch(reopened, store, epoch_id)
        assert verdict.verified is True, verdict.reason

    # The first registry still reads through its ledger reference.
    assert registry.owner == "ops-multisig"
    assert registry.total_epochs() == 2
    assert registry.verify_epoch_root(2, second.commitment) is True

    feed = JsonlEventSink(events_path).read_events()
    assert [e.epoch_id for e in feed] == [1, 2]
    assert feed[1].commitment == second.commitment
    assert feed[1].anchored_at == second.anchored_at
