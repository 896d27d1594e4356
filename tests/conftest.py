"""Shared test fixtures for epochanchor."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.core.epoch_store import SqliteEpochStore
from epochanchor.core.hasher import commitment_of
from epochanchor.manifest.merkle import hash_leaf, merkle_root
from epochanchor.manifest.models import EpochManifest, ManifestTask
from epochanchor.manifest.store import ManifestStore

ANCHORER = "0xA11CE00000000000000000000000000000000001"
OUTSIDER = "0xB0B0000000000000000000000000000000000002"
SUCCESSOR = "0xC0FFEE0000000000000000000000000000000003"
LOCATOR = "greenfield://optimai-mining-proofs/epoch-1.json"


@pytest.fixture
def anchorer() -> str:
    return ANCHORER


@pytest.fixture
def outsider() -> str:
    return OUTSIDER


@pytest.fixture
def successor() -> str:
    return SUCCESSOR


@pytest.fixture
def locator() -> str:
    return LOCATOR


@pytest.fixture
def good_root() -> bytes:
    return commitment_of("test-root")


@pytest.fixture
def bad_root() -> bytes:
    return commitment_of("wrong-root")


@pytest.fixture
def ledger() -> AnchorLedger:
    """Provide a fresh in-memory AnchorLedger with ANCHORER as writer."""
    return AnchorLedger(ANCHORER)


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SqliteEpochStore:
    """Provide a fresh SqliteEpochStore backed by a temp database."""
    return SqliteEpochStore(tmp_path / "anchor.db")


@pytest.fixture
def sqlite_ledger(sqlite_store: SqliteEpochStore) -> AnchorLedger:
    """Provide a durable AnchorLedger with ANCHORER as writer."""
    return AnchorLedger(ANCHORER, store=sqlite_store)


@pytest.fixture(params=["memory", "sqlite"])
def any_ledger(request: pytest.FixtureRequest, tmp_path: Path) -> AnchorLedger:
    """Run a test against both store backends."""
    if request.param == "memory":
        return AnchorLedger(ANCHORER)
    return AnchorLedger(ANCHORER, store=SqliteEpochStore(tmp_path / "param.db"))


@pytest.fixture
def manifest_store(tmp_path: Path) -> ManifestStore:
    return ManifestStore(tmp_path / "manifests", bucket="optimai-mining-proofs")


class StepClock:
    """Deterministic clock: returns queued instants, then repeats the last."""

    def __init__(self, *instants: datetime) -> None:
        self._instants = list(instants)
        self._last = instants[0] if instants else datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        if self._instants:
            self._last = self._instants.pop(0)
        return self._last

    @classmethod
    def ticking(cls, count: int, start: datetime | None = None) -> StepClock:
        start = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        return cls(*(start + timedelta(seconds=i) for i in range(count)))


@pytest.fixture
def make_manifest() -> Callable[..., EpochManifest]:
    """Factory fixture: build a consistent EpochManifest for *epoch_id*."""

    def _factory(epoch_id: int = 1, task_count: int = 3, **overrides: Any) -> EpochManifest:
        tasks = [
            ManifestTask(
                task_id=f"task-{i:03d}",
                task_type="data_crawl",
                worker=f"node-{i}",
                leaf_hash=hash_leaf(f"epoch-{epoch_id}/task-{i}".encode()),
                metadata={"url": f"https://example.com/{i}"},
            )
            for i in range(task_count)
        ]
        defaults: dict[str, Any] = {
            "epoch_id": epoch_id,
            "schema_version": 1,
            "merkle_root": merkle_root(t.leaf_hash for t in tasks),
            "timestamp": 1_700_000_000,
            "tasks": tasks,
        }
        defaults.update(overrides)
        return EpochManifest(**defaults)

    return _factory


@pytest.fixture
def step_clock() -> type[StepClock]:
    """Provide the StepClock class for tests that control anchored_at."""
    return StepClock
