"""Adversarial tests — attempts to rewrite anchored history.

These tests verify that:
1. Direct SQL UPDATE/DELETE on epoch records is aborted by the store.
2. Removing the anchorer row is aborted, so authority is never empty.
3. A duplicate anchor never overwrites, regardless of other arguments.
4. Forged or malformed claims never verify.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.core.epoch_store import SqliteEpochStore
from epochanchor.core.errors import DuplicateEpoch
from epochanchor.core.hasher import commitment_of


@pytest.fixture
def seeded(tmp_path: Path, anchorer) -> tuple[AnchorLedger, Path]:
    """Seed a durable ledger with 5 epochs."""
    db_path = tmp_path / "anchor.db"
    ledger = AnchorLedger(anchorer, store=SqliteEpochStore(db_path))
    for i in range(1, 6):
        ledger.anchor_epoch(commitment_of(f"root-{i}"), f"greenfield://b/epoch-{i}.json", i, 1, caller=anchorer)
    return ledger, db_path


def _execute(db_path: Path, sql: str, params: tuple = ()) -> None:
    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute(sql, params)
        conn.commit()
    finally:
        conn.close()


class TestDirectDatabaseTampering:
    def test_update_commitment_aborted(self, seeded):
        ledger, db_path = seeded
        with pytest.raises(sqlite3.DatabaseError, match="immutable"):
            _execute(
                db_path,
                "UPDATE epoch_records SET commitment = ? WHERE epoch_id = '3'",
                (commitment_of("forged"),),
            )
        assert ledger.verify_epoch_root(3, commitment_of("root-3")) is True
        assert ledger.verify_epoch_root(3, commitment_of("forged")) is False

    def test_delete_aborted(self, seeded):
        ledger, db_path = seeded
        with pytest.raises(sqlite3.DatabaseError, match="cannot be deleted"):
            _execute(db_path, "DELETE FROM epoch_records WHERE epoch_id = '2'")
        assert ledger.total_epochs() == 5

    def test_replace_into_aborted(self, seeded):
        ledger, db_path = seeded
        with pytest.raises(sqlite3.DatabaseError):
            _execute(
                db_path,
                "INSERT OR REPLACE INTO epoch_records "
                "(epoch_id, commitment, locator, schema_version, anchored_at) "
                "VALUES ('1', ?, 'evil', '1', '2026-01-01T00:00:00+00:00')",
                (commitment_of("forged"),),
            )
        assert ledger.get_epoch(1).locator == "greenfield://b/epoch-1.json"

    def test_anchorer_row_cannot_be_removed(self, seeded, anchorer):
        ledger, db_path = seeded
        with pytest.raises(sqlite3.DatabaseError, match="cannot be removed"):
            _execute(db_path, "DELETE FROM authority")
        assert ledger.anchorer == anchorer

    def test_empty_anchorer_rejected_by_schema(self, seeded, anchorer):
        ledger, db_path = seeded
        with pytest.raises(sqlite3.IntegrityError):
            _execute(db_path, "UPDATE authority SET anchorer = '' WHERE slot = 1")
        assert ledger.anchorer == anchorer

    def test_second_authority_row_rejected(self, seeded, anchorer):
        ledger, db_path = seeded
        with pytest.raises(sqlite3.IntegrityError):
            _execute(db_path, "INSERT INTO authority (slot, anchorer) VALUES (2, 'mallory')")
        assert ledger.anchorer == anchorer

    def test_short_commitment_rejected_by_schema(self, seeded):
        _, db_path = seeded
        with pytest.raises(sqlite3.IntegrityError):
            _execute(
                db_path,
                "INSERT INTO epoch_records (epoch_id, commitment, locator, schema_version, anchored_at) "
                "VALUES ('99', ?, 'loc', '1', '2026-01-01T00:00:00+00:00')",
                (b"\x00" * 4,),
            )


class TestOverwriteAttempts:
    @pytest.mark.parametrize(
        "commitment, locator, schema_version",
        [
            ("forged", "greenfield://b/epoch-1.json", 1),
            ("root-1", "greenfield://evil/epoch-1.json", 1),
            ("root-1", "greenfield://b/epoch-1.json", 2),
        ],
    )
    def test_duplicate_rejected_regardless_of_arguments(self, seeded, anchorer, commitment, locator, schema_version):
        ledger, _ = seeded
        before = ledger.get_epoch(1)
        with pytest.raises(DuplicateEpoch):
            ledger.anchor_epoch(commitment_of(commitment), locator, 1, schema_version, caller=anchorer)
        assert ledger.get_epoch(1) == before
        assert ledger.total_epochs() == 5

    @pytest.mark.parametrize(
        "commitment, locator, schema_version",
        [
            (commitment_of("forged"), "", 1),
            (b"\x00" * 5, "greenfield://b/epoch-1.json", 1),
            ("not-hex", "greenfield://b/epoch-1.json", 1),
            (commitment_of("forged"), "greenfield://b/epoch-1.json", -1),
        ],
    )
    def test_duplicate_wins_over_malformed_arguments(self, seeded, anchorer, commitment, locator, schema_version):
        ledger, _ = seeded
        before = ledger.get_epoch(1)
        with pytest.raises(DuplicateEpoch):
            ledger.anchor_epoch(commitment, locator, 1, schema_version, caller=anchorer)
        assert ledger.get_epoch(1) == before
        assert ledger.total_epochs() == 5

    def test_second_process_cannot_overwrite(self, seeded, anchorer):
        """A second ledger over the same file hits the UNIQUE constraint."""
        ledger, db_path = seeded
        other = AnchorLedger.open(SqliteEpochStore(db_path))
        with pytest.raises(DuplicateEpoch):
            other.anchor_epoch(commitment_of("forged"), "evil", 4, 1, caller=anchorer)
        assert ledger.verify_epoch_root(4, commitment_of("root-4")) is True


class TestForgedClaims:
    def test_every_other_root_fails(self, seeded):
        ledger, _ = seeded
        for i in range(1, 6):
            for j in range(1, 6):
                expected = i == j
                assert ledger.verify_epoch_root(i, commitment_of(f"root-{j}")) is expected

    def test_near_miss_fails(self, seeded):
        ledger, _ = seeded
        genuine = bytearray(commitment_of("root-1"))
        genuine[-1] ^= 0x01
        assert ledger.verify_epoch_root(1, bytes(genuine)) is False

    def test_truncated_and_extended_claims_fail(self, seeded):
        ledger, _ = seeded
        genuine = commitment_of("root-1")
        assert ledger.verify_epoch_root(1, genuine[:31]) is False
        assert ledger.verify_epoch_root(1, genuine + b"\x00") is False

    def test_never_anchored_epochs_fail(self, seeded):
        ledger, _ = seeded
        for epoch_id in (0, 6, 10**30):
            assert ledger.verify_epoch_root(epoch_id, commitment_of("root-1")) is False
