"""Backing stores for the anchor ledger's state.

A store holds two things and nothing else:
- LedgerState: epoch_id -> EpochRecord, in anchoring order
- AuthorityState: the single current anchorer identity

Stores have no update or delete path for records. Every write names the
identity performing it; the store re-checks that identity against the
current anchorer and the epoch id against existing records in the same
atomic step as the write itself, so several ledgers may share one store.
"""

from __future__ import annotations

import abc
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from epochanchor.core.errors import DuplicateEpoch, Unauthorized
from epochanchor.models.epoch import EpochRecord


def _stamp_after(record: EpochRecord, latest: datetime | None) -> EpochRecord:
    # Never step behind the previous write, even if the writer's clock does.
    if latest is not None and record.anchored_at < latest:
        return record.model_copy(update={"anchored_at": latest})
    return record


class EpochStore(abc.ABC):
    """Storage contract shared by the in-memory and SQLite backends."""

    @abc.abstractmethod
    def get(self, epoch_id: int) -> EpochRecord | None:
        """Return the record for *epoch_id*, or None."""

    @abc.abstractmethod
    def contains(self, epoch_id: int) -> bool:
        ...

    @abc.abstractmethod
    def insert(self, record: EpochRecord, *, caller: str) -> EpochRecord:
        """Persist a new record on behalf of *caller*.

        Atomically checks that *caller* holds the anchorer slot (Unauthorized)
        and that the epoch id is free (DuplicateEpoch). ``anchored_at`` is
        clamped to the latest stored value. Returns the stored record.
        """

    @abc.abstractmethod
    def count(self) -> int:
        ...

    @abc.abstractmethod
    def records(self) -> list[EpochRecord]:
        """All records in anchoring order."""

    @abc.abstractmethod
    def latest_anchored_at(self) -> datetime | None:
        ...

    @abc.abstractmethod
    def get_anchorer(self) -> str | None:
        ...

    @abc.abstractmethod
    def bind_anchorer(self, identity: str) -> str:
        """Fill an empty anchorer slot with *identity*. Returns the holder."""

    @abc.abstractmethod
    def set_anchorer(self, identity: str, *, caller: str) -> str:
        """Replace the anchorer if *caller* holds the slot. Returns the previous holder."""


class MemoryEpochStore(EpochStore):
    """Dict-backed store. Insertion order is anchoring order."""

    def __init__(self) -> None:
        self._records: dict[int, EpochRecord] = {}
        self._anchorer: str | None = None
        self._lock = threading.Lock()

    def get(self, epoch_id: int) -> EpochRecord | None:
        return self._records.get(epoch_id)

    def contains(self, epoch_id: int) -> bool:
        return epoch_id in self._records

    def insert(self, record: EpochRecord, *, caller: str) -> EpochRecord:
        with self._lock:
            if caller != self._anchorer:
                raise Unauthorized(caller, self._anchorer)
            if record.epoch_id in self._records:
                raise DuplicateEpoch(record.epoch_id)
            record = _stamp_after(record, self._latest())
            # Single assignment publishes a fully built, frozen record.
            self._records[record.epoch_id] = record
            return record

    def count(self) -> int:
        return len(self._records)

    def records(self) -> list[EpochRecord]:
        return list(self._records.values())

    def latest_anchored_at(self) -> datetime | None:
        with self._lock:
            return self._latest()

    def _latest(self) -> datetime | None:
        if not self._records:
            return None
        return next(reversed(self._records.values())).anchored_at

    def get_anchorer(self) -> str | None:
        return self._anchorer

    def bind_anchorer(self, identity: str) -> str:
        with self._lock:
            if self._anchorer is None:
                self._anchorer = identity
            return self._anchorer

    def set_anchorer(self, identity: str, *, caller: str) -> str:
        with self._lock:
            previous = self._anchorer
            if caller != previous:
                raise Unauthorized(caller, previous, "rotate the anchorer")
            self._anchorer = identity
            return previous


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_RECORDS = """
CREATE TABLE IF NOT EXISTS epoch_records (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    epoch_id        TEXT NOT NULL UNIQUE,
    commitment      BLOB NOT NULL CHECK (length(commitment) = 32),
    locator         TEXT NOT NULL CHECK (locator <> ''),
    schema_version  TEXT NOT NULL,
    anchored_at     TEXT NOT NULL
);
"""

_CREATE_AUTHORITY = """
CREATE TABLE IF NOT EXISTS authority (
    slot      INTEGER PRIMARY KEY CHECK (slot = 1),
    anchorer  TEXT NOT NULL CHECK (anchorer <> '')
);
"""

_CREATE_NO_REPLACE = """
CREATE TRIGGER IF NOT EXISTS epoch_records_no_replace
BEFORE INSERT ON epoch_records
WHEN EXISTS (SELECT 1 FROM epoch_records WHERE epoch_id = NEW.epoch_id)
BEGIN
    SELECT RAISE(ABORT, 'epoch already exists');
END;
"""

_CREATE_NO_UPDATE = """
CREATE TRIGGER IF NOT EXISTS epoch_records_no_update
BEFORE UPDATE ON epoch_records
BEGIN
    SELECT RAISE(ABORT, 'epoch records are immutable');
END;
"""

_CREATE_NO_DELETE = """
CREATE TRIGGER IF NOT EXISTS epoch_records_no_delete
BEFORE DELETE ON epoch_records
BEGIN
    SELECT RAISE(ABORT, 'epoch records cannot be deleted');
END;
"""

_CREATE_AUTHORITY_NO_DELETE = """
CREATE TRIGGER IF NOT EXISTS authority_no_delete
BEFORE DELETE ON authority
BEGIN
    SELECT RAISE(ABORT, 'the anchorer cannot be removed');
END;
"""


class SqliteEpochStore(EpochStore):
    """Durable, append-only store backed by SQLite.

    Epoch ids are stored as decimal text so the full unsigned 256-bit
    range fits; the autoincrement ``id`` column preserves anchoring order.
    Triggers abort any UPDATE or DELETE against ``epoch_records`` and any
    INSERT (including INSERT OR REPLACE) that reuses an existing epoch id.

    Writes run inside ``BEGIN IMMEDIATE`` so the anchorer check, the
    duplicate check and the write itself see one consistent database,
    even across processes sharing the file.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            with conn:
                yield conn
        finally:
            conn.close()

    @contextmanager
    def _write_transaction(self) -> Iterator[sqlite3.Connection]:
        """Hold the database write lock from the first read to commit."""
        conn = sqlite3.connect(str(self._db_path), isolation_level=None, check_same_thread=False)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_RECORDS)
            conn.execute(_CREATE_AUTHORITY)
            conn.execute(_CREATE_NO_REPLACE)
            conn.execute(_CREATE_NO_UPDATE)
            conn.execute(_CREATE_NO_DELETE)
            conn.execute(_CREATE_AUTHORITY_NO_DELETE)

    # ------------------------------------------------------------------
    # LedgerState
    # ------------------------------------------------------------------

    def get(self, epoch_id: int) -> EpochRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT epoch_id, commitment, locator, schema_version, anchored_at "
                "FROM epoch_records WHERE epoch_id = ?",
                (str(epoch_id),),
            ).fetchone()
        return self._row_to_record(row) if row else None

    def contains(self, epoch_id: int) -> bool:
        with self._connect() as conn:
            return self._contains(conn, epoch_id)

    def insert(self, record: EpochRecord, *, caller: str) -> EpochRecord:
        try:
            with self._write_transaction() as conn:
                holder = self._anchorer(conn)
                if caller != holder:
                    raise Unauthorized(caller, holder)
                if self._contains(conn, record.epoch_id):
                    raise DuplicateEpoch(record.epoch_id)
                record = _stamp_after(record, self._latest(conn))
                conn.execute(
                    """
                    INSERT INTO epoch_records
                        (epoch_id, commitment, locator, schema_version, anchored_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        str(record.epoch_id),
                        record.commitment,
                        record.locator,
                        str(record.schema_version),
                        record.anchored_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            if "already exists" in str(exc) or "epoch_records.epoch_id" in str(exc):
                raise DuplicateEpoch(record.epoch_id) from exc
            raise
        return record

    def count(self) -> int:
        with self._connect() as conn:
            (total,) = conn.execute("SELECT COUNT(*) FROM epoch_records").fetchone()
        return total

    def records(self) -> list[EpochRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT epoch_id, commitment, locator, schema_version, anchored_at "
                "FROM epoch_records ORDER BY id ASC"
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def latest_anchored_at(self) -> datetime | None:
        with self._connect() as conn:
            return self._latest(conn)

    # ------------------------------------------------------------------
    # AuthorityState
    # ------------------------------------------------------------------

    def get_anchorer(self) -> str | None:
        with self._connect() as conn:
            return self._anchorer(conn)

    def bind_anchorer(self, identity: str) -> str:
        with self._write_transaction() as conn:
            conn.execute(
                "INSERT INTO authority (slot, anchorer) VALUES (1, ?) ON CONFLICT(slot) DO NOTHING",
                (identity,),
            )
            return self._anchorer(conn)

    def set_anchorer(self, identity: str, *, caller: str) -> str:
        with self._write_transaction() as conn:
            previous = self._anchorer(conn)
            if caller != previous:
                raise Unauthorized(caller, previous, "rotate the anchorer")
            conn.execute("UPDATE authority SET anchorer = ? WHERE slot = 1", (identity,))
        return previous

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _contains(conn: sqlite3.Connection, epoch_id: int) -> bool:
        row = conn.execute(
            "SELECT 1 FROM epoch_records WHERE epoch_id = ?",
            (str(epoch_id),),
        ).fetchone()
        return row is not None

    @staticmethod
    def _latest(conn: sqlite3.Connection) -> datetime | None:
        row = conn.execute(
            "SELECT anchored_at FROM epoch_records ORDER BY id DESC LIMIT 1"
        ).fetchone()
        return datetime.fromisoformat(row[0]) if row else None

    @staticmethod
    def _anchorer(conn: sqlite3.Connection) -> str | None:
        row = conn.execute("SELECT anchorer FROM authority WHERE slot = 1").fetchone()
        return row[0] if row else None

    @staticmethod
    def _row_to_record(row: tuple) -> EpochRecord:
        epoch_id, commitment, locator, schema_version, anchored_at = row
        return EpochRecord(
            commitment=bytes(commitment),
            locator=locator,
            epoch_id=int(epoch_id),
            schema_version=int(schema_version),
            anchored_at=datetime.fromisoformat(anchored_at),
        )
