"""Anchor Ledger — authorization-gated, append-only store of epoch commitments.

Each epoch id slot moves Absent -> Anchored exactly once; there is no
update, no delete and no path back. A single anchorer identity holds
write capability at any time and may hand it to another identity.

Design:
- Writes (``anchor_epoch``, ``set_anchorer``) run under one lock per ledger,
  and the store re-checks the caller inside the transaction that writes.
- A record is committed to the store before its notification is recorded
  and dispatched, so observers never see an event without a write.
- Reads are side-effect free and never see a half-written record.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from epochanchor.core.epoch_store import EpochStore, MemoryEpochStore
from epochanchor.core.errors import (
    DuplicateEpoch,
    EpochNotFound,
    InvalidAuthority,
    InvalidEpochData,
    LedgerNotInitialized,
    Unauthorized,
)
from epochanchor.core.notifier import EventDispatcher, Subscriber
from epochanchor.models.epoch import EpochAnchored, EpochRecord, coerce_commitment

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_identity(identity: Any) -> str:
    if not isinstance(identity, str) or not identity.strip():
        raise InvalidAuthority(f"Anchorer identity must be a non-empty string, got {identity!r}")
    return identity


def _check_epoch_id(epoch_id: Any) -> int:
    if isinstance(epoch_id, bool) or not isinstance(epoch_id, int):
        raise InvalidEpochData(f"epoch_id must be an integer, got {type(epoch_id).__name__}")
    return epoch_id


class AnchorLedger:
    """Append-only ledger of epoch commitments with a single rotatable writer.

    Parameters
    ----------
    anchorer:
        Identity allowed to write. Bound into a fresh store; a store that
        already holds a different anchorer is rejected.
    store:
        Backing store. Defaults to an in-memory store.
    dispatcher:
        Fan-out for ``EpochAnchored`` notifications.
    clock:
        Source of ``anchored_at`` timestamps (UTC).
    """

    def __init__(
        self,
        anchorer: str,
        *,
        store: EpochStore | None = None,
        dispatcher: EventDispatcher | None = None,
        clock: Clock | None = None,
    ) -> None:
        _require_identity(anchorer)
        self._store = store if store is not None else MemoryEpochStore()
        self._dispatcher = dispatcher if dispatcher is not None else EventDispatcher()
        self._clock = clock or _utcnow
        self._lock = threading.RLock()
        self._events: list[EpochAnchored] = []

        current = self._store.bind_anchorer(anchorer)
        if current != anchorer:
            raise InvalidAuthority(
                f"Store is already bound to anchorer {current!r}, not {anchorer!r}"
            )

    @classmethod
    def open(cls, store: EpochStore, **kwargs: Any) -> AnchorLedger:
        """Reopen a store that already holds an anchorer."""
        current = store.get_anchorer()
        if current is None:
            raise LedgerNotInitialized("Store has no anchorer; create the ledger first")
        return cls(current, store=store, **kwargs)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def anchor_epoch(
        self,
        commitment: bytes | str,
        locator: str,
        epoch_id: int,
        schema_version: int,
        *,
        caller: str,
    ) -> EpochRecord:
        """Anchor a new epoch commitment.

        Raises Unauthorized if *caller* is not the anchorer, DuplicateEpoch
        if *epoch_id* exists (whatever the other arguments are) and
        InvalidEpochData for malformed arguments. Nothing changes when any
        of these is raised.
        """
        with self._lock:
            self._authorize(caller, "anchor epochs")
            if self._store.contains(_check_epoch_id(epoch_id)):
                logger.warning("Rejected duplicate anchor for epoch %d", epoch_id)
                raise DuplicateEpoch(epoch_id)

            try:
                record = EpochRecord(
                    commitment=commitment,
                    locator=locator,
                    epoch_id=epoch_id,
                    schema_version=schema_version,
                    anchored_at=self._next_timestamp(),
                )
            except ValidationError as exc:
                raise InvalidEpochData(f"Invalid epoch data: {exc}") from exc

            # The store re-checks authority and uniqueness in the same
            # transaction as the write.
            try:
                record = self._store.insert(record, caller=caller)
            except (Unauthorized, DuplicateEpoch) as exc:
                logger.warning("Rejected anchor for epoch %d: %s", record.epoch_id, exc)
                raise
            event = record.to_event()
            self._events.append(event)
            logger.info(
                "Anchored epoch %d root=%s locator=%s schema=%d",
                record.epoch_id,
                record.commitment_hex,
                record.locator,
                record.schema_version,
            )
            self._dispatcher.dispatch(event)
            return record

    def set_anchorer(self, new_authority: str, *, caller: str) -> None:
        """Hand write capability to *new_authority*. Takes effect immediately."""
        with self._lock:
            self._authorize(caller, "rotate the anchorer")
            _require_identity(new_authority)
            try:
                previous = self._store.set_anchorer(new_authority, caller=caller)
            except Unauthorized as exc:
                logger.warning("Rejected rotation by %r: %s", caller, exc)
                raise
            logger.info("Anchorer rotated from %r to %r", previous, new_authority)

    def _authorize(self, caller: str, action: str) -> str:
        holder = self._store.get_anchorer()
        if caller != holder:
            logger.warning("Rejected %r: not authorized to %s", caller, action)
            raise Unauthorized(caller, holder, action)
        return holder

    def _next_timestamp(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now.astimezone(timezone.utc)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get_epoch(self, epoch_id: int) -> EpochRecord:
        """Return the anchored record. Raises EpochNotFound when absent."""
        record = self._store.get(_check_epoch_id(epoch_id))
        if record is None:
            raise EpochNotFound(epoch_id)
        return record

    def verify_epoch_root(self, epoch_id: int, claimed_commitment: bytes | str) -> bool:
        """True iff *epoch_id* is anchored with exactly *claimed_commitment*."""
        try:
            claimed = coerce_commitment(claimed_commitment)
        except ValueError:
            return False
        record = self._store.get(_check_epoch_id(epoch_id))
        if record is None:
            return False
        return record.commitment == claimed

    def has_epoch(self, epoch_id: int) -> bool:
        return self._store.contains(_check_epoch_id(epoch_id))

    def total_epochs(self) -> int:
        return self._store.count()

    @property
    def anchorer(self) -> str:
        return self._store.get_anchorer()

    def records(self) -> list[EpochRecord]:
        """All anchored records in anchoring order."""
        return self._store.records()

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def events(self) -> list[EpochAnchored]:
        """Notifications emitted by this ledger instance, in order."""
        with self._lock:
            return list(self._events)

    def subscribe(self, subscriber: Subscriber) -> None:
        self._dispatcher.subscribe(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self._dispatcher.unsubscribe(subscriber)
