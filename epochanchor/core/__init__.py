"""Anchor ledger core: records, authority, verification."""

from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.core.epoch_registry import EpochRegistry
from epochanchor.core.epoch_store import EpochStore, MemoryEpochStore, SqliteEpochStore
from epochanchor.core.errors import (
    AnchorError,
    DuplicateEpoch,
    EpochNotFound,
    InvalidAuthority,
    InvalidEpochData,
    LedgerNotInitialized,
    Unauthorized,
)
from epochanchor.core.notifier import EventDispatcher, JsonlEventSink

__all__ = [
    "AnchorError",
    "AnchorLedger",
    "DuplicateEpoch",
    "EpochNotFound",
    "EpochRegistry",
    "EpochStore",
    "EventDispatcher",
    "InvalidAuthority",
    "InvalidEpochData",
    "JsonlEventSink",
    "LedgerNotInitialized",
    "MemoryEpochStore",
    "SqliteEpochStore",
    "Unauthorized",
]
