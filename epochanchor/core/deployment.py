"""Wiring helpers: open the configured ledger and bind its registry.

Mirrors the deployment order of the system: the ledger exists first,
then a registry is bound to it together with an owner identity.
"""

from __future__ import annotations

import logging
from pathlib import Path

from epochanchor.config import AnchorConfig
from epochanchor.config import config as default_config
from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.core.epoch_registry import EpochRegistry
from epochanchor.core.epoch_store import SqliteEpochStore
from epochanchor.core.notifier import EventDispatcher, JsonlEventSink

logger = logging.getLogger(__name__)


def _dispatcher_for(cfg: AnchorConfig) -> EventDispatcher:
    dispatcher = EventDispatcher()
    if cfg.event_log_path is not None:
        dispatcher.subscribe(JsonlEventSink(cfg.event_log_path).accept)
    return dispatcher


def create_ledger(
    anchorer: str,
    ledger_path: Path | None = None,
    cfg: AnchorConfig | None = None,
) -> AnchorLedger:
    """Create (or re-bind) the durable ledger with *anchorer* as writer."""
    cfg = cfg or default_config
    store = SqliteEpochStore(ledger_path or cfg.ledger_path)
    ledger = AnchorLedger(anchorer, store=store, dispatcher=_dispatcher_for(cfg))
    logger.info("Ledger at %s bound to anchorer %r", store.db_path, anchorer)
    return ledger


def open_ledger(
    ledger_path: Path | None = None,
    cfg: AnchorConfig | None = None,
) -> AnchorLedger:
    """Open an existing durable ledger. Raises LedgerNotInitialized if new."""
    cfg = cfg or default_config
    store = SqliteEpochStore(ledger_path or cfg.ledger_path)
    return AnchorLedger.open(store, dispatcher=_dispatcher_for(cfg))


def build_registry(
    ledger: AnchorLedger,
    owner: str | None = None,
    cfg: AnchorConfig | None = None,
) -> EpochRegistry:
    """Bind a registry to *ledger*.

    Owner resolution: explicit *owner*, then ``registry_owner`` from
    config, then the ledger's current anchorer.
    """
    cfg = cfg or default_config
    return EpochRegistry(owner=owner or cfg.registry_owner or ledger.anchorer, ledger=ledger)
