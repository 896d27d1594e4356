"""Fan-out of EpochAnchored notifications to external observers.

The ledger emits; it never pushes to indexers directly. Every committed
anchor is handed to each registered subscriber in registration order.
A failing subscriber is logged and does not block the others, and it
never undoes the write that produced the notification.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path

from epochanchor.core.hasher import canonical_json_bytes
from epochanchor.models.epoch import EpochAnchored

logger = logging.getLogger(__name__)

Subscriber = Callable[[EpochAnchored], None]


class EventDispatcher:
    """Routes EpochAnchored events to ALL registered subscribers.

    Usage
    -----
    >>> dispatcher = EventDispatcher()
    >>> dispatcher.subscribe(sink.accept)
    >>> dispatcher.dispatch(event)
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        """Register a subscriber. Duplicate registration is ignored."""
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)
            logger.debug("Registered subscriber: %r", subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        try:
            self._subscribers.remove(subscriber)
        except ValueError:
            pass

    @property
    def subscribers(self) -> list[Subscriber]:
        return list(self._subscribers)

    def dispatch(self, event: EpochAnchored) -> int:
        """Deliver *event* to every subscriber.

        Returns the number of subscribers that accepted it.
        """
        delivered = 0
        for subscriber in self._subscribers:
            try:
                subscriber(event)
                delivered += 1
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Subscriber %r failed for epoch %d: %s",
                    subscriber,
                    event.epoch_id,
                    exc,
                )
        if delivered < len(self._subscribers):
            logger.warning(
                "Epoch %d: %d/%d subscribers received the notification",
                event.epoch_id,
                delivered,
                len(self._subscribers),
            )
        return delivered


class JsonlEventSink:
    """Appends each notification as one canonical JSON line.

    Downstream indexers tail or reload this file instead of talking to
    the ledger.

    Parameters
    ----------
    path:
        Target ``.jsonl`` file. Parent directories are created.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def accept(self, event: EpochAnchored) -> None:
        line = canonical_json_bytes(event.model_dump(mode="json"))
        with self._path.open("ab") as fh:
            fh.write(line + b"\n")
        logger.debug("JsonlEventSink: wrote epoch %d to %s", event.epoch_id, self._path)

    def read_events(self) -> list[EpochAnchored]:
        """Reload every notification written so far, in order."""
        if not self._path.exists():
            return []
        events: list[EpochAnchored] = []
        for line in self._path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                events.append(EpochAnchored.model_validate(json.loads(line)))
        return events
