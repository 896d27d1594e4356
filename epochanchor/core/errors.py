"""Anchor ledger error kinds.

Every failure names the precondition that failed so callers can tell
authorization failures apart from data conflicts and missing records.
None of these are transient: the request must change before a retry.
"""

from __future__ import annotations


class AnchorError(RuntimeError):
    """Base class for every anchor ledger failure."""


class Unauthorized(AnchorError, PermissionError):
    """Raised when the caller is not the current anchorer."""

    def __init__(self, caller: str, anchorer: str, action: str = "anchor epochs") -> None:
        self.caller = caller
        self.anchorer = anchorer
        self.action = action
        super().__init__(
            f"Not authorized: {caller!r} may not {action} "
            f"(current anchorer is {anchorer!r})"
        )


class DuplicateEpoch(AnchorError):
    """Raised when an epoch id has already been anchored."""

    def __init__(self, epoch_id: int) -> None:
        self.epoch_id = epoch_id
        super().__init__(f"Epoch {epoch_id} already exists")


class EpochNotFound(AnchorError, LookupError):
    """Raised when no record exists for an epoch id."""

    def __init__(self, epoch_id: int) -> None:
        self.epoch_id = epoch_id
        super().__init__(f"Epoch {epoch_id} not found")


class InvalidEpochData(AnchorError, ValueError):
    """Raised when anchor arguments are malformed (digest, locator, ids)."""


class InvalidAuthority(AnchorError, ValueError):
    """Raised for an empty or conflicting anchorer identity."""


class LedgerNotInitialized(AnchorError):
    """Raised when opening a store that has never been bound to an anchorer."""
