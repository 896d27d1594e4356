"""Epoch Registry — composition root over one Anchor Ledger.

The registry owner and the ledger anchorer are independent roles. They
may be held by the same identity, but rotating the anchorer never
changes the owner, and the owner gains no write capability on the
ledger by owning the registry.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.models.epoch import EpochRecord


class EpochRegistry(BaseModel):
    """Binds an owner identity to one ledger. Both are fixed at creation.

    The ledger is held by reference, not copied or owned: it may be
    shared with other components and outlive the registry.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    owner: str = Field(min_length=1)
    ledger: AnchorLedger

    def get_epoch(self, epoch_id: int) -> EpochRecord:
        return self.ledger.get_epoch(epoch_id)

    def verify_epoch_root(self, epoch_id: int, claimed_commitment: bytes | str) -> bool:
        return self.ledger.verify_epoch_root(epoch_id, claimed_commitment)

    def total_epochs(self) -> int:
        return self.ledger.total_epochs()
