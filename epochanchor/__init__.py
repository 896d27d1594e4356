"""epochanchor: append-only anchoring of epoch Merkle commitments.

One record per epoch (commitment, locator, epoch id, schema version,
ledger-assigned timestamp), written only by the current anchorer and
verifiable by anyone against a claimed root.
"""

__version__ = "0.1.0"

from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.core.epoch_registry import EpochRegistry
from epochanchor.models.epoch import EpochAnchored, EpochRecord

__all__ = ["AnchorLedger", "EpochAnchored", "EpochRecord", "EpochRegistry", "__version__"]
