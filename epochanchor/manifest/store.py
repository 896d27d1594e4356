"""Content-addressed, immutable manifest store.

Storage layout: {base_path}/{sha256[0:2]}/{sha256[2:4]}/{sha256}.json
Locator format: {scheme}{bucket}/sha256:<hex>

No delete method; manifests are immutable once stored. The locator is
what gets anchored; resolving it re-checks the content hash.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from epochanchor.core.hasher import sha256_hex
from epochanchor.manifest.models import EpochManifest

logger = logging.getLogger(__name__)


class ManifestIntegrityError(RuntimeError):
    """Raised when stored manifest bytes do not match their address."""


class ManifestNotFound(LookupError):
    """Raised when a locator does not resolve to a stored manifest."""


class ManifestStore:
    """SHA-256 keyed manifest store.

    Storing the same manifest twice is a no-op and yields the same locator.

    Parameters
    ----------
    base_path:
        Root directory for manifest storage.
    scheme:
        Locator scheme prefix, e.g. ``greenfield://``.
    bucket:
        Bucket name embedded in every locator.
    """

    def __init__(
        self,
        base_path: Path,
        *,
        scheme: str = "greenfield://",
        bucket: str = "epoch-manifests",
    ) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)
        self._prefix = f"{scheme}{bucket}/"

    def _manifest_path(self, digest: str) -> Path:
        return self._base / digest[:2] / digest[2:4] / f"{digest}.json"

    def locator_for(self, digest: str) -> str:
        return f"{self._prefix}sha256:{digest}"

    def parse_locator(self, locator: str) -> str:
        """Extract the hex digest from a locator issued by this store."""
        if not locator.startswith(self._prefix):
            raise ManifestNotFound(f"Locator not served by this store: {locator}")
        address = locator[len(self._prefix):]
        digest = address.removeprefix("sha256:")
        if len(digest) != 64 or any(c not in "0123456789abcdef" for c in digest):
            raise ManifestNotFound(f"Malformed content address in locator: {locator}")
        return digest

    # ------------------------------------------------------------------
    # Store / retrieve
    # ------------------------------------------------------------------

    def put(self, manifest: EpochManifest) -> str:
        """Store *manifest* and return its locator."""
        data = manifest.to_json_bytes()
        digest = sha256_hex(data)
        path = self._manifest_path(digest)

        if path.exists():
            if not self.verify(self.locator_for(digest)):
                raise ManifestIntegrityError(
                    f"Existing manifest at {digest} failed integrity check"
                )
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            logger.debug("Stored manifest for epoch %d at %s", manifest.epoch_id, path)

        return self.locator_for(digest)

    def get_bytes(self, locator: str) -> bytes:
        digest = self.parse_locator(locator)
        path = self._manifest_path(digest)
        if not path.exists():
            raise ManifestNotFound(f"Manifest not found: {locator}")
        data = path.read_bytes()
        if sha256_hex(data) != digest:
            raise ManifestIntegrityError(f"Manifest bytes do not match locator {locator}")
        return data

    def get(self, locator: str) -> EpochManifest:
        """Resolve *locator* to a parsed manifest."""
        data = self.get_bytes(locator)
        try:
            return EpochManifest.model_validate_json(data)
        except ValidationError as exc:
            raise ManifestIntegrityError(f"Stored manifest is not well formed: {exc}") from exc

    def exists(self, locator: str) -> bool:
        try:
            return self._manifest_path(self.parse_locator(locator)).exists()
        except ManifestNotFound:
            return False

    def verify(self, locator: str) -> bool:
        """Re-hash stored bytes and compare against the locator's address."""
        try:
            self.get_bytes(locator)
        except (ManifestNotFound, ManifestIntegrityError):
            return False
        return True
