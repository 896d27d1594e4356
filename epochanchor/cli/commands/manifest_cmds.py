"""Manifest commands: publish a manifest, verify an epoch against its manifest."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from epochanchor.cli.commands.ledger_cmds import LEDGER_OPTION, _fail, console, load_ledger
from epochanchor.cli.render import record_table, verdict_panel
from epochanchor.config import config
from epochanchor.core.errors import AnchorError
from epochanchor.manifest.models import EpochManifest
from epochanchor.manifest.pipeline import EpochPublisher, ManifestMismatch, verify_epoch
from epochanchor.manifest.store import ManifestStore

MANIFESTS_OPTION = typer.Option(
    None,
    "--manifests",
    "-m",
    help="Manifest store directory (default from EPOCHANCHOR_MANIFEST_STORE_PATH).",
)


def _manifest_store(manifest_dir: Optional[Path]) -> ManifestStore:
    return ManifestStore(
        manifest_dir or config.manifest_store_path,
        scheme=config.locator_scheme,
        bucket=config.manifest_bucket,
    )


def publish_cmd(
    manifest_path: Path = typer.Argument(..., help="Epoch manifest JSON file."),
    caller: str = typer.Option(..., "--as", help="Identity submitting the anchor."),
    ledger_db: Optional[Path] = LEDGER_OPTION,
    manifest_dir: Optional[Path] = MANIFESTS_OPTION,
) -> None:
    """Store a manifest and anchor its Merkle root."""
    if not manifest_path.exists():
        _fail(f"Manifest not found: {manifest_path}")
    try:
        manifest = EpochManifest.model_validate_json(manifest_path.read_bytes())
    except ValidationError as exc:
        _fail(f"Invalid manifest {manifest_path}: {exc}")

    ledger, _ = load_ledger(ledger_db)
    publisher = EpochPublisher(ledger, _manifest_store(manifest_dir))
    try:
        record = publisher.publish(manifest, caller=caller)
    except (AnchorError, ManifestMismatch) as exc:
        _fail(str(exc))
    console.print(f"[green]Published epoch {record.epoch_id}[/green]")
    console.print(record_table(record))


def verify_manifest_cmd(
    epoch_id: int = typer.Argument(..., help="Anchored epoch to verify."),
    ledger_db: Optional[Path] = LEDGER_OPTION,
    manifest_dir: Optional[Path] = MANIFESTS_OPTION,
) -> None:
    """Recompute an epoch's root from its manifest and compare. Exit code 1 on failure."""
    ledger, _ = load_ledger(ledger_db)
    verdict = verify_epoch(ledger, _manifest_store(manifest_dir), epoch_id)
    console.print(verdict_panel(verdict))
    if not verdict.verified:
        raise typer.Exit(code=1)
