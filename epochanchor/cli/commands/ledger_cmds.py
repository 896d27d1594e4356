"""Ledger commands: init, status, anchor, show, verify, set-anchorer."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape

from epochanchor.config import config
from epochanchor.core.anchor_ledger import AnchorLedger
from epochanchor.core.deployment import build_registry, create_ledger, open_ledger
from epochanchor.core.errors import AnchorError
from epochanchor.cli.render import record_table, records_table, status_panel

console = Console()

LEDGER_OPTION = typer.Option(
    None,
    "--ledger",
    "-l",
    help="Path to the ledger SQLite database (default from EPOCHANCHOR_LEDGER_PATH).",
)


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=1)


def load_ledger(ledger_db: Optional[Path]) -> tuple[AnchorLedger, Path]:
    """Open an existing ledger, exiting with code 1 if there is none."""
    db_path = ledger_db or config.ledger_path
    if not db_path.exists():
        _fail(f"Ledger not found: {db_path} (run 'epochanchor init' first)")
    try:
        ledger = open_ledger(db_path)
    except AnchorError as exc:
        _fail(str(exc))
    return ledger, db_path


def init_cmd(
    anchorer: str = typer.Option(..., "--anchorer", "-a", help="Initial anchorer identity."),
    ledger_db: Optional[Path] = LEDGER_OPTION,
) -> None:
    """Create a ledger bound to its first anchorer."""
    db_path = ledger_db or config.ledger_path
    try:
        ledger = create_ledger(anchorer, db_path)
    except AnchorError as exc:
        _fail(str(exc))
    console.print(
        f"[green]Ledger ready[/green] at {db_path}, anchorer [cyan]{escape(ledger.anchorer)}[/cyan]"
    )


def status_cmd(
    ledger_db: Optional[Path] = LEDGER_OPTION,
    list_epochs: bool = typer.Option(False, "--list", help="Also list every anchored epoch."),
) -> None:
    """Show the anchorer, registry owner and epoch count."""
    ledger, db_path = load_ledger(ledger_db)
    registry = build_registry(ledger)
    console.print(status_panel(registry, str(db_path)))
    if list_epochs and ledger.total_epochs():
        console.print(records_table(ledger.records()))


def anchor_cmd(
    commitment: str = typer.Argument(..., help="32-byte Merkle root as hex (0x optional)."),
    locator: str = typer.Argument(..., help="Where the full manifest is stored."),
    epoch_id: int = typer.Argument(..., help="Unique epoch id."),
    schema_version: Optional[int] = typer.Option(
        None, "--schema-version", "-s", help="Manifest schema version."
    ),
    caller: str = typer.Option(..., "--as", help="Identity submitting the anchor."),
    ledger_db: Optional[Path] = LEDGER_OPTION,
) -> None:
    """Anchor a new epoch commitment (anchorer only)."""
    ledger, _ = load_ledger(ledger_db)
    version = config.default_schema_version if schema_version is None else schema_version
    try:
        record = ledger.anchor_epoch(commitment, locator, epoch_id, version, caller=caller)
    except AnchorError as exc:
        _fail(str(exc))
    console.print(f"[green]Anchored epoch {record.epoch_id}[/green]")
    console.print(record_table(record))


def show_cmd(
    epoch_id: int = typer.Argument(..., help="Epoch id to look up."),
    ledger_db: Optional[Path] = LEDGER_OPTION,
) -> None:
    """Show one anchored epoch."""
    ledger, _ = load_ledger(ledger_db)
    try:
        record = ledger.get_epoch(epoch_id)
    except AnchorError as exc:
        _fail(str(exc))
    console.print(record_table(record))


def verify_cmd(
    epoch_id: int = typer.Argument(..., help="Epoch id to check."),
    commitment: str = typer.Argument(..., help="Claimed Merkle root as hex."),
    ledger_db: Optional[Path] = LEDGER_OPTION,
) -> None:
    """Check a claimed root against the anchored one. Exit code 1 on mismatch."""
    ledger, _ = load_ledger(ledger_db)
    try:
        matches = ledger.verify_epoch_root(epoch_id, commitment)
    except AnchorError as exc:
        _fail(str(exc))
    if matches:
        console.print(f"[bold green]MATCH[/bold green] epoch {epoch_id}")
        return
    console.print(f"[bold red]MISMATCH[/bold red] epoch {epoch_id}")
    raise typer.Exit(code=1)


def set_anchorer_cmd(
    new_anchorer: str = typer.Argument(..., help="Identity that will hold write capability."),
    caller: str = typer.Option(..., "--as", help="Current anchorer identity."),
    ledger_db: Optional[Path] = LEDGER_OPTION,
) -> None:
    """Rotate the anchorer (current anchorer only)."""
    ledger, _ = load_ledger(ledger_db)
    try:
        ledger.set_anchorer(new_anchorer, caller=caller)
    except AnchorError as exc:
        _fail(str(exc))
    console.print(f"[green]Anchorer is now[/green] [cyan]{escape(ledger.anchorer)}[/cyan]")
