"""Rich renderables for ledger records, status and manifest verdicts."""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from epochanchor.core.epoch_registry import EpochRegistry
from epochanchor.manifest.models import ManifestVerdict
from epochanchor.models.epoch import EpochRecord


def record_table(record: EpochRecord) -> Table:
    table = Table(title=f"Epoch {record.epoch_id}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Commitment", record.commitment_hex)
    table.add_row("Locator", escape(record.locator))
    table.add_row("Schema version", str(record.schema_version))
    table.add_row("Anchored at", record.anchored_at.isoformat())
    return table


def records_table(records: list[EpochRecord]) -> Table:
    table = Table(title="Anchored epochs")
    table.add_column("Epoch", style="cyan", justify="right")
    table.add_column("Commitment", style="green")
    table.add_column("Locator")
    table.add_column("Schema", justify="right")
    table.add_column("Anchored at", style="dim")
    for record in records:
        table.add_row(
            str(record.epoch_id),
            record.commitment_hex,
            escape(record.locator),
            str(record.schema_version),
            record.anchored_at.isoformat(),
        )
    return table


def status_panel(registry: EpochRegistry, ledger_path: str) -> Panel:
    lines = [
        f"[bold]Ledger:[/bold]          {ledger_path}",
        f"[bold]Anchorer:[/bold]        [cyan]{escape(registry.ledger.anchorer)}[/cyan]",
        f"[bold]Registry owner:[/bold]  [cyan]{escape(registry.owner)}[/cyan]",
        f"[bold]Total epochs:[/bold]    {registry.total_epochs()}",
    ]
    return Panel("\n".join(lines), title="epochanchor", border_style="blue")


def verdict_panel(verdict: ManifestVerdict) -> Panel:
    style = "green" if verdict.verified else "red"
    heading = "[bold green]VERIFIED[/bold green]" if verdict.verified else "[bold red]NOT VERIFIED[/bold red]"
    lines = [
        heading,
        f"Reason:         {escape(verdict.reason)}",
        f"Locator:        {escape(verdict.locator) or '-'}",
        f"Anchored root:  {verdict.anchored_root or '-'}",
        f"Declared root:  {verdict.declared_root or '-'}",
        f"Computed root:  {verdict.computed_root or '-'}",
    ]
    return Panel("\n".join(lines), title=f"Epoch {verdict.epoch_id}", border_style=style)
