"""Main Typer application — imports and registers all CLI commands.

Entry point: ``epochanchor`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from epochanchor.cli.commands.ledger_cmds import (
    anchor_cmd,
    init_cmd,
    set_anchorer_cmd,
    show_cmd,
    status_cmd,
    verify_cmd,
)
from epochanchor.cli.commands.manifest_cmds import publish_cmd, verify_manifest_cmd
from epochanchor.config import config

app = typer.Typer(
    name="epochanchor",
    help="epochanchor: append-only anchoring of epoch Merkle commitments.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default from EPOCHANCHOR_LOG_LEVEL)."
    ),
) -> None:
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# Register subcommands
app.command(name="init", help="Create a ledger bound to its first anchorer.")(init_cmd)
app.command(name="status", help="Show anchorer, registry owner and epoch count.")(status_cmd)
app.command(name="anchor", help="Anchor a new epoch commitment.")(anchor_cmd)
app.command(name="show", help="Show one anchored epoch.")(show_cmd)
app.command(name="verify", help="Check a claimed root against the anchored one.")(verify_cmd)
app.command(name="set-anchorer", help="Rotate the anchorer.")(set_anchorer_cmd)
app.command(name="publish", help="Store a manifest and anchor its root.")(publish_cmd)
app.command(name="verify-manifest", help="Verify an epoch against its manifest.")(
    verify_manifest_cmd
)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
