"""epochanchor CLI — Typer-based command-line interface.

Provides the ``epochanchor`` command with subcommands for creating a
ledger, anchoring and inspecting epochs, rotating the anchorer, and
publishing or verifying manifests. All output uses Rich.
"""
