"""uistable fingerprint — histogram of a tree dump."""

from __future__ import annotations

from pathlib import Path

import typer

from uistable.core.exceptions import UIStableError
from uistable.core.tree_loader import load_tree
from uistable.engine.fingerprint import describe, generate


def fingerprint_command(
    tree_path: str = typer.Argument(help="Tree dump file (YAML or JSON)."),
) -> None:
    """Print the fingerprint of a tree dump."""
    try:
        snapshot = load_tree(Path(tree_path))
    except UIStableError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    fingerprint = generate(snapshot)
    buckets = describe(fingerprint)
    typer.echo(f"Nodes: {sum(fingerprint)}")
    typer.echo(f"Buckets used: {len(buckets)}")
    for index, count in buckets.items():
        typer.echo(f"  [{index:3d}] {count}")
