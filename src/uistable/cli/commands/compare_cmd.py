"""uistable compare — similarity of two tree dumps."""

from __future__ import annotations

from pathlib import Path

import typer

from uistable.core.exceptions import UIStableError
from uistable.core.tree_loader import load_tree
from uistable.engine.fingerprint import compare, generate


def compare_command(
    first: str = typer.Argument(help="First tree dump file."),
    second: str = typer.Argument(help="Second tree dump file."),
    threshold: int | None = typer.Option(
        None,
        "--threshold",
        "-t",
        min=0,
        max=100,
        help="Exit 1 if similarity is below this percentage.",
    ),
) -> None:
    """Compare two tree dumps and print their similarity."""
    try:
        fp_a = generate(load_tree(Path(first)))
        fp_b = generate(load_tree(Path(second)))
    except UIStableError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    similarity = compare(fp_a, fp_b)
    typer.echo(f"Similarity: {similarity}%")

    if threshold is not None and similarity < threshold:
        typer.echo(
            typer.style(f"Below threshold {threshold}%", fg=typer.colors.RED),
            err=True,
        )
        raise typer.Exit(code=1)
