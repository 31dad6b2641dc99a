"""uistable wait — block until a tree dump file stops changing."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer

from uistable.core.config import load_config
from uistable.core.exceptions import UIStableError
from uistable.core.models import IdleResult, IdleStatus
from uistable.engine.file_provider import FileSnapshotProvider
from uistable.engine.waiter import IdleWaiter

_EXIT_CODES: dict[IdleStatus, int] = {
    IdleStatus.IDLE: 0,
    IdleStatus.TIMED_OUT: 1,
    IdleStatus.FAILED: 2,
}


def wait_command(
    tree_path: str = typer.Argument(help="Tree dump file, rewritten on every UI change."),
    threshold: int | None = typer.Option(
        None, "--threshold", "-t", help="Minimum similarity % (0-100) counted as a match."
    ),
    timeout_ms: int | None = typer.Option(
        None, "--timeout", help="Maximum wait in milliseconds (1-30000)."
    ),
    interval_ms: int | None = typer.Option(
        None, "--interval", "-i", help="Poll interval in milliseconds."
    ),
    strict: bool = typer.Option(
        False, "--strict", help="At threshold 100, also require identical child order."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", help="Log every poll."),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Wait until the UI tree in TREE_PATH is idle."""
    overrides: dict[str, Any] = {"idle": {}}
    if interval_ms is not None:
        overrides["idle"]["poll_interval_ms"] = interval_ms
    if strict:
        overrides["idle"]["strict_exact_match"] = True
    if verbose:
        overrides["log_level"] = "DEBUG"

    try:
        cfg_path = Path(config_path) if config_path else None
        config = load_config(config_path=cfg_path, overrides=overrides)
    except UIStableError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from None

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    waiter = IdleWaiter.from_config(FileSnapshotProvider(tree_path), config.idle)
    result = asyncio.run(
        waiter.wait_until_idle(
            threshold=config.idle.threshold if threshold is None else threshold,
            timeout_ms=config.idle.timeout_ms if timeout_ms is None else timeout_ms,
        )
    )

    if as_json:
        typer.echo(json.dumps(result.to_payload()))
    else:
        _print_result(result)

    raise typer.Exit(code=_EXIT_CODES[result.status])


def _print_result(result: IdleResult) -> None:
    if result.status == IdleStatus.IDLE:
        status = typer.style("IDLE", fg=typer.colors.GREEN)
        typer.echo(
            f"{status} after {result.elapsed_ms:.0f}ms "
            f"(similarity {result.similarity}%, {result.polls} polls)"
        )
    elif result.status == IdleStatus.TIMED_OUT:
        status = typer.style("TIMED OUT", fg=typer.colors.YELLOW)
        typer.echo(
            f"{status} after {result.elapsed_ms:.0f}ms "
            f"(last similarity {result.similarity}%, {result.polls} polls)"
        )
    else:
        status = typer.style("FAILED", fg=typer.colors.RED)
        reason = result.reason.value if result.reason else "unknown"
        typer.echo(f"{status} [{reason}]: {result.message}", err=True)

    if result.transient_failures:
        typer.echo(f"  {result.transient_failures} transient snapshot failure(s)")
