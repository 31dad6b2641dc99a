"""Tree dump loader — YAML/JSON file to UiNode conversion.

A dump holds either a single root node, a list of window roots, or a
mapping with a ``windows`` key. JSON is read through the YAML parser.
"""

from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Any

import yaml

from uistable.core.exceptions import TreeLoadError
from uistable.core.models import UiNode

Snapshot = UiNode | list[UiNode]


def load_tree(path: Path) -> Snapshot:
    """Load a UI tree snapshot from a dump file.

    Args:
        path: Path to a YAML or JSON tree dump.

    Returns:
        A single UiNode, or a list of window roots for multi-window dumps.

    Raises:
        TreeLoadError: If the file cannot be read, parsed, or validated.
    """
    data = _load_yaml(path)
    return parse_tree(data, source=path.name)


def parse_tree(data: Any, source: str = "<data>") -> Snapshot:
    """Validate already-parsed dump data into UiNode(s)."""
    if isinstance(data, dict) and "windows" in data:
        data = data["windows"]

    try:
        if isinstance(data, list):
            if not data:
                msg = "window list is empty"
                raise ValueError(msg)
            return [UiNode.model_validate(item) for item in data]
        return UiNode.model_validate(data)
    except Exception as e:
        msg = f"Tree validation failed ({source}): {e}"
        raise TreeLoadError(msg) from e


def _load_yaml(path: Path) -> Any:
    """Load and parse a YAML/JSON file."""
    try:
        with open(path, encoding="utf-8") as f:  # noqa: PTH123
            data = yaml.safe_load(f)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        msg = f"Failed to parse tree dump ({path.name}): {e}"
        raise TreeLoadError(msg) from e
    except OSError as e:
        msg = f"Failed to read tree dump ({path.name}): {e}"
        raise TreeLoadError(msg) from e

    if data is None:
        msg = f"Tree dump is empty: {path.name}"
        raise TreeLoadError(msg)
    if not isinstance(data, dict | list):
        msg = f"Tree dump must be a mapping or a list: {path.name}"
        raise TreeLoadError(msg)
    return data
