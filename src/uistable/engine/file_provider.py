"""FileSnapshotProvider — polls a tree dump file rewritten by another process.

A missing, empty, or half-written dump is a UI transition and is reported
as transient. Losing read permission is fatal.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from uistable.core.exceptions import FatalSnapshotError, TransientSnapshotError, TreeLoadError
from uistable.core.models import UiNode  # noqa: TC001
from uistable.core.tree_loader import load_tree
from uistable.engine.base import SnapshotProvider

logger = logging.getLogger(__name__)


class FileSnapshotProvider(SnapshotProvider):
    """Reads a fresh snapshot from a YAML/JSON tree dump on every call."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self.reads = 0

    @property
    def path(self) -> Path:
        return self._path

    async def snapshot(self) -> UiNode | list[UiNode]:
        self.reads += 1
        try:
            return await asyncio.to_thread(load_tree, self._path)
        except TreeLoadError as e:
            if isinstance(e.__cause__, PermissionError):
                raise FatalSnapshotError(f"Cannot read tree dump: {self._path}") from e
            logger.debug("Tree dump not readable yet (%s): %s", self._path.name, e)
            raise TransientSnapshotError(str(e)) from e
