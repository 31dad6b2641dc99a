"""SnapshotProvider / Clock ABCs — collaborators of the idle waiter.

Platform backends (accessibility services, DOM walkers, dump files)
implement SnapshotProvider. Clock abstracts time so waits are testable.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uistable.core.models import UiNode


class SnapshotProvider(ABC):
    """Source of fresh UI tree snapshots."""

    @abstractmethod
    async def snapshot(self) -> UiNode | Sequence[UiNode]:
        """Capture the current UI tree.

        Returns a single root, or one root per window.

        Raises:
            TransientSnapshotError: Tree momentarily unavailable.
            FatalSnapshotError: Capability lost; polling must stop.
        """
        ...


class Clock(ABC):
    """Monotonic time source with a cancellable sleep and a matching timeout."""

    @abstractmethod
    def monotonic(self) -> float:
        """Current time in seconds. Only differences are meaningful."""
        ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend for the given duration. Must honour task cancellation."""
        ...

    @abstractmethod
    def timeout(self, seconds: float) -> asyncio.Timeout:
        """Bound an awaited call to ``seconds`` of this clock's time.

        The returned context manager raises TimeoutError on expiry and
        reports it through ``expired()``.
        """
        ...


class MonotonicClock(Clock):
    """Wall clock backed by time.monotonic and the event loop."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def timeout(self, seconds: float) -> asyncio.Timeout:
        return asyncio.timeout(seconds)
