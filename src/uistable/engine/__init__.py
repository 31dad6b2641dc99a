"""Idle detection engine: fingerprints, comparator, and polling waiter."""

from uistable.engine.base import Clock, MonotonicClock, SnapshotProvider
from uistable.engine.fingerprint import compare, generate, tree_digest
from uistable.engine.waiter import REQUIRED_MATCHES, IdleWaiter

__all__ = [
    "REQUIRED_MATCHES",
    "Clock",
    "IdleWaiter",
    "MonotonicClock",
    "SnapshotProvider",
    "compare",
    "generate",
    "tree_digest",
]
