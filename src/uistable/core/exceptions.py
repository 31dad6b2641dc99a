"""uistable custom exception hierarchy.

All exceptions inherit from UIStableError.
Snapshot providers classify their failures as transient or fatal so the
idle waiter can decide between recovering locally and aborting.
"""


class UIStableError(Exception):
    """Base exception for all uistable errors."""


class ConfigError(UIStableError):
    """Configuration file load/validation error."""


class TreeLoadError(UIStableError):
    """UI tree dump read/parse/validation error."""


class FingerprintError(UIStableError, ValueError):
    """Fingerprint has the wrong shape for comparison."""


class SnapshotError(UIStableError):
    """Snapshot provider failed to deliver a tree."""


class TransientSnapshotError(SnapshotError):
    """Tree momentarily unavailable (UI transition, partial dump). Retried on next poll."""


class FatalSnapshotError(SnapshotError):
    """Snapshot capability is gone (permission revoked etc.). Aborts the wait."""
