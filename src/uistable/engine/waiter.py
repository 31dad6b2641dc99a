"""IdleWaiter — UI idle detection via polling + tree fingerprints.

Polls UI tree snapshots at fixed intervals and compares their histogram
fingerprints. When REQUIRED_MATCHES consecutive comparisons reach the
similarity threshold, the UI is considered idle.

Transient snapshot failures reset the debounce and drop the previous
fingerprint, so evidence is never paired across an observation gap.
Fatal failures abort at once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from uistable.core.exceptions import FatalSnapshotError, TransientSnapshotError
from uistable.core.models import (
    FULL_MATCH_PERCENTAGE,
    FailureReason,
    IdleResult,
    IdleStatus,
    threshold_problem,
    timeout_problem,
)
from uistable.engine.base import MonotonicClock
from uistable.engine.fingerprint import compare, generate, tree_digest

if TYPE_CHECKING:
    from uistable.core.models import IdleConfig
    from uistable.engine.base import Clock, SnapshotProvider
    from uistable.engine.fingerprint import Fingerprint

logger = logging.getLogger(__name__)

REQUIRED_MATCHES = 2
DEFAULT_POLL_INTERVAL_MS = 500
DEFAULT_TIMEOUT_MS = 3000


class _PollState:
    """Mutable state of one wait_until_idle call."""

    __slots__ = (
        "consecutive_matches",
        "deadline",
        "last_similarity",
        "polls",
        "previous_digest",
        "previous_fingerprint",
        "start",
        "transient_failures",
    )

    def __init__(self, start: float, timeout_ms: int) -> None:
        self.start = start
        self.deadline = start + timeout_ms / 1000
        self.previous_fingerprint: Fingerprint | None = None
        self.previous_digest: int | None = None
        self.consecutive_matches = 0
        self.last_similarity = 0
        self.polls = 0
        self.transient_failures = 0

    def forget(self) -> None:
        self.previous_fingerprint = None
        self.previous_digest = None
        self.consecutive_matches = 0


class IdleWaiter:
    """UI idle detector."""

    def __init__(
        self,
        provider: SnapshotProvider,
        clock: Clock | None = None,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        strict_exact_match: bool = False,
    ) -> None:
        if poll_interval_ms <= 0:
            msg = f"poll_interval_ms must be positive, got: {poll_interval_ms}"
            raise ValueError(msg)
        self._provider = provider
        self._clock = clock or MonotonicClock()
        self._poll_interval = poll_interval_ms / 1000
        self._strict_exact_match = strict_exact_match

    @classmethod
    def from_config(
        cls,
        provider: SnapshotProvider,
        config: IdleConfig,
        clock: Clock | None = None,
    ) -> IdleWaiter:
        return cls(
            provider,
            clock=clock,
            poll_interval_ms=config.poll_interval_ms,
            strict_exact_match=config.strict_exact_match,
        )

    async def wait_until_idle(
        self,
        threshold: int = FULL_MATCH_PERCENTAGE,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> IdleResult:
        """Wait until the UI tree stops changing.

        Args:
            threshold: Minimum similarity percentage (inclusive) that counts
                as a match. 100 means exact histogram equality.
            timeout_ms: Maximum wait, 1..MAX_TIMEOUT_MS.

        Returns:
            IdleResult with status idle, timed_out, or failed.
        """
        problem = _validate(threshold, timeout_ms)
        if problem is not None:
            logger.warning("wait_until_idle: %s", problem)
            return IdleResult(
                status=IdleStatus.FAILED,
                reason=FailureReason.INVALID_PARAMETER,
                message=problem,
            )

        use_digest = self._strict_exact_match and threshold == FULL_MATCH_PERCENTAGE
        state = _PollState(self._clock.monotonic(), timeout_ms)

        while True:
            remaining = state.deadline - self._clock.monotonic()
            if remaining <= 0:
                return self._timed_out(state)

            state.polls += 1
            deadline_guard = self._clock.timeout(remaining)
            try:
                async with deadline_guard:
                    snapshot = await self._provider.snapshot()
            except TransientSnapshotError as e:
                state.transient_failures += 1
                state.forget()
                logger.debug("wait_until_idle: poll %d transient failure: %s", state.polls, e)
            except FatalSnapshotError as e:
                logger.warning("wait_until_idle: snapshot provider failed: %s", e)
                return IdleResult(
                    status=IdleStatus.FAILED,
                    reason=FailureReason.PROVIDER_FATAL_ERROR,
                    message=str(e),
                    elapsed_ms=self._elapsed_ms(state),
                    similarity=state.last_similarity,
                    polls=state.polls,
                    transient_failures=state.transient_failures,
                )
            except TimeoutError:
                if not deadline_guard.expired():
                    raise
                return self._timed_out(state)
            else:
                fingerprint = generate(snapshot)
                digest = tree_digest(snapshot) if use_digest else None

                if state.previous_fingerprint is not None:
                    similarity = compare(state.previous_fingerprint, fingerprint)
                    state.last_similarity = similarity
                    matched = similarity >= threshold and digest == state.previous_digest
                    if matched:
                        state.consecutive_matches += 1
                    else:
                        state.consecutive_matches = 0
                    logger.debug(
                        "wait_until_idle: poll %d similarity=%d%% consecutive=%d",
                        state.polls,
                        similarity,
                        state.consecutive_matches,
                    )
                    if state.consecutive_matches >= REQUIRED_MATCHES:
                        return self._idle(state)

                state.previous_fingerprint = fingerprint
                state.previous_digest = digest

            remaining = state.deadline - self._clock.monotonic()
            if remaining > 0:
                await self._clock.sleep(min(self._poll_interval, remaining))

    def _elapsed_ms(self, state: _PollState) -> float:
        return max(0.0, (self._clock.monotonic() - state.start) * 1000)

    def _idle(self, state: _PollState) -> IdleResult:
        elapsed = self._elapsed_ms(state)
        logger.info("wait_until_idle: UI idle after %.0fms", elapsed)
        return IdleResult(
            status=IdleStatus.IDLE,
            elapsed_ms=elapsed,
            similarity=state.last_similarity,
            message="UI is idle",
            polls=state.polls,
            transient_failures=state.transient_failures,
        )

    def _timed_out(self, state: _PollState) -> IdleResult:
        elapsed = self._elapsed_ms(state)
        logger.info(
            "wait_until_idle: not idle within %.0fms (last similarity %d%%)",
            elapsed,
            state.last_similarity,
        )
        return IdleResult(
            status=IdleStatus.TIMED_OUT,
            elapsed_ms=elapsed,
            similarity=state.last_similarity,
            message=f"UI did not become idle within {elapsed:.0f}ms",
            polls=state.polls,
            transient_failures=state.transient_failures,
        )


def _validate(threshold: object, timeout_ms: object) -> str | None:
    return threshold_problem(threshold) or timeout_problem(timeout_ms)
