"""uistable data models — Pydantic v2.

This module is a leaf: no internal project imports.
All Enum and Model definitions live here.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================
# Constants
# ============================================================

FINGERPRINT_SIZE = 256
"""Number of buckets in a tree fingerprint histogram."""

FULL_MATCH_PERCENTAGE = 100

MAX_TIMEOUT_MS = 30000

# ============================================================
# Parameter checks (shared by IdleConfig and IdleWaiter)
# ============================================================


def threshold_problem(value: object) -> str | None:
    """Describe why value is not a usable similarity threshold, or None."""
    if isinstance(value, bool) or not isinstance(value, int):
        return f"Threshold must be an integer, got: {value!r}"
    if not 0 <= value <= FULL_MATCH_PERCENTAGE:
        return f"Threshold must be between 0 and {FULL_MATCH_PERCENTAGE}, got: {value}"
    return None


def timeout_problem(value: object) -> str | None:
    """Describe why value is not a usable idle timeout in ms, or None."""
    if isinstance(value, bool) or not isinstance(value, int):
        return f"Timeout must be an integer, got: {value!r}"
    if not 1 <= value <= MAX_TIMEOUT_MS:
        return f"Timeout must be between 1 and {MAX_TIMEOUT_MS} ms, got: {value}"
    return None


# ============================================================
# Enums
# ============================================================


class IdleStatus(StrEnum):
    """Terminal outcome of an idle wait."""

    IDLE = "idle"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class FailureReason(StrEnum):
    """Why an idle wait ended in FAILED."""

    INVALID_PARAMETER = "invalid_parameter"
    PROVIDER_FATAL_ERROR = "provider_fatal_error"


# ============================================================
# Config Models
# ============================================================


class IdleConfig(BaseModel):
    """Idle detection configuration."""

    threshold: int = Field(default=FULL_MATCH_PERCENTAGE, description="Minimum similarity %")
    timeout_ms: int = Field(default=3000)
    poll_interval_ms: int = Field(default=500, ge=10, le=10000)
    strict_exact_match: bool = Field(
        default=False,
        description="At threshold 100, also require identical ordered tree digests",
    )

    @field_validator("threshold")
    @classmethod
    def usable_threshold(cls, value: int) -> int:
        problem = threshold_problem(value)
        if problem is not None:
            raise ValueError(problem)
        return value

    @field_validator("timeout_ms")
    @classmethod
    def usable_timeout(cls, value: int) -> int:
        problem = timeout_problem(value)
        if problem is not None:
            raise ValueError(problem)
        return value


class Config(BaseSettings):
    """Project configuration. Merged from YAML + env var + CLI flag."""

    model_config = SettingsConfigDict(
        env_prefix="UISTABLE_",
        env_nested_delimiter="__",
    )

    idle: IdleConfig = Field(default_factory=IdleConfig)
    log_level: str = Field(default="WARNING")

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {value}"
            raise ValueError(msg)
        return level


# ============================================================
# Tree Models
# ============================================================


class Bounds(BaseModel):
    """Screen rectangle of a node."""

    model_config = ConfigDict(frozen=True)

    left: int
    top: int
    right: int
    bottom: int

    @model_validator(mode="before")
    @classmethod
    def from_sequence(cls, data: Any) -> Any:
        # Dumps may carry bounds as [left, top, right, bottom].
        if isinstance(data, Sequence) and not isinstance(data, str | bytes):
            if len(data) != 4:
                msg = f"bounds list must have 4 items, got {len(data)}"
                raise ValueError(msg)
            left, top, right, bottom = data
            return {"left": left, "top": top, "right": right, "bottom": bottom}
        return data


class UiNode(BaseModel):
    """One element of a UI tree snapshot. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque element identifier")
    class_name: str | None = Field(default=None)
    text: str | None = Field(default=None)
    bounds: Bounds = Field(default_factory=lambda: Bounds(left=0, top=0, right=0, bottom=0))
    children: tuple[UiNode, ...] = Field(default=())

    @property
    def child_count(self) -> int:
        return len(self.children)

    def node_count(self) -> int:
        """Total nodes in this subtree, including self."""
        count = 0
        stack: list[UiNode] = [self]
        while stack:
            node = stack.pop()
            count += 1
            stack.extend(node.children)
        return count


# ============================================================
# Result Models
# ============================================================


class IdleResult(BaseModel):
    """Outcome of IdleWaiter.wait_until_idle.

    similarity is the confirming similarity for IDLE and the last computed
    similarity (0 if none) for TIMED_OUT.
    """

    status: IdleStatus
    elapsed_ms: float = Field(default=0.0, ge=0.0)
    similarity: int = Field(default=0, ge=0, le=FULL_MATCH_PERCENTAGE)
    reason: FailureReason | None = Field(default=None)
    message: str | None = Field(default=None)
    polls: int = Field(default=0, ge=0)
    transient_failures: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def reason_only_when_failed(self) -> IdleResult:
        if self.status == IdleStatus.FAILED and self.reason is None:
            msg = "status=failed requires a reason"
            raise ValueError(msg)
        if self.status != IdleStatus.FAILED and self.reason is not None:
            msg = f"status={self.status.value} must not carry a reason"
            raise ValueError(msg)
        return self

    @property
    def is_idle(self) -> bool:
        return self.status == IdleStatus.IDLE

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict for response payloads."""
        payload: dict[str, Any] = {"status": self.status.value}
        if self.status == IdleStatus.FAILED:
            payload["reason"] = self.reason.value if self.reason else None
            payload["message"] = self.message
            return payload
        payload["elapsedMs"] = round(self.elapsed_ms)
        payload["similarity"] = self.similarity
        if self.message:
            payload["message"] = self.message
        return payload


UiNode.model_rebuild()
