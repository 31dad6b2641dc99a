"""Shared fixtures."""

from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003

import pytest


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test in an empty cwd without UISTABLE_ env vars."""
    for key in list(os.environ):
        if key.startswith("UISTABLE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
