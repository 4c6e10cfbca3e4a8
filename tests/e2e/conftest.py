"""Shared helpers for end-to-end tests against a real host subprocess."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[2] / "src"


@pytest.fixture
def host_env() -> dict[str, str]:
    """Environment for spawned hosts: importable ``exthost``, quiet logs."""
    env = dict(os.environ)
    pythonpath = env.get("PYTHONPATH")
    env["PYTHONPATH"] = f"{SRC_DIR}{os.pathsep}{pythonpath}" if pythonpath else str(SRC_DIR)
    env["EXTHOST_LOG_LEVEL"] = "WARNING"
    return env
