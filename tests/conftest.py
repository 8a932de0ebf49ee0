"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: spawns the CLI as a subprocess")


def pytest_collection_modifyitems(config, items):
    """Integration tests only run under -m integration."""
    if "integration" in (config.getoption("-m", default="") or ""):
        return
    skip = pytest.mark.skip(reason="use -m integration to run")
    for item in items:
        if item.get_closest_marker("integration"):
            item.add_marker(skip)


@pytest.fixture
def fake_cargo(tmp_path: Path):
    """Return a function that puts a ``cargo`` printing the given metadata on a bin dir."""

    def install(metadata: dict) -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        cargo = bin_dir / "cargo"
        cargo.write_text(f"#!/bin/sh\necho '{json.dumps(metadata)}'\n")
        cargo.chmod(cargo.stat().st_mode | stat.S_IEXEC)
        return bin_dir

    return install
