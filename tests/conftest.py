"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from build_tasks.sinks import MemoryLineSink

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture()
def fixture_file() -> Path:
    """Static file whose content is ``this is a test\\n``."""
    return FIXTURES_DIR / "test.txt"


@pytest.fixture()
def line_sink() -> MemoryLineSink:
    return MemoryLineSink()
