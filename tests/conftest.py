"""Shared pytest fixtures for proxylists tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from proxylists.database.view import BinaryDatabaseView  # noqa: E402
from tests.fixtures.database_fixtures import SAMPLE_ROWS, write_database  # noqa: E402


@pytest.fixture
def sample_database(tmp_path: Path) -> Path:
    """Write the five-row PX10 sample database and return its path."""
    return write_database(tmp_path / "sample.bin", SAMPLE_ROWS)


@pytest.fixture
def sample_view(sample_database: Path):  # type: ignore[misc]
    """Open the sample database and close it after the test."""
    view = BinaryDatabaseView.open(sample_database)
    yield view
    view.close()


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop PROXYLISTS_* variables so settings tests start from defaults."""
    import os

    for key in list(os.environ):
        if key.startswith("PROXYLISTS_"):
            monkeypatch.delenv(key, raising=False)
