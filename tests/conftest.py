"""
Pytest configuration and fixtures for schedload tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from schedload.registry import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from schedload.host import MemoryLoaderHost  # noqa: E402
from schedload.registry import LoaderRegistry  # noqa: E402


@pytest.fixture
def registry():
    """Empty registry with the default policy."""
    return LoaderRegistry()


@pytest.fixture
def host():
    """Empty in-memory host."""
    return MemoryLoaderHost()


@pytest.fixture
def write_directives(tmp_path):
    """Write directive text to a file and return its path."""

    def _write(text: str, name: str = "schedule.txt") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
