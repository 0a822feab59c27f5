"""
Shared pytest fixtures for dedupe-music.

- dedup_config: DedupConfig factory for tmp_path trees (tiny size threshold)
- write_file: creates a file with given content under tmp_path
"""

import sys
from pathlib import Path

import pytest

# Add repo root to PYTHONPATH (once for all tests)
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from dedupe_music.models import DedupConfig, GroupKeyPolicy  # noqa: E402


@pytest.fixture
def write_file(tmp_path):
    """Create a file (and its parent directories) relative to tmp_path."""

    def _write(relative: str, content: bytes) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _write


@pytest.fixture
def dedup_config(tmp_path):
    """Build a DedupConfig scanning tmp_path/music with a 1-byte minimum size."""

    def _config(**overrides) -> DedupConfig:
        values = {
            "source_dirs": [tmp_path / "music"],
            "key_policy": GroupKeyPolicy.hash,
            "min_size_bytes": 1,
            "workers": 4,
            "output_path": tmp_path / "dedupe-music.json",
        }
        values.update(overrides)
        return DedupConfig(**values)

    return _config
