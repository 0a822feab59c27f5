"""
Candidate filter: walks source directories and yields audio files worth hashing.

A candidate is a regular file (symlinks are not followed) whose extension is
in the allowed set (case-insensitive) and whose size meets the minimum.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Iterable, Iterator

import structlog

from dedupe_music.exceptions import DirectoryWalkError

logger = structlog.get_logger(__name__)


class CandidateFilter:
    """Lazy directory walker with extension and size filtering."""

    def __init__(self, extensions: Iterable[str], min_size_bytes: int):
        self.extensions = frozenset(ext.lower() for ext in extensions)
        self.min_size_bytes = min_size_bytes
        self.total_skipped = 0

    def is_candidate(self, path: Path, st: os.stat_result) -> bool:
        """Check a single already-stat'ed path against the filter."""
        if not stat.S_ISREG(st.st_mode):
            return False
        if st.st_size < self.min_size_bytes:
            return False
        return path.suffix.lower() in self.extensions

    def iter_candidates(self, root: Path) -> Iterator[Path]:
        """
        Walk root and yield absolute candidate paths, in walk order.

        Permission errors on subpaths are logged and skipped. Any other
        walk error (missing root, root not a directory, I/O error) raises
        DirectoryWalkError for this root.

        Args:
            root: Source directory to walk

        Yields:
            Absolute paths of candidate files
        """
        root = Path(os.path.abspath(root))
        if not root.is_dir():
            raise DirectoryWalkError([(str(root), "not a directory or does not exist")])

        def _on_error(error: OSError) -> None:
            if isinstance(error, PermissionError):
                logger.debug(
                    "dedup_directory_permission_denied",
                    directory=error.filename,
                )
                return
            raise DirectoryWalkError([(str(root), str(error))]) from error

        for dirpath, _dirnames, filenames in os.walk(root, onerror=_on_error):
            for filename in filenames:
                path = Path(dirpath) / filename
                try:
                    st = path.lstat()
                except OSError as e:
                    # Vanished or unreadable between listing and stat
                    logger.warning("dedup_stat_failed", path=str(path), error=str(e))
                    continue

                if self.is_candidate(path, st):
                    yield path
                else:
                    self.total_skipped += 1
