"""
dedupe-music - Canonical exception hierarchy.

Per-file failures (stat, read, copy, delete) are not exceptions at this
level: they are logged and collected in result objects. Only run-level
failures are raised.
"""


class DedupeMusicError(Exception):
    """Base exception dedupe-music."""


class ConfigurationError(DedupeMusicError):
    """Invalid or missing configuration, reported before any scanning."""


class DirectoryWalkError(DedupeMusicError):
    """One or more source directories could not be walked."""

    def __init__(self, failures: list[tuple[str, str]]):
        self.failures = failures
        details = "; ".join(f"{directory}: {error}" for directory, error in failures)
        super().__init__(f"error walking {len(failures)} source director(y/ies): {details}")


class ScanCancelledError(DedupeMusicError):
    """The run was cancelled before a complete report could be produced."""


class OutputError(DedupeMusicError):
    """Cannot create the target directory or write the report file."""
