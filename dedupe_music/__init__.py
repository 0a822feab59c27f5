"""
dedupe-music: duplicate audio file detection.

Modules:
- candidates: directory walk with extension/size filtering
- fingerprint: chunked MD5 of whole files
- index: thread-safe group key -> root record index
- similarity: filename letter-overlap + near-duplicate merge pass
- engine: concurrent fingerprint worker pool
- report_generator: JSON report
- copier / deleter: consolidation copy and source deletion
- models: Pydantic data models
"""

from dedupe_music.models import (
    CopyResult,
    DedupConfig,
    DeleteMode,
    DeletionResult,
    FileRecord,
    GroupKeyPolicy,
    ScanResult,
    ScanStats,
)

__all__ = [
    "CopyResult",
    "DedupConfig",
    "DeleteMode",
    "DeletionResult",
    "FileRecord",
    "GroupKeyPolicy",
    "ScanResult",
    "ScanStats",
]
