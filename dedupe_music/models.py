"""
Pydantic models for dedupe-music.

Models:
- DedupConfig: Immutable run configuration (built once by the CLI)
- FileRecord: One fingerprinted file with its duplicate children
- ScanStats: Real-time engine statistics
- ScanResult: Final engine result (root records + per-file errors)
- CopyResult / DeletionResult: Outcome of the copy and delete collaborators
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_EXTENSIONS = frozenset({".wav", ".aif", ".aiff", ".mp3"})
MP4_EXTENSION = ".mp4"
MEGABYTE = 1024 * 1024


class GroupKeyPolicy(str, Enum):
    """Which fields make two files exact duplicates."""

    hash = "hash"
    name_hash = "name+hash"


class DeleteMode(str, Enum):
    """Which source files to delete once the report is written."""

    none = "none"
    all = "all"
    duplicates = "duplicates"


class UpsertOutcome(str, Enum):
    """Result of registering a record in the deduplication index."""

    created = "created"
    attached = "attached"


class DedupConfig(BaseModel):
    """Configuration for a dedupe-music run."""

    model_config = ConfigDict(frozen=True)

    source_dirs: list[Path] = Field(
        ...,
        min_length=1,
        description="Directories to scan for audio files",
    )
    key_policy: GroupKeyPolicy = Field(
        ...,
        description="hash: same content is a duplicate; name+hash: name must match too",
    )
    target_dir: Optional[Path] = Field(
        default=None,
        description="Directory to copy unique files to",
    )
    output_path: Path = Field(
        default=Path("dedupe-music.json"),
        description="Where to write the JSON report",
    )
    min_size_bytes: int = Field(
        default=10 * MEGABYTE,
        ge=0,
        description="Minimum file size in bytes (skip smaller)",
    )
    workers: int = Field(
        default_factory=lambda: os.cpu_count() or 1,
        ge=1,
        description="Number of concurrent fingerprint workers",
    )
    queue_size: int = Field(
        default=100,
        ge=1,
        description="Bounded queue between the directory walk and the workers",
    )
    chunk_size: int = Field(
        default=65536,
        ge=1,
        description="MD5 hashing chunk size in bytes",
    )
    extensions: frozenset[str] = Field(
        default=DEFAULT_EXTENSIONS,
        min_length=1,
        description="Allowed audio extensions (lowercased, with leading dot)",
    )
    near_duplicates: bool = Field(
        default=True,
        description="Merge same-size roots with similar filenames",
    )
    similarity_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum filename similarity for the near-duplicate merge",
    )
    delete_mode: DeleteMode = DeleteMode.none
    use_trash: bool = Field(
        default=False,
        description="Send deleted files to the trash instead of unlinking them",
    )

    @field_validator("extensions", mode="before")
    @classmethod
    def validate_extensions(cls, v):
        """Each extension must start with a dot; stored lowercased."""
        validated = set()
        for ext in v:
            if not isinstance(ext, str) or not ext.startswith("."):
                raise ValueError(f"Extension '{ext}' must start with '.'")
            validated.add(ext.lower())
        return frozenset(validated)


class FileRecord(BaseModel):
    """Single fingerprinted file. Children are the duplicates found for it."""

    name: str
    path: Path
    hash: str
    size: int
    children: list[FileRecord] = Field(default_factory=list)

    def iter_paths(self):
        """Yield this record's path, then every child path."""
        yield self.path
        for child in self.children:
            yield child.path


class ScanStats(BaseModel):
    """Real-time scan statistics."""

    total_candidates: int = 0
    total_fingerprinted: int = 0
    total_errors: int = 0
    total_duplicates: int = 0
    near_duplicates_merged: int = 0
    current_directory: str = ""


class ScanResult(BaseModel):
    """Final engine result."""

    roots: list[FileRecord] = Field(default_factory=list)
    stats: ScanStats = Field(default_factory=ScanStats)
    errors: list[tuple[str, str]] = Field(default_factory=list)

    @property
    def unique_count(self) -> int:
        return len(self.roots)

    @property
    def duplicate_count(self) -> int:
        return sum(len(root.children) for root in self.roots)


class CopyResult(BaseModel):
    """Result of copying unique files to the target directory."""

    copied: list[tuple[str, str]] = Field(default_factory=list)  # (source, destination)
    errors: list[tuple[str, str]] = Field(default_factory=list)  # (source, error)

    @property
    def failed_sources(self) -> set[str]:
        return {source for source, _ in self.errors}


class DeletionResult(BaseModel):
    """Result of deleting source files."""

    total_to_delete: int = 0
    deleted: list[str] = Field(default_factory=list)
    already_absent: list[str] = Field(default_factory=list)
    protected: list[str] = Field(default_factory=list)
    errors: list[tuple[str, str]] = Field(default_factory=list)  # (path, error)
    space_reclaimed_bytes: int = 0

    @property
    def space_reclaimed_mb(self) -> float:
        return round(self.space_reclaimed_bytes / MEGABYTE, 2)
