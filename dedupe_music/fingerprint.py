"""
Whole-file content fingerprint (chunked MD5).

MD5 is a deduplication fingerprint here, not a security boundary:
colliding digests are treated as the same file.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from dedupe_music.models import FileRecord

DEFAULT_CHUNK_SIZE = 65536


def hash_file(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute the MD5 hex digest of a file, reading it in chunks."""
    md5 = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            md5.update(chunk)
    return md5.hexdigest()


def fingerprint_file(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> FileRecord:
    """
    Stat and hash one file.

    The stat here is authoritative: the size seen by the directory walk
    may be stale by the time a worker picks the path up.

    Raises:
        OSError: If the file cannot be stat'ed or read
    """
    size = path.stat().st_size
    digest = hash_file(path, chunk_size)
    return FileRecord(name=path.name, path=path, hash=digest, size=size)
