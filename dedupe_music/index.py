"""
Deduplication index: group key -> first-seen root record.

The index is the only state shared between fingerprint workers. Its sole
mutation during the scan is upsert(), a check-then-act sequence under one
exclusive lock. Hashing never happens under the lock.
"""

from __future__ import annotations

import threading

from dedupe_music.models import FileRecord, GroupKeyPolicy, UpsertOutcome


def make_group_key(policy: GroupKeyPolicy, name: str, digest: str) -> str:
    """
    Build the exact-duplicate key for a record.

    hash: files with the same content group together whatever their names.
    name+hash: files group together only if both name and content match.
    """
    if policy is GroupKeyPolicy.hash:
        return digest
    return f"{name}|{digest}"


class DeduplicationIndex:
    """Thread-safe mapping from group key to root FileRecord."""

    def __init__(self, policy: GroupKeyPolicy):
        self.policy = policy
        self._roots: dict[str, FileRecord] = {}
        self._lock = threading.Lock()

    def key_for(self, record: FileRecord) -> str:
        return make_group_key(self.policy, record.name, record.hash)

    def upsert(self, key: str, candidate: FileRecord) -> UpsertOutcome:
        """
        Insert candidate as a new root, or attach it as a child of the
        existing root for key.

        Returns:
            UpsertOutcome.created or UpsertOutcome.attached
        """
        with self._lock:
            existing = self._roots.get(key)
            if existing is None:
                self._roots[key] = candidate
                return UpsertOutcome.created
            existing.children.append(candidate)
            return UpsertOutcome.attached

    def register(self, record: FileRecord) -> UpsertOutcome:
        """upsert() with the key computed from the configured policy."""
        return self.upsert(self.key_for(record), record)

    def items(self) -> list[tuple[str, FileRecord]]:
        """(key, root) pairs, in insertion order."""
        with self._lock:
            return list(self._roots.items())

    def snapshot(self) -> list[FileRecord]:
        """Current roots. Only meaningful once all upserts have finished."""
        with self._lock:
            return list(self._roots.values())

    def discard(self, key: str) -> None:
        """Drop a root that has been absorbed by another root."""
        with self._lock:
            self._roots.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._roots)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._roots
