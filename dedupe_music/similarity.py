"""
Filename similarity and the near-duplicate merge pass.

Similarity is a letter-overlap ratio, not an edit distance: each character
of the first name's letter sequence counts as a match if it occurs anywhere
in the second sequence. Matched characters are not consumed, so a repeated
character in the first name can match the same character in the second
name more than once.
"""

from __future__ import annotations

import structlog

from dedupe_music.index import DeduplicationIndex

logger = structlog.get_logger(__name__)

SEPARATORS = frozenset(" _-.")
DEFAULT_THRESHOLD = 0.5


def letter_sequence(name: str) -> str:
    """Filename with separator characters (space, _, -, .) removed."""
    return "".join(ch for ch in name if ch not in SEPARATORS)


def similarity(name_a: str, name_b: str) -> float:
    """
    Letter-overlap similarity of two filenames, in [0, 1].

    matches / max(len(seq_a), len(seq_b)); two empty sequences give 0.0.
    """
    seq_a = letter_sequence(name_a)
    seq_b = letter_sequence(name_b)
    longest = max(len(seq_a), len(seq_b))
    if longest == 0:
        return 0.0

    letters_b = set(seq_b)
    matches = sum(1 for ch in seq_a if ch in letters_b)
    return matches / longest


def merge_near_duplicates(
    index: DeduplicationIndex,
    threshold: float = DEFAULT_THRESHOLD,
) -> int:
    """
    Fold same-size roots with similar filenames into one another.

    Must run once, after every fingerprint worker has finished. For each
    pair (A, B) with A before B, if sizes match and similarity >= threshold,
    B and all of B's children become children of A (the forest stays two
    levels deep) and B's key is removed from the index. An absorbed root is
    never compared again.

    Args:
        index: Fully populated deduplication index
        threshold: Minimum similarity to merge

    Returns:
        Number of roots absorbed
    """
    entries = index.items()
    absorbed = 0

    i = 0
    while i < len(entries):
        _key_a, root_a = entries[i]
        j = i + 1
        while j < len(entries):
            key_b, root_b = entries[j]
            if root_a.size == root_b.size and similarity(root_a.name, root_b.name) >= threshold:
                moved = root_b.children
                root_b.children = []
                root_a.children.append(root_b)
                root_a.children.extend(moved)
                index.discard(key_b)
                del entries[j]
                absorbed += 1
                logger.debug(
                    "dedup_near_duplicate_merged",
                    root=str(root_a.path),
                    absorbed=str(root_b.path),
                    size=root_a.size,
                )
                # The list shrank: entries[j] is now the next candidate
                continue
            j += 1
        i += 1

    return absorbed
