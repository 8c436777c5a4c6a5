"""Fuzzy key matching and prefix grouping."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

GROUP_DELIMITER = ":"
EMPTY_GROUP = "(empty)"
NO_PREFIX_GROUP = "(no prefix)"


@dataclass(frozen=True)
class GroupCount:
    label: str
    count: int


def _fold_equal(a: str, b: str) -> bool:
    """Simple (single character) case-insensitive comparison."""
    if a == b:
        return True
    la, lb = a.lower(), b.lower()
    if len(la) == 1 and la == lb:
        return True
    ua, ub = a.upper(), b.upper()
    return len(ua) == 1 and ua == ub


def fuzzy_match(pattern: str, target: str) -> bool:
    """Return True if *pattern* occurs in *target* as a subsequence.

    Matching is greedy: each target character is consumed by the first
    pattern character it can satisfy and the scan never backtracks.
    """
    if not pattern:
        return True
    pi = 0
    want = pattern[0]
    for ch in target:
        if _fold_equal(ch, want):
            pi += 1
            if pi == len(pattern):
                return True
            want = pattern[pi]
    return False


def group_label(key: str, delimiter: str = GROUP_DELIMITER) -> str:
    if not key:
        return EMPTY_GROUP
    idx = key.find(delimiter)
    if idx > 0:
        return key[:idx]
    return NO_PREFIX_GROUP


def count_matching(keys: Iterable[str], term: str) -> int:
    pattern = term.strip()
    if not pattern:
        return 0
    return sum(1 for key in keys if fuzzy_match(pattern, key))


def group_counts(
    keys: Iterable[str], delimiter: str = GROUP_DELIMITER
) -> dict[str, int]:
    counts: dict[str, int] = {}
    for key in keys:
        label = group_label(key, delimiter)
        counts[label] = counts.get(label, 0) + 1
    return counts


def sort_group_counts(counts: Mapping[str, int]) -> list[GroupCount]:
    """Order groups by descending count, ties by ascending label."""
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [GroupCount(label, count) for label, count in ordered]
