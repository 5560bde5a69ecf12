"""Edit-distance similarity between messages."""

from __future__ import annotations


def levenshtein_distance(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                )
            )
        previous = current
    return previous[-1]


def similarity_score(a: str, b: str) -> float:
    """1 - distance / longer length; two empty strings are identical (1.0)."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def length_bound(a: str, b: str) -> float:
    """Upper bound of :func:`similarity_score` from the lengths alone."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - abs(len(a) - len(b)) / longest
