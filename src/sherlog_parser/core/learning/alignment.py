"""Tokenization and longest-common-subsequence alignment."""

from __future__ import annotations

import re
from collections.abc import Sequence

_TOKEN_RE = re.compile(
    r"\b[0-9a-fA-F]{8}(?:-[0-9a-fA-F]{4}){3}-[0-9a-fA-F]{12}\b"
    r"|\b(?:\d{1,3}\.){3}\d{1,3}\b"
    r"|\s+|\w+|[^\w\s]"
)


def tokenize(text: str) -> list[str]:
    """Split into whitespace runs, word runs and single punctuation characters.

    UUIDs and dotted IPv4 addresses are kept as single tokens. Joining the
    tokens gives back the input text.
    """
    return _TOKEN_RE.findall(text)


def word_spans(text: str) -> list[tuple[str, int, int]]:
    """Non-whitespace tokens of ``text`` with their start and end offsets."""
    return [
        (m.group(), m.start(), m.end())
        for m in _TOKEN_RE.finditer(text)
        if not m.group().isspace()
    ]


def lcs_pairs(a: Sequence[str], b: Sequence[str]) -> list[tuple[int, int]]:
    """Index pairs (i, j) of one longest common subsequence of ``a`` and ``b``."""
    n, m = len(a), len(b)
    # suffix[i][j] = LCS length of a[i:] and b[j:]
    suffix = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = suffix[i], suffix[i + 1]
        for j in range(m - 1, -1, -1):
            if a[i] == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    pairs: list[tuple[int, int]] = []
    i = j = 0
    while i < n and j < m:
        if a[i] == b[j]:
            pairs.append((i, j))
            i += 1
            j += 1
        elif suffix[i + 1][j] >= suffix[i][j + 1]:
            i += 1
        else:
            j += 1
    return pairs
