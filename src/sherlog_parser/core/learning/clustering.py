"""Greedy similarity clustering of raw messages.

Each message joins the first existing cluster whose leader (first member)
is at least ``threshold`` similar to it, otherwise it starts a new cluster.
Clusters and their members keep input order, so the output is
deterministic for a fixed input and threshold.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from numbers import Real

from ..errors import InputError
from .similarity import length_bound, similarity_score

logger = logging.getLogger(__name__)


def _check_threshold(threshold: float) -> float:
    if isinstance(threshold, bool) or not isinstance(threshold, Real):
        raise InputError("threshold must be a number")
    value = float(threshold)
    if not 0.0 <= value <= 1.0:
        raise InputError("threshold must be between 0 and 1")
    return value


def cluster_errors(messages: Sequence[str], threshold: float = 0.8) -> list[list[str]]:
    threshold = _check_threshold(threshold)

    clusters: list[list[str]] = []
    for message in messages:
        if not isinstance(message, str):
            raise InputError(f"messages must be strings, got {type(message).__name__}")
        for cluster in clusters:
            leader = cluster[0]
            if length_bound(leader, message) < threshold:
                continue
            if similarity_score(leader, message) >= threshold:
                cluster.append(message)
                break
        else:
            clusters.append([message])

    logger.debug(
        "Clustered %d messages into %d groups (threshold=%.2f)",
        len(messages),
        len(clusters),
        threshold,
    )
    return clusters
