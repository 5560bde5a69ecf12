"""Pattern learner: template inference from examples and similarity clustering."""

from __future__ import annotations

from .alignment import lcs_pairs, tokenize, word_spans
from .clustering import cluster_errors
from .detection import DetectedPattern, detect, detect_pattern
from .similarity import levenshtein_distance, similarity_score

__all__ = [
    "DetectedPattern",
    "cluster_errors",
    "detect",
    "detect_pattern",
    "lcs_pairs",
    "levenshtein_distance",
    "similarity_score",
    "tokenize",
    "word_spans",
]
