"""Fingerprinter: stable keys derived from templates only."""

from __future__ import annotations

import hashlib

from .normalizer import PatternsArg, normalize

ID_LENGTH = 16


def fingerprint_template(template: str) -> str:
    """sha256 hex digest of the UTF-8 template."""
    return hashlib.sha256(template.encode("utf-8")).hexdigest()


def error_id(fp: str) -> str:
    return fp[:ID_LENGTH]


def fingerprint(message_or_template: str, custom_patterns: PatternsArg = None) -> str:
    """Fingerprint of a raw message or a template.

    Normalization is idempotent on templates (placeholders contain no
    variable shapes), so both spellings of the same error share one key.
    """
    return fingerprint_template(normalize(message_or_template, custom_patterns))
