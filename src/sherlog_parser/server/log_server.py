"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (parse a log, learn a pattern, cluster messages)
- Resources: addressable data blobs (help, sample log, JSON schemas)

Run locally (stdio):
    python -m sherlog_parser.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from sherlog_parser.resources.registry import register_resources
from sherlog_parser.tools.analysis import (
    cluster_errors_impl,
    detect_pattern_impl,
    extract_template_impl,
    parse_log_file_impl,
    parse_log_text_impl,
)

LOGGER = logging.getLogger(__name__)

LOG_LEVEL_ENV = "SHERLOG_LOG_LEVEL"


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("sherlog", json_response=True)

register_resources(mcp)


@mcp.tool()
async def parse_log_file(
    log_path: str,
    stream: bool = True,
    max_results: int | None = None,
    custom_patterns: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Parse a log file into deduplicated, templated errors.

    Parameters
    ----------
    log_path:
        Path to a local log file. Supports plain text and .gz.
    stream:
        When true (default) the file is fed line by line and only the
        aggregation state is held in memory.
    max_results:
        Maximum number of errors returned (hard-capped in the implementation).
        Summary counters always cover the whole file.
    custom_patterns:
        Rules applied before the built-in variable detection, e.g.
        [{"expression": "^Job (\\d+) failed$", "template": "Job {JOB} failed", "priority": 10}].

    Returns
    -------
    dict:
        {"summary": {...}, "errors": list[dict], "pattern_hits": dict, "returned": int}
    """
    return await parse_log_file_impl(
        log_path=log_path,
        stream=stream,
        max_results=max_results,
        custom_patterns=custom_patterns,
    )


@mcp.tool()
def parse_log_text(
    content: str,
    max_results: int | None = None,
    custom_patterns: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Parse log text passed inline. Same output shape as parse_log_file."""
    return parse_log_text_impl(
        content=content,
        max_results=max_results,
        custom_patterns=custom_patterns,
    )


@mcp.tool()
def detect_pattern(examples: list[str]) -> dict[str, Any]:
    """Infer a template and matching expression from 2+ example messages.

    Returns
    -------
    dict:
        {"pattern": {"template", "matching_expression", "confidence",
        "variable_segments", "common_parts"} | None, "reason": str | None}
    """
    return detect_pattern_impl(examples=examples)


@mcp.tool()
def cluster_errors(messages: list[str], threshold: float | None = None) -> dict[str, Any]:
    """Group similar messages (normalized edit distance >= threshold).

    Parameters
    ----------
    messages:
        Raw messages to group.
    threshold:
        Similarity in [0, 1]. Defaults to SHERLOG_CLUSTER_THRESHOLD or 0.8.
    """
    return cluster_errors_impl(messages=messages, threshold=threshold)


@mcp.tool()
def extract_template(
    message: str,
    custom_patterns: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Return the template, variables and fingerprint of a single message."""
    return extract_template_impl(message=message, custom_patterns=custom_patterns)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
