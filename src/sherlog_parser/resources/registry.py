"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from sherlog_parser.core.config import ENV_CLUSTER_THRESHOLD, ENV_MAX_RESULTS, ENV_STREAM_BATCH_LINES
from sherlog_parser.core.learning import DetectedPattern
from sherlog_parser.core.models import ParseResult
from sherlog_parser.core.variables import describe_matchers

SAMPLE_LOG = (
    "2025-12-30T08:12:01Z INFO service started on port 8080\n"
    "2025-12-30T08:12:03Z WARN retrying request 7731 to 10.0.0.12\n"
    "2025-12-30T08:12:04Z ERROR upstream timeout for request 7731\n"
    "2025-12-30T08:12:05Z ERROR upstream timeout for request 7790\n"
    "2025-12-30T08:12:06Z ERROR Unhandled exception in worker 3\n"
    "    at com.example.Worker.run(Worker.java:42)\n"
    "    at java.base/java.lang.Thread.run(Thread.java:833)\n"
    "Caused by: java.lang.NullPointerException: job was null\n"
    "    ... 2 more\n"
    "2025-12-30T08:12:07Z FATAL database unavailable\n"
)


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://sherlog/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs and settings."""
        return (
            "Resources:\n"
            "- app://sherlog/help\n"
            "- app://sherlog/examples/sample-log\n"
            "- app://sherlog/schemas/parse-result\n"
            "- app://sherlog/schemas/detected-pattern\n"
            "- app://sherlog/config/variable-matchers\n"
            "\nEnvironment:\n"
            f"- {ENV_MAX_RESULTS}: cap on returned errors\n"
            f"- {ENV_STREAM_BATCH_LINES}: lines per cooperative batch when streaming files\n"
            f"- {ENV_CLUSTER_THRESHOLD}: default similarity threshold for clustering\n"
        )

    @mcp.resource("app://sherlog/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny sample log for demos and tests."""
        return SAMPLE_LOG

    @mcp.resource("app://sherlog/schemas/parse-result")
    def parse_result_schema() -> dict[str, Any]:
        """Return the JSON schema of parse results."""
        return ParseResult.model_json_schema()

    @mcp.resource("app://sherlog/schemas/detected-pattern")
    def detected_pattern_schema() -> dict[str, Any]:
        """Return the JSON schema of detected patterns."""
        return DetectedPattern.model_json_schema()

    @mcp.resource("app://sherlog/config/variable-matchers")
    def variable_matchers() -> list[dict[str, str]]:
        """Return the built-in variable matchers in precedence order."""
        return describe_matchers()
