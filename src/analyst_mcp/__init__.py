"""Analyst Report MCP Server."""

import os


def get_server_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("SERVER_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("analyst-mcp")
    except Exception:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when output schema changes materially (new fields, renamed fields, structure changes)
# v1: Initial report schema (summary, verdicts, news, history, confidence_notes)
# v2: Scan candidates carry per-field provenance (sourced/estimated)
SCHEMA_VERSION = "2"
