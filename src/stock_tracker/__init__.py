"""Stock tracker: market data pipeline and watchlists."""

import os


def get_server_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("SERVER_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("stock-tracker")
    except Exception:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when tool output changes materially
# v1: Initial schema
# v2: Added labels to price charts, retryable flag on error responses
SCHEMA_VERSION = "2"
