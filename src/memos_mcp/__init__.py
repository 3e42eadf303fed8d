"""Memos MCP server and release binary launcher."""

__version__ = "0.2.0"
