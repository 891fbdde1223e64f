"""MCP server for the retrieval index."""

from kikishell.server.mcp_server import create_mcp_server

__all__ = ["create_mcp_server"]
