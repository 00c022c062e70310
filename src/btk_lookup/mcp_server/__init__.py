"""MCP server for the BTK lookup tools."""

from .server import create_server

__all__ = ["create_server"]
