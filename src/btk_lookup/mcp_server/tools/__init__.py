"""MCP tool registrations."""

from .btk_tools import register_btk_tools

__all__ = ["register_btk_tools"]
