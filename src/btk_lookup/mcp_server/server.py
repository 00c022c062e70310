"""
MCP server exposing the BTK lookup tools over stdio
"""
from mcp.server.fastmcp import FastMCP

from btk_lookup.config.logger import configure_logging
from btk_lookup.config.settings import load_app_config
from .tools.btk_tools import register_btk_tools


def create_server(name: str = "btk-lookup") -> FastMCP:
    """Build the FastMCP server with every BTK tool registered"""
    mcp = FastMCP(name)
    register_btk_tools(mcp)
    return mcp


def run():
    """Entry point for the btk-lookup-mcp script"""
    # stdout carries JSON-RPC; JSON logs go to stderr
    configure_logging(load_app_config().log_level)
    create_server().run()


if __name__ == "__main__":
    run()
