"""BTK tools for MCP server.

This module provides MCP tools that let an LLM check whether domains are
blocked in Turkey. Each tool call runs one batch on its own transport and
returns JSON-friendly dictionaries; errors are reported in the payload
rather than raised.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from btk_lookup.config.logger import logger
from btk_lookup.config.settings import LookupConfig, load_app_config
from btk_lookup.connectors.btk.connector import BTKConnector
from btk_lookup.connectors.btk.interfaces import QueryOutcome, summarize
from btk_lookup.errors import BTKLookupError
from btk_lookup.formatting import outcome_to_dict
from btk_lookup.http.transport import HttpTransport
from btk_lookup.worklist import collect_domains

_config: Optional[LookupConfig] = None


def _get_config() -> LookupConfig:
    """Load the configuration once per process."""
    global _config

    if _config is None:
        _config = load_app_config()
    return _config


async def _run_batch(domains: List[str]) -> List[QueryOutcome]:
    config = _get_config()
    api_key = config.require_api_key()
    async with HttpTransport(config) as transport:
        connector = BTKConnector.from_transport(config, transport)
        return await connector.run_batch(domains, api_key)


async def query_domains(domains: List[str]) -> Dict[str, Any]:
    """Query domains and build the tool response.

    Args:
        domains: Domain names; invalid entries are reported and skipped.

    Returns:
        Dictionary with per-domain results and a summary, or an error message.
    """
    valid, invalid = collect_domains(domains)
    if not valid:
        return {
            "success": False,
            "message": "No valid domain to query",
            "invalid": invalid,
            "timestamp": datetime.now().isoformat()
        }

    try:
        logger.info("btk_query_request", domains=valid)
        outcomes = await _run_batch(valid)
    except BTKLookupError as e:
        logger.error("btk_query_failed", error_type=type(e).__name__, error=str(e))
        return {
            "success": False,
            "message": str(e),
            "invalid": invalid,
            "timestamp": datetime.now().isoformat()
        }
    except Exception as e:
        logger.error("btk_query_error", error=str(e), exc_info=True)
        return {
            "success": False,
            "message": f"Error during query: {str(e)}",
            "invalid": invalid,
            "timestamp": datetime.now().isoformat()
        }

    return {
        "success": True,
        "results": [outcome_to_dict(outcome) for outcome in outcomes],
        "summary": asdict(summarize(outcomes, len(valid))),
        "invalid": invalid,
        "timestamp": datetime.now().isoformat()
    }


def register_btk_tools(mcp: FastMCP):
    """Register BTK tools with the MCP server."""

    @mcp.tool()
    async def btk_query_domain(domain: str) -> Dict[str, Any]:
        """Check whether a domain is blocked in Turkey.

        Args:
            domain: Domain name, e.g. "discord.com"

        Returns:
            Dictionary with the blocking status and decision details
            (date, case number, court, descriptions)
        """
        return await query_domains([domain])

    @mcp.tool()
    async def btk_query_domains(domains: List[str]) -> Dict[str, Any]:
        """Check several domains in one run, sequentially.

        Args:
            domains: Domain names; the first one must succeed for the run to continue

        Returns:
            Dictionary with one result per domain and blocked/accessible/failed counts
        """
        return await query_domains(domains)
