"""
BTK site lookup - command line entry point

Usage:
    btk-lookup discord.com
    btk-lookup discord.com twitter.com google.com
    btk-lookup --list sites.txt
    btk-lookup --json twitter.com

Environment (.env file or process environment):
    GEMINI_API_KEY    Google Gemini API key (required)
    GEMINI_MODEL      Gemini model name (default: gemini-2.5-flash)
"""
import argparse
import asyncio
import json
import sys
from typing import List, Optional, Sequence

from btk_lookup import __version__
from btk_lookup.config.logger import configure_logging, logger
from btk_lookup.config.settings import load_app_config
from btk_lookup.connectors.btk.connector import BTKConnector
from btk_lookup.connectors.btk.interfaces import QueryOutcome, summarize
from btk_lookup.errors import BootstrapError, ConfigurationError
from btk_lookup.formatting import error_to_dict, outcome_to_dict, render_outcome, render_summary
from btk_lookup.http.transport import HttpTransport
from btk_lookup.worklist import collect_domains


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="btk-lookup",
        description="Check whether domains are blocked in Turkey via the BTK site query form.",
    )
    parser.add_argument("domains", nargs="*", help="Domains to query")
    parser.add_argument("--list", "--liste", "-l", dest="list_file", help="Read domains from a file, one per line")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--env-file", default=".env", help="dotenv file to load (default: .env)")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    return parser


def _fail(message: str, as_json: bool) -> int:
    if as_json:
        print(json.dumps(error_to_dict(message), ensure_ascii=False, indent=2))
    else:
        print(f"❌ {message}", file=sys.stderr)
    return 1


def _print_outcomes(outcomes: List[QueryOutcome], requested: int, as_json: bool) -> None:
    if as_json:
        print(json.dumps([outcome_to_dict(o) for o in outcomes], ensure_ascii=False, indent=2))
        return

    for outcome in outcomes:
        print(render_outcome(outcome))
    if requested > 1:
        print(render_summary(summarize(outcomes, requested)))


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the lookup and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.domains and not args.list_file:
        parser.print_help(sys.stderr)
        return 1

    try:
        config = load_app_config(args.env_file)
    except ConfigurationError as e:
        return _fail(str(e), args.json)

    # Quiet logs in JSON mode; stdout carries the result document
    configure_logging("WARNING" if args.json else config.log_level, console=not args.json)

    try:
        api_key = config.require_api_key()
    except ConfigurationError as e:
        return _fail(str(e), args.json)

    try:
        domains, invalid = collect_domains(args.domains, args.list_file)
    except OSError as e:
        return _fail(f"Could not read domain list: {e}", args.json)

    for name in invalid:
        logger.warning("invalid_domain_skipped", domain=name)

    if not domains:
        return _fail("No valid domain to query", args.json)

    logger.info("lookup_started", domains=domains, model=config.gemini_model)

    async with HttpTransport(config) as transport:
        connector = BTKConnector.from_transport(config, transport)
        try:
            outcomes = await connector.run_batch(domains, api_key)
        except BootstrapError as e:
            return _fail(str(e), args.json)

    _print_outcomes(outcomes, len(domains), args.json)
    return 0


def run():
    """Entry point for the btk-lookup script"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        sys.exit(130)


if __name__ == "__main__":
    run()
