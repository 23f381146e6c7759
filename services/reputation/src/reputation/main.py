"""Command line entry point for the reputation engine."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from common import ReputationException, setup_logging
from common.constants import DEFAULT_LOG_LEVEL
from schemas import extract_hosts_from_text, is_valid_host
from reputation.config import load_settings
from reputation.engine import DecisionEngine

logger = structlog.get_logger()

DEFAULT_CONFIG = str(Path(__file__).parent / "config" / "sources.yaml")


def extract_hosts(text: str) -> List[str]:
    """Sorted, deduplicated valid hosts from every HTTP(S) URL in ``text``."""
    return sorted(host for host in extract_hosts_from_text(text) if is_valid_host(host))


def run_extract_hosts(input_path: str, output_path: Optional[str]) -> int:
    try:
        text = Path(input_path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error("Failed to read feed file", path=input_path, error=str(e))
        return 1

    hosts = extract_hosts(text)
    content = "".join(f"{host}\n" for host in hosts)
    if output_path:
        Path(output_path).write_text(content, encoding="utf-8")
        logger.info("Host list written", path=output_path, hosts=len(hosts))
    else:
        sys.stdout.write(content)
    return 0


async def run_engine_command(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)
    engine = DecisionEngine.from_settings(settings)

    needs_feeds = args.command in ("check-url", "check-host", "health") and not args.skip_feeds
    await engine.host_cache.load_persisted()
    if needs_feeds:
        await engine.scheduler.refresh_once()

    try:
        if args.command == "check-url":
            result = await engine.check_url(args.url, correlation_id=args.correlation_id)
        elif args.command == "check-host":
            result = engine.check_host(args.host, correlation_id=args.correlation_id)
        elif args.command == "refresh":
            result = await engine.refresh_feeds()
        else:
            result = engine.health()
    finally:
        await engine.stop()

    print(result.model_dump_json(indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="URL and host reputation decision engine")
    parser.add_argument(
        "--config",
        type=str,
        default=DEFAULT_CONFIG,
        help="Path to sources/settings configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {DEFAULT_LOG_LEVEL})",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    check_url = subparsers.add_parser("check-url", help="Decide whether a URL is safe")
    check_url.add_argument("url")
    check_host = subparsers.add_parser("check-host", help="Host-only check (no remote lookups)")
    check_host.add_argument("host")
    for sub in (check_url, check_host):
        sub.add_argument("--correlation-id", default=None, help="Id carried into the decision log")

    subparsers.add_parser("refresh", help="Refresh all feeds and print per-source counts")
    health = subparsers.add_parser("health", help="Print engine health")

    for sub in (check_url, check_host, health):
        sub.add_argument(
            "--skip-feeds",
            action="store_true",
            help="Do not load feeds before answering",
        )

    extract = subparsers.add_parser(
        "extract-hosts", help="Extract a sorted host list from a raw feed file"
    )
    extract.add_argument("input", help="Raw feed file (CSV or text with URLs)")
    extract.add_argument("--output", "-o", default=None, help="Output file (default: stdout)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    global logger
    logger = setup_logging(
        level=args.log_level,
        service_name="reputation",
        json_format=args.json_logs,
    )

    if args.command == "extract-hosts":
        return run_extract_hosts(args.input, args.output)

    try:
        return asyncio.run(run_engine_command(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except ReputationException as e:
        logger.error("Command failed", command=args.command, error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
