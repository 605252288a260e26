import asyncio
import argparse
import json
import logging
import sys
from core.engine import Engine, DEFAULT_MAX_CONCURRENCY
from core.exceptions import ConfigError, FetchError
from fetch.http_client import DEFAULT_HEADERS, DEFAULT_TIMEOUT
from models.finding import Finding
from rules.rules_loader import load_ruleset

GREEN = "\033[32m"
RESET = "\033[0m"


def format_finding(finding: Finding, color: bool = False) -> str:
    name = f"{GREEN}{finding.plugin}{RESET}" if color else finding.plugin
    return f"Plugin found! {name}: {finding.display_version}"


def _load_headers(path: str) -> dict:
    try:
        with open(path, 'r') as f:
            custom_headers = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Headers file not found: {path}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Invalid JSON in headers file: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading headers file: {e}")
    if not isinstance(custom_headers, dict):
        raise ConfigError("Headers file must contain a JSON object (dictionary)")
    return {str(k): str(v) for k, v in custom_headers.items()}


def main(argv=None):
    parser = argparse.ArgumentParser(description="Detect WordPress plugins and their versions from a page's markup")
    parser.add_argument("rules", help="Path to the YAML plugin rules file")
    parser.add_argument("url", help="Target URL (e.g., https://example.com)")
    parser.add_argument("--log-level", type=str, default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity level (default: WARNING)")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help=f"Timeout per HTTP request in seconds (default: {DEFAULT_TIMEOUT})")
    parser.add_argument("--concurrency", type=int, default=DEFAULT_MAX_CONCURRENCY, help=f"Plugins checked in parallel (default: {DEFAULT_MAX_CONCURRENCY})")
    parser.add_argument("--headers-file", type=str, help="Path to JSON file with HTTP headers to add or override (e.g., User-Agent, Cookie)")
    args = parser.parse_args(argv)

    # Configure logging; stdout is reserved for findings
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, args.log_level),
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    try:
        headers = dict(DEFAULT_HEADERS)
        if args.headers_file:
            headers.update(_load_headers(args.headers_file))
            logger.info(f"Using custom headers from {args.headers_file}")
        ruleset = load_ruleset(args.rules)
    except ConfigError as e:
        logger.error(e.message)
        return 1

    color = sys.stdout.isatty()

    def report(finding: Finding):
        print(format_finding(finding, color=color), flush=True)

    async def run():
        engine = Engine(ruleset, headers=headers, timeout=args.timeout, max_concurrency=args.concurrency)
        logger.info(f"Fetching {args.url}...")
        context = await engine.scan_url(args.url)
        logger.info(f"Successfully fetched {args.url}, status: {context.status_code}")
        return await engine.scan(context, on_finding=report)

    try:
        asyncio.run(run())
    except FetchError as e:
        logger.error(e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
