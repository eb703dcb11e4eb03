"""Command line entry point for checking a provider configuration."""

import argparse
import asyncio
import json
import logging
import sys

from .config import get_settings, setup_logging
from .consts import PACKAGE_NAME, PACKAGE_VERSION
from .exceptions import GCEProviderError
from .provider import create_cloud_provider

logger = logging.getLogger("gce-cloud-provider.main")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser, defaulting from Settings."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog=PACKAGE_NAME,
        description="Build a GCE cloud provider and report its project and zone.",
    )
    parser.add_argument(
        "--cloud-config",
        default=settings.cloud_config,
        help="Path to the cloud provider config file",
    )
    parser.add_argument(
        "--vendor-version",
        default=PACKAGE_VERSION,
        help="Driver version reported in the user agent",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=120.0,
        help="Overall deadline in seconds",
    )
    return parser


async def _run(args: argparse.Namespace) -> dict:
    async with asyncio.timeout(args.timeout):
        provider = await create_cloud_provider(args.vendor_version, args.cloud_config)
    return {
        "project_id": provider.project,
        "zone": provider.zone,
        "user_agent": provider.user_agent,
    }


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    logger.debug(f"Starting with {args}")

    try:
        result = asyncio.run(_run(args))
    except GCEProviderError as e:
        print(f"error: {e.message}", file=sys.stderr)
        for detail in e.errors:
            print(f"  - {detail}", file=sys.stderr)
        for suggestion in e.suggestions:
            print(f"  hint: {suggestion}", file=sys.stderr)
        return 1
    except TimeoutError:
        print(f"error: provider not ready after {args.timeout}s", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
