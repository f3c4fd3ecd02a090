"""
Command line probe for the Bright Data Unlocker.

Usage:
    unlocker-probe [--unlocker-api | --unlocker-native] [--full] [url]
    unlocker-probe --serve

Examples:
    # Unlocker API (REST, no browser)
    unlocker-probe --unlocker-api https://forum.opencart.com/feed/forum/2

    # Native proxy-based access with the Unlocker zone
    unlocker-probe --unlocker-native https://forum.opencart.com/feed/forum/2
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from unlocker_probe.core.config import settings
from unlocker_probe.core.logs import configure_logging
from unlocker_probe.fetch.base import MODE_API, MODE_NATIVE
from unlocker_probe.services.diagnose import run_diagnostics


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="unlocker-probe",
        description="Test the Bright Data Unlocker through its REST API or its native proxy.",
    )
    parser.add_argument("url", nargs="?", default=None, help=f"Target URL (default: {settings.DEFAULT_TARGET_URL})")

    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--unlocker-api", "--unlocker",
        dest="mode", action="store_const", const=MODE_API,
        help="Use the Bright Data Unlocker REST API (default)",
    )
    group.add_argument(
        "--unlocker-native", "--native",
        dest="mode", action="store_const", const=MODE_NATIVE,
        help="Use the native proxy with the Unlocker zone",
    )
    group.add_argument("--serve", action="store_true", help="Run the HTTP test API instead of a single probe")

    parser.add_argument("--full", action="store_true", help="Print the whole content after the preview")
    parser.set_defaults(mode=MODE_API)
    return parser


def print_report(result, full: bool = False) -> None:
    if result.error:
        if result.status is not None:
            print(f"Status: {result.status}")
        if result.error_response:
            print(f"Response preview: {result.error_response}")
        return

    print("Content preview (first 500 chars):")
    print(result.content_preview)
    if full and result.content is not None:
        print("")
        print("Full content:")
        print(result.content)
        if result.content_truncated:
            print(result.message)


def serve() -> None:
    import uvicorn

    uvicorn.run("unlocker_probe.main:app", host=settings.HOST, port=settings.PORT)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.serve:
        serve()
        return 0

    # The diagnostic report is made of INFO lines; LOG_LEVEL only tunes the server
    configure_logging("INFO", fmt="%(message)s")
    url = args.url or settings.DEFAULT_TARGET_URL
    result = asyncio.run(run_diagnostics(url, args.mode, full=args.full, config=settings))
    print_report(result, full=args.full)
    return 0


if __name__ == "__main__":
    sys.exit(main())
