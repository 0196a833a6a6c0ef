from __future__ import annotations
import argparse
import sys

from .commands import (
    convert as cmd_convert,
    scan as cmd_scan,
)
from ..core.logger import configure_logging

USAGE_BANNER = """\
Usage: oklchify convert <file> [file2 ...]
Converts hex colors to oklch() with @supports fallback

Supported formats:
  - CSS files (.css)
  - TypeScript/JavaScript (.ts, .tsx, .js, .jsx)
    Looks for objects with hex color string values"""


def entrypoint():
    main()


def print_usage_banner() -> None:
    print(USAGE_BANNER)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oklchify",
        description="Add oklch() equivalents of hex colours behind @supports fallbacks",
    )
    sub = parser.add_subparsers(dest="command")

    c = sub.add_parser("convert", help="Rewrite files in place with @supports oklch() blocks")
    c.add_argument("paths", nargs="*", help="Files or directories to convert")
    c.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing any files",
    )
    c.add_argument(
        "--backup",
        action="store_true",
        help="Write <file>.bak before overwriting a file",
    )
    c.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON config file (or set OKLCHIFY_CONFIG)",
    )
    c.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    s = sub.add_parser("scan", help="List hex colours and their oklch() equivalents")
    s.add_argument("paths", nargs="*", help="Files or directories to scan")
    s.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON config file (or set OKLCHIFY_CONFIG)",
    )
    s.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None or not args.paths:
        print_usage_banner()
        sys.exit(1)

    configure_logging(verbose=args.verbose)

    if args.command == "convert":
        code = cmd_convert.run(args)
    elif args.command == "scan":
        code = cmd_scan.run(args)
    else:
        code = 2

    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
