"""Command-line entry point for jsbind."""

from __future__ import annotations

import argparse
import sys

from . import __version__
from .cli import CLIHandler
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsbind",
        description="Generate Python bindings to JavaScript objects from a typed signature.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  jsbind window.mli                     # print bindings to stdout
  jsbind window.mli -o window.py        # write bindings to a file
  jsbind - --fragment < snippet.mli     # bindings only, no module header
""",
    )

    parser.add_argument("signature", help="Signature file to bind ('-' reads stdin)")
    parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    parser.add_argument("--config", help="Configuration file path (JSON)")
    parser.add_argument(
        "--fragment",
        action="store_true",
        help="Emit the bindings only, without imports or module docstring",
    )
    parser.add_argument(
        "--runtime-module",
        help="Package generated code imports ojs from (default: jsbind.runtime)",
    )
    parser.add_argument(
        "--no-comments", action="store_true", help="Omit docstrings and comments"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show generation metadata"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: $JSBIND_LOG_LEVEL or WARNING)",
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)
    logger.debug("Arguments: %s", args)

    return CLIHandler().run(args)


if __name__ == "__main__":
    sys.exit(main())
