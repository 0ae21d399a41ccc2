"""Command line shell.

Exit codes: ``0`` when no finding has error severity, ``1`` when at least
one does, ``2`` when the run itself fails (bad arguments, unreadable or
malformed config, no source files, unknown rule id).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .analysis.registry import build_default_registry
from .analysis.runner import Analyzer
from .config import load_config
from .core.exceptions import GuidelintError
from .logging_config import configure_logging
from .reporting import FORMATS, render

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_FAILURE = 2


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guidelint",
        description="Check JavaScript/TypeScript sources against coding guidelines",
    )
    parser.add_argument("roots", nargs="*", metavar="ROOT", help="Files or directories to analyze")
    parser.add_argument("--config", default=None, help="Path to a .toml or .json config file")
    parser.add_argument("--format", choices=FORMATS, default="text", dest="fmt")
    parser.add_argument("--workers", type=_positive_int, default=4, help="Files processed concurrently")
    parser.add_argument(
        "--only",
        nargs="+",
        action="extend",
        metavar="RULE_ID",
        default=None,
        help="Run only these rules",
    )
    parser.add_argument("--list-rules", action="store_true", help="List the built-in rules and exit")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-file", default=None, help="Write JSON run events to this file")
    parser.add_argument("--log-json", action="store_true", help="Log to stderr as JSON")
    return parser


def _fail(message: str) -> int:
    print(f"guidelint: error: {message}", file=sys.stderr)
    return EXIT_FAILURE


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_file, json_format=args.log_json)

    try:
        registry = build_default_registry()

        if args.list_rules:
            for rule in registry:
                print(f"{rule.id:<26} {rule.default_severity.value:<8} {rule.description}")
            return EXIT_OK

        if not args.roots:
            return _fail("no input paths given")

        config = load_config(args.config, registry.ids())
        analyzer = Analyzer(
            registry=registry,
            config=config,
            only=args.only,
            max_workers=args.workers,
        )
        result = asyncio.run(analyzer.run(args.roots))
    except GuidelintError as exc:
        logger.debug("Run failed", exc_info=True)
        return _fail(str(exc))
    except KeyboardInterrupt:
        return _fail("interrupted")

    sys.stdout.write(render(result, args.fmt))
    return EXIT_FINDINGS if result.has_errors else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
