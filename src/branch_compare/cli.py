"""
branch-compare command line.

Compare the binary packages of two branches and print a JSON report.

Usage:
    branch-compare [-t sisyphus] [-s p10] [-a x86_64] [-v] [-c config.yaml]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import load_settings
from .errors import BranchCompareError, OutputError, format_error_chain
from .orchestrator import compare_branches
from .reconcile import BranchComparison

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="branch-compare",
        description="Compare binary packages of two repository branches",
    )
    parser.add_argument("--target", "-t",
                        help="Target branch (default: sisyphus)")
    parser.add_argument("--secondary", "-s",
                        help="Secondary branch (default: p10)")
    parser.add_argument("--arch", "-a",
                        help="Only compare packages of this architecture")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase log verbosity (-v info, -vv debug)")
    parser.add_argument("--config", "-c", type=Path,
                        help="YAML settings file")
    parser.add_argument("--output", "-o", type=Path,
                        help="Write the report to a file instead of stdout")
    return parser


def setup_logging(verbosity: int) -> None:
    """Configure stderr logging for a -v count."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if verbosity >= 3 else logging.WARNING
    )


def write_report(
    result: BranchComparison,
    output: Optional[Path] = None,
    indent: Optional[int] = 2,
) -> None:
    """
    Write the JSON report to a file or stdout.

    Raises:
        OutputError: If serialization or writing fails
    """
    try:
        report = result.to_json(indent=indent)
    except (TypeError, ValueError) as exc:
        raise OutputError("cannot serialize report", operation="writing report") from exc

    try:
        if output is None:
            sys.stdout.write(report + "\n")
            sys.stdout.flush()
        else:
            output.parent.mkdir(parents=True, exist_ok=True)
            with open(output, "w") as f:
                f.write(report + "\n")
            logger.info(f"Report written to: {output}")
    except OSError as exc:
        raise OutputError(
            f"cannot write report to {output or 'stdout'}", operation="writing report"
        ) from exc


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
        target = args.target or settings.default_target
        secondary = args.secondary or settings.default_secondary

        result = asyncio.run(
            compare_branches(settings, target, secondary, arch=args.arch)
        )
        write_report(result, args.output, indent=settings.json_indent)

    except BranchCompareError as exc:
        print(f"error: {format_error_chain(exc)}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
