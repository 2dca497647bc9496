"""Command line entry point: load suites from a path and run them."""

import argparse
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .core.callbacks import ConsoleReporter, FileResultLogger
from .core.loader import load_suites
from .core.reporter import Reporter
from .core.runner import TestRunner

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NO_SUITES = 2


@dataclass
class RunConfig:
    """Settings of one command line run."""

    path: Path
    name: str = "yunit"
    filters: List[str] = field(default_factory=list)
    progress: str = "none"
    results_dir: Optional[Path] = None
    fail_fast: bool = False
    log_level: str = "WARNING"


def split_filters(values: Optional[Sequence[str]]) -> List[str]:
    """Flatten repeated and comma separated filter values."""
    return [f.strip() for value in values or [] for f in value.split(",") if f.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yunit",
        description="Run yunit test suites with resources and benchmarks.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run every suite under tests/perf
    yunit tests/perf

    # Only tests whose "<Suite>.<test>" matches one of the filters
    yunit tests/perf -f Cache -f "Sort.*large"
    yunit tests/perf --filter Cache,Sort

    # Write benchmark results as JSONL
    yunit tests/perf --results-dir results
""",
    )

    parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=Path("."),
        help="Directory searched recursively for suites, or a single file (default: .)",
    )

    parser.add_argument(
        "--filter",
        "-f",
        action="append",
        default=None,
        help="Regular expression matched against '<Suite>.<test>'. Repeatable, comma separated.",
    )

    parser.add_argument(
        "--name",
        type=str,
        default="yunit",
        help="Name of the run shown in the console header (default: yunit)",
    )

    parser.add_argument(
        "--progress",
        choices=["none", "tqdm", "rich"],
        default="none",
        help="Show a progress bar (default: none)",
    )

    parser.add_argument(
        "--results-dir",
        type=Path,
        default=None,
        help="Write benchmark results as JSONL into this directory",
    )

    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop after the first test that does not pass",
    )

    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level of the yunit loggers (default: WARNING)",
    )

    return parser


def parse_config(argv: Optional[Sequence[str]] = None) -> RunConfig:
    """Parse command line arguments.

    Exits with status 2 and a usage message if a filter is not a valid regular expression.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    filters = split_filters(args.filter)
    for pattern in filters:
        try:
            re.compile(pattern)
        except re.error as e:
            parser.error(f"invalid --filter {pattern!r}: {e}")

    return RunConfig(
        path=args.path,
        name=args.name,
        filters=filters,
        progress=args.progress,
        results_dir=args.results_dir,
        fail_fast=args.fail_fast,
        log_level=args.log_level,
    )


def run(config: RunConfig) -> int:
    """Run the suites selected by `config`. Returns the process exit code."""
    logging.basicConfig(level=getattr(logging, config.log_level), format="%(levelname)s %(name)s: %(message)s")

    suites = load_suites(config.path, config.filters)
    if not suites:
        logging.getLogger(__name__).error("No test suites found in %s", config.path)
        return EXIT_NO_SUITES

    reporters: List[Reporter] = [ConsoleReporter(name=config.name, path=str(config.path), filters=config.filters)]
    if config.results_dir is not None:
        reporters.append(FileResultLogger(output_dir=config.results_dir))

    runner = TestRunner(
        reporters=reporters,
        progress_bar=False if config.progress == "none" else config.progress,
        fail_fast=config.fail_fast,
    )
    results = runner.run(suites, config.filters)

    if any(r.failed for r in results.values()):
        return EXIT_FAILED
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    return run(parse_config(argv))


if __name__ == "__main__":
    raise SystemExit(main())
