#!/usr/bin/env python3
"""
join-diagnostics - diagnose a join between two data files before running it.

Usage:
    join-diagnostics orders.csv customers.parquet --by customer_id
    join-diagnostics a.csv b.csv --by id=customer_id --by date --format json

Exit codes:
    0  no warnings or errors detected
    1  at least one warning or error issue
    2  invalid input (missing file, unknown column, bad option)
"""

import argparse
import logging
import sys
from pathlib import Path

import polars as pl

from join_diagnostics.cli.logging_config import configure_logging
from join_diagnostics.cli.renderers import ReportFormat, render_report
from join_diagnostics.core.analyzer import AnalysisOptions, analyze
from join_diagnostics.core.config_loader import load_analysis_config, load_logging_config
from join_diagnostics.core.errors import InvalidInputError, JoinDiagnosticsError
from join_diagnostics.storage.report_logger import ReportLogger

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_INPUT_ERROR = 2


def read_table(path: Path) -> pl.DataFrame:
    """Read a CSV or Parquet file with Polars."""
    if not path.exists():
        raise InvalidInputError(f"File not found: {path}")
    suffix = path.suffix.lower()
    if suffix in (".csv", ".txt"):
        return pl.read_csv(path)
    if suffix in (".parquet", ".pq"):
        return pl.read_parquet(path)
    raise InvalidInputError(f"Unsupported file type '{suffix}' for {path} (expected .csv or .parquet)")


def parse_by(values: list[str]) -> list[str | tuple[str, str]]:
    """Turn repeated --by arguments into a key spec ("x=y" for differing names)."""
    spec: list[str | tuple[str, str]] = []
    for value in values:
        if "=" in value:
            x_col, _, y_col = value.partition("=")
            if not x_col or not y_col:
                raise InvalidInputError(f"Invalid --by value: {value!r} (expected name or x_name=y_name)")
            spec.append((x_col, y_col))
        else:
            spec.append(value)
    return spec


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Diagnose join key problems between two tables")
    parser.add_argument("left", type=Path, help="Left table (CSV or Parquet)")
    parser.add_argument("right", type=Path, help="Right table (CSV or Parquet)")
    parser.add_argument(
        "--by",
        action="append",
        required=True,
        help="Key column; repeat for composite keys, use x_name=y_name when names differ",
    )
    parser.add_argument(
        "--format",
        choices=[f.value for f in ReportFormat],
        default=ReportFormat.TEXT.value,
        help="Output format",
    )
    parser.add_argument("--sample", type=int, help="Analyze at most this many rows per table")
    parser.add_argument("--seed", type=int, help="Random seed for --sample")
    parser.add_argument("--threshold", type=float, help="Cartesian expansion factor threshold")
    parser.add_argument("--log-file", type=Path, help="Append the report to this audit log")
    parser.add_argument(
        "--log-format", choices=["text", "json", "jsonl"], default="jsonl", help="Audit log format"
    )
    parser.add_argument("--config", type=Path, help="Analysis config YAML (default: config/diagnostics.yaml)")
    parser.add_argument("--log-level", help="Root log level (default from config/logging.yaml)")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging_config = load_logging_config()
    if args.log_level:
        logging_config["root_level"] = args.log_level.upper()
    configure_logging(config=logging_config)

    try:
        config = load_analysis_config(args.config)
        if args.sample is not None:
            config["sample_size"] = args.sample
        if args.seed is not None:
            config["sample_seed"] = args.seed
        if args.threshold is not None:
            config["cartesian_threshold"] = args.threshold
        options = AnalysisOptions.from_dict(config)

        left = read_table(args.left)
        right = read_table(args.right)
        report = analyze(left, right, parse_by(args.by), options)
    except (JoinDiagnosticsError, ValueError, OSError, pl.exceptions.PolarsError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    logger.info(f"Analyzed {args.left.name} x {args.right.name}: {len(report.issues)} issue(s)")
    print(render_report(report, args.format))

    if args.log_file:
        try:
            report_logger = ReportLogger(args.log_file, fmt=args.log_format)
            report_logger.log_report(report, label=f"{args.left.name} x {args.right.name}")
        except OSError as e:
            print(f"Error: cannot write log file {args.log_file}: {e}", file=sys.stderr)
            return EXIT_INPUT_ERROR

    return EXIT_ISSUES if report.has_problems else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
