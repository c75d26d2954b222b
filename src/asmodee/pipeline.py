"""CLI wrapper for the ASMODEE pipeline.

This module provides a command-line interface for running trend-change
detection on a CSV of daily counts. All core logic is in asmodee.api.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from asmodee.api import AsmodeeConfig, run_asmodee_by_group, search_window_size
from asmodee.config import DEFAULT_ALPHA, DEFAULT_MAX_K, DEFAULT_METHOD, DEFAULT_MODEL_NAMES
from asmodee.data.loaders import load_counts_csv
from asmodee.data.preparation import prepare_series
from asmodee.exceptions import AsmodeeError
from asmodee.formatters.console import format_grouped_for_console, format_result_for_console
from asmodee.scoring import ScoringMethod


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``asmodee`` command."""
    parser = argparse.ArgumentParser(
        description="Detect recent trend changes in daily counts (ASMODEE)."
    )
    parser.add_argument("--file", type=str, required=True, help="Path to a CSV of daily counts")
    parser.add_argument("--date-column", type=str, default="date", help="Date column (default: date)")
    parser.add_argument(
        "--count-column", type=str, default="count", help="Count column (default: count)"
    )
    parser.add_argument(
        "--group-column",
        type=str,
        default=None,
        help="Optional group column (e.g. region); each group is analysed separately",
    )
    parser.add_argument(
        "--models",
        type=str,
        default=",".join(DEFAULT_MODEL_NAMES),
        help=f"Comma-separated candidate models (default: {','.join(DEFAULT_MODEL_NAMES)})",
    )
    parser.add_argument(
        "--method",
        type=str,
        default=DEFAULT_METHOD,
        choices=[m.value for m in ScoringMethod],
        help=f"Model scoring method (default: {DEFAULT_METHOD})",
    )
    parser.add_argument(
        "--max-k",
        type=int,
        default=DEFAULT_MAX_K,
        help=f"Largest number of recent days held out (default: {DEFAULT_MAX_K})",
    )
    parser.add_argument(
        "--fixed-k", type=int, default=None, help="Evaluate only this window size"
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=DEFAULT_ALPHA,
        help=f"Type-1 error rate of the predictive intervals (default: {DEFAULT_ALPHA})",
    )
    parser.add_argument("--jobs", type=int, default=1, help="Worker threads (default: 1)")
    parser.add_argument(
        "--output", type=str, default=None, help="Write the diagnostic rows to this CSV"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Parses command-line arguments, loads and prepares the data, runs
    ASMODEE (per group if requested) and prints a summary.

    Returns:
        Exit code: 0 on success, 1 if no series could be analysed.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = AsmodeeConfig(
        models=[name.strip() for name in args.models.split(",") if name.strip()],
        method=args.method,
        max_k=args.max_k,
        alpha=args.alpha,
        fixed_k=args.fixed_k,
        n_jobs=args.jobs,
    )

    try:
        raw = load_counts_csv(Path(args.file), args.date_column, args.group_column)
        print(f"[OK] Loaded {len(raw)} rows from {args.file}")

        if args.group_column:
            series = prepare_series(
                raw, args.date_column, args.count_column, group_column=args.group_column
            )
            grouped = run_asmodee_by_group(series, args.group_column, config)
            print(format_grouped_for_console(grouped))
            frames = [
                result.diagnostics.assign(**{args.group_column: group})
                for group, result in grouped.results.items()
            ]
            succeeded = bool(grouped.results)
        else:
            series = prepare_series(raw, args.date_column, args.count_column)
            search = search_window_size(series, config)
            print(format_result_for_console(search.best))
            print("\nWindow ranking:")
            print(search.ranking.to_string(index=False))
            frames = [search.best.diagnostics]
            succeeded = True

    except (AsmodeeError, FileNotFoundError) as e:
        print(f"\n[ERROR] Pipeline failed: {e}")
        return 1

    if args.output and frames:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        pd.concat(frames, ignore_index=True).to_csv(output, index=False)
        print(f"\n[OK] Saved diagnostics to {output}")

    return 0 if succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
