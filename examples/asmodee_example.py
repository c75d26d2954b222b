"""Example: Detecting a recent increase in daily case counts

This example demonstrates how to run ASMODEE on an in-memory series. It
builds a synthetic series that is stable for four weeks and then grows
exponentially for a week, and shows how the window search isolates the
recent days.

Prerequisites:
- Optionally, a CSV of daily counts with 'date' and 'count' columns
"""

from pathlib import Path

import numpy as np
import pandas as pd

from asmodee import AsmodeeConfig, prepare_series, run_asmodee_by_group, search_window_size
from asmodee.formatters import format_grouped_for_console, format_result_for_console

# Example 1: Single series
data_file = Path("data/daily_counts.csv")

print("=" * 80)
print("Example 1: Window search on a single series")
print("=" * 80)

if data_file.exists():
    print(f"\nLoading data from: {data_file}")
    raw = pd.read_csv(data_file)
else:
    print(f"\nData file not found: {data_file}")
    print("Using synthetic data for demonstration instead...")
    rng = np.random.default_rng(2025)
    counts = np.concatenate(
        [rng.poisson(80, 28), rng.poisson(80 * np.exp(0.25 * np.arange(1, 8)))]
    )
    raw = pd.DataFrame(
        {"date": pd.date_range("2025-01-06", periods=len(counts), freq="D"), "count": counts}
    )

series = prepare_series(raw)
print(f"Prepared {len(series)} days from {series['date'].min():%Y-%m-%d}")

config = AsmodeeConfig(
    models=("constant_poisson", "linear_poisson", "linear_negbin", "weekday_negbin"),
    method="aic",
    max_k=7,
)
search = search_window_size(series, config)

print()
print(format_result_for_console(search.best))
print("\nWindow ranking:")
print(search.ranking.to_string(index=False))

# Example 2: Several regions at once
print("\n" + "=" * 80)
print("Example 2: Per-region run")
print("=" * 80)

regions = pd.concat(
    [
        raw.assign(region="north"),
        raw.assign(region="south", count=raw["count"].iloc[::-1].to_numpy()),
    ],
    ignore_index=True,
)
grouped = run_asmodee_by_group(
    prepare_series(regions, group_column="region"),
    "region",
    AsmodeeConfig(method="aic", n_jobs=2),
)

print(format_grouped_for_console(grouped))
print("\nSummary:")
print(grouped.summary().to_string(index=False))
