"""Data loading utilities for the ASMODEE command line."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd


def load_counts_csv(
    csv_path: Path,
    date_column: str = "date",
    group_column: Optional[str] = None,
) -> pd.DataFrame:
    """Load daily counts from a CSV file.

    Args:
        csv_path: Path to a CSV with one row per day (and per group).
        date_column: Name of the date column, parsed to datetime.
        group_column: Optional group column used for sorting.

    Returns:
        DataFrame with counts data, sorted by group (if any) and date

    Raises:
        FileNotFoundError: If the CSV file does not exist
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"Counts data not found at {csv_path}")

    df = pd.read_csv(csv_path)
    if date_column in df.columns:
        df[date_column] = pd.to_datetime(df[date_column])
        sort_keys = [group_column, date_column] if group_column in df.columns else [date_column]
        df = df.sort_values(sort_keys).reset_index(drop=True)

    return df
