"""Data preparation utilities for trend-change detection.

This module turns a tidy table of daily counts into the series layout the
models expect: an integer ``day`` index, a non-negative integer ``count`` and
an optional ``weekday`` category. It also holds the validation shared by the
model candidates and the ordered train/test split used by the detector.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from asmodee.exceptions import ConfigError, DataValidationError, InsufficientData

logger = logging.getLogger(__name__)

# Weekday categories, in the order used for the categorical dtype
WEEKDAY_LEVELS = ["rest_of_week", "monday", "weekend"]


@dataclass(frozen=True)
class WeekdayCalendar:
    """Calendar used to derive the 3-level weekday category.

    Days are numbered as in ``date.weekday()`` (Monday=0 ... Sunday=6), so the
    mapping never depends on the system locale.

    Attributes:
        monday: Day treated as the first working day after the weekend.
        weekend: Days grouped together as the weekend.
    """

    monday: int = 0
    weekend: frozenset[int] = field(default_factory=lambda: frozenset({5, 6}))

    def __post_init__(self) -> None:
        days = set(self.weekend) | {self.monday}
        if any(d not in range(7) for d in days):
            raise ConfigError(f"Weekday numbers must be in 0..6, got {sorted(days)}")
        if self.monday in self.weekend:
            raise ConfigError(f"Day {self.monday} cannot be both 'monday' and 'weekend'")
        # Accept any iterable for weekend but store a frozenset
        object.__setattr__(self, "weekend", frozenset(self.weekend))


DEFAULT_CALENDAR = WeekdayCalendar()


def weekday_category(d: date | datetime | pd.Timestamp, calendar: Optional[WeekdayCalendar] = None) -> str:
    """Return the weekday category of a date.

    Args:
        d: Date to categorize.
        calendar: Calendar defining 'monday' and 'weekend'. Defaults to
            Monday / Saturday+Sunday.

    Returns:
        One of "monday", "weekend" or "rest_of_week".

    Examples:
        >>> weekday_category(date(2025, 1, 6))
        'monday'
        >>> weekday_category(date(2025, 1, 11))
        'weekend'
    """
    calendar = calendar or DEFAULT_CALENDAR
    weekday = d.weekday()
    if weekday == calendar.monday:
        return "monday"
    if weekday in calendar.weekend:
        return "weekend"
    return "rest_of_week"


def validate_series(data: object, required_columns: Iterable[str]) -> None:
    """Check that ``data`` is a non-empty DataFrame with the required columns.

    Raises:
        DataValidationError: If data is not a DataFrame, has no rows, lacks a
            required column, or has a non-numeric count column.
    """
    if not isinstance(data, pd.DataFrame):
        raise DataValidationError(f"Expected a pandas DataFrame, got {type(data).__name__}")
    if data.empty:
        raise DataValidationError("Input series has no rows")

    required = list(required_columns)
    missing_columns = [col for col in required if col not in data.columns]
    if missing_columns:
        raise DataValidationError(
            f"Missing required columns: {missing_columns}. Required: {required}"
        )

    if "count" in data.columns and not pd.api.types.is_numeric_dtype(data["count"]):
        raise DataValidationError(f"Column 'count' must be numeric, got {data['count'].dtype}")


def _check_counts(counts: pd.Series) -> None:
    if counts.isna().any():
        raise DataValidationError(f"Column 'count' has {int(counts.isna().sum())} missing values")
    if (counts < 0).any():
        raise DataValidationError(f"Column 'count' has {int((counts < 0).sum())} negative values")
    if not np.allclose(counts, np.round(counts)):
        raise DataValidationError("Column 'count' must hold integer counts")


def prepare_series(
    df: pd.DataFrame,
    date_column: str = "date",
    count_column: str = "count",
    group_column: Optional[str] = None,
    calendar: Optional[WeekdayCalendar] = None,
    add_weekday: bool = True,
) -> pd.DataFrame:
    """Build a daily count series from a tidy table.

    The input is never modified. Days are numbered from the first date of
    each group (or of the whole table when no group column is given). Gaps
    in the dates are kept as gaps: no day is interpolated.

    Args:
        df: Table with at least a date column and a count column.
        date_column: Name of the date column (anything ``pd.to_datetime`` accepts).
        count_column: Name of the count column; renamed to ``count``.
        group_column: Optional group key (e.g. region). Days are computed per group.
        calendar: Calendar for the weekday category.
        add_weekday: Whether to add the ``weekday`` categorical column.

    Returns:
        DataFrame with columns ``date``, ``day``, ``count``, ``weekday`` (if
        requested), the group column (if given) and any other input columns,
        sorted by group and day.

    Raises:
        DataValidationError: If columns are missing, dates or group keys are
            missing or unparseable, counts are invalid, or a day appears twice
            within a group.
    """
    required = [date_column, count_column] + ([group_column] if group_column else [])
    validate_series(df, required)

    out = df.copy()
    try:
        dates = pd.to_datetime(out[date_column])
    except (ValueError, TypeError) as e:
        raise DataValidationError(f"Column '{date_column}' has unparseable dates: {e}") from e
    if dates.isna().any():
        raise DataValidationError(
            f"Column '{date_column}' has {int(dates.isna().sum())} missing dates"
        )
    out[date_column] = dates.dt.normalize()
    if group_column and out[group_column].isna().any():
        raise DataValidationError(
            f"Column '{group_column}' has {int(out[group_column].isna().sum())} missing group keys"
        )
    if count_column != "count":
        if "count" in out.columns:
            raise DataValidationError(
                f"Cannot rename '{count_column}' to 'count': column already exists"
            )
        out = out.rename(columns={count_column: "count"})
    if date_column != "date":
        out = out.rename(columns={date_column: "date"})

    if not pd.api.types.is_numeric_dtype(out["count"]):
        raise DataValidationError(f"Column '{count_column}' must be numeric")
    _check_counts(out["count"])
    out["count"] = out["count"].round().astype("int64")

    keys = [group_column, "date"] if group_column else ["date"]
    duplicated = out.duplicated(subset=keys, keep=False)
    if duplicated.any():
        raise DataValidationError(
            f"Found {int(duplicated.sum())} rows sharing the same {keys}; "
            "expected one row per day per group"
        )

    if group_column:
        first_date = out.groupby(group_column)["date"].transform("min")
    else:
        first_date = out["date"].min()
    out["day"] = (out["date"] - first_date).dt.days.astype("int64")

    if add_weekday:
        calendar = calendar or DEFAULT_CALENDAR
        out["weekday"] = pd.Categorical(
            [weekday_category(d, calendar) for d in out["date"]],
            categories=WEEKDAY_LEVELS,
        )

    sort_keys = [group_column, "day"] if group_column else ["day"]
    out = out.sort_values(sort_keys).reset_index(drop=True)

    logger.debug(f"Prepared series with {len(out)} rows")
    return out


def split_train_test(df: pd.DataFrame, k: int) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Split a series into the fitting window and the last ``k`` rows.

    Rows are ordered by ``day`` first, so the held-out rows are always the
    most recent ones.

    Args:
        df: Series with a ``day`` column.
        k: Number of most recent rows to hold out.

    Returns:
        Tuple of (train, test) DataFrames.

    Raises:
        InsufficientData: If k < 1 or the split would leave no training rows.
    """
    validate_series(df, ["day"])
    n = len(df)
    if k < 1:
        raise InsufficientData(f"Window size k must be at least 1, got {k}")
    if k >= n:
        raise InsufficientData(
            f"Window size k={k} leaves no training rows in a series of {n} rows"
        )

    ordered = df.sort_values("day", kind="stable")
    return ordered.iloc[: n - k], ordered.iloc[n - k :]


def check_series_length(df: pd.DataFrame, max_k: int) -> None:
    """Raise InsufficientData when a series is shorter than ``max_k + 2`` rows."""
    if len(df) < max_k + 2:
        raise InsufficientData(
            f"Series has {len(df)} rows; at least max_k + 2 = {max_k + 2} are needed"
        )

