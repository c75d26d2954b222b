"""Data loading and preparation utilities."""

from asmodee.data.loaders import load_counts_csv
from asmodee.data.preparation import (
    DEFAULT_CALENDAR,
    WEEKDAY_LEVELS,
    WeekdayCalendar,
    check_series_length,
    prepare_series,
    split_train_test,
    validate_series,
    weekday_category,
)

__all__ = [
    "DEFAULT_CALENDAR",
    "WEEKDAY_LEVELS",
    "WeekdayCalendar",
    "check_series_length",
    "load_counts_csv",
    "prepare_series",
    "split_train_test",
    "validate_series",
    "weekday_category",
]
