"""Tests for per-group runs and console formatting."""

import numpy as np
import pandas as pd
import pytest

from asmodee import AsmodeeConfig, DataValidationError, run_asmodee_by_group
from asmodee.data.preparation import prepare_series
from asmodee.formatters import format_grouped_for_console, format_result_for_console
from asmodee.types import GroupedAsmodeeResult


@pytest.fixture
def regional_counts() -> pd.DataFrame:
    """A 30-day 'north' series and a 'tiny' series of only 4 days."""
    rng = np.random.default_rng(3)
    north = pd.DataFrame(
        {
            "date": pd.date_range("2025-03-03", periods=30, freq="D"),
            "region": "north",
            "count": rng.poisson(40, 30),
        }
    )
    tiny = pd.DataFrame(
        {
            "date": pd.date_range("2025-03-03", periods=4, freq="D"),
            "region": "tiny",
            "count": [3, 4, 2, 5],
        }
    )
    raw = pd.concat([tiny, north], ignore_index=True)
    return prepare_series(raw, group_column="region")


class TestRunByGroup:
    """Tests for run_asmodee_by_group."""

    config = AsmodeeConfig(method="aic", max_k=3)

    def test_failing_group_does_not_abort_others(self, regional_counts: pd.DataFrame) -> None:
        """Test that a too-short group is recorded as a failure."""
        grouped = run_asmodee_by_group(regional_counts, "region", self.config)

        assert list(grouped.results) == ["north"]
        assert list(grouped.failures) == ["tiny"]
        assert "max_k" in grouped.failures["tiny"]
        assert grouped.get("north").k in (1, 2, 3)
        assert grouped.get("tiny") is None

    def test_metadata(self, regional_counts: pd.DataFrame) -> None:
        """Test the batch metadata."""
        grouped = run_asmodee_by_group(regional_counts, "region", self.config)

        assert grouped.metadata["groups"] == ["north", "tiny"]
        assert grouped.metadata["successful_groups"] == 1
        assert grouped.metadata["failed_groups"] == 1
        assert grouped.metadata["method"] == "aic"
        assert grouped.metadata["models"] == [
            "constant_poisson",
            "linear_poisson",
            "linear_negbin",
        ]

    def test_summary(self, regional_counts: pd.DataFrame) -> None:
        """Test the one-row-per-group summary table."""
        grouped = run_asmodee_by_group(regional_counts, "region", self.config)

        summary = grouped.summary()

        assert summary["group"].tolist() == ["north"]
        row = summary.iloc[0]
        assert row["n_increase"] + row["n_decrease"] == row["n_outliers"]

    def test_threads_match_sequential(self, regional_counts: pd.DataFrame) -> None:
        """Test that running groups on threads gives the same summary."""
        sequential = run_asmodee_by_group(regional_counts, "region", self.config)
        parallel = run_asmodee_by_group(
            regional_counts, "region", AsmodeeConfig(method="aic", max_k=3, n_jobs=2)
        )

        pd.testing.assert_frame_equal(sequential.summary(), parallel.summary())
        assert parallel.failures == sequential.failures

    def test_missing_group_column(self, regional_counts: pd.DataFrame) -> None:
        """Test that the group column must exist."""
        with pytest.raises(DataValidationError, match="district"):
            run_asmodee_by_group(regional_counts, "district", self.config)


def test_empty_grouped_summary() -> None:
    """Test the summary and console text of an empty batch."""
    grouped = GroupedAsmodeeResult()

    assert grouped.summary().empty
    assert format_grouped_for_console(grouped) == "No groups processed."


def test_console_formatting(regional_counts: pd.DataFrame) -> None:
    """Test that the console text names the model, window and failures."""
    grouped = run_asmodee_by_group(regional_counts, "region", AsmodeeConfig(method="aic", max_k=3))
    result = grouped.results["north"]

    single = format_result_for_console(result, title="north")
    text = format_grouped_for_console(grouped)

    assert single.startswith("north\n")
    assert f"Model: {result.best_model_name}" in single
    assert f"last {result.k} days" in single
    assert "Failed groups:" in text
    assert "tiny:" in text
