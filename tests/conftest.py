"""Shared fixtures for ASMODEE tests."""

import numpy as np
import pandas as pd
import pytest

from asmodee.data.preparation import prepare_series


def make_series(counts, start: str = "2025-01-06") -> pd.DataFrame:
    """Build a prepared daily series (date, count, day, weekday) from counts."""
    raw = pd.DataFrame(
        {
            "date": pd.date_range(start, periods=len(counts), freq="D"),
            "count": list(counts),
        }
    )
    return prepare_series(raw)


@pytest.fixture
def constant_series() -> pd.DataFrame:
    """30 days of Poisson(50) counts with no change point."""
    rng = np.random.default_rng(42)
    return make_series(rng.poisson(50, 30))


@pytest.fixture
def breaking_series() -> pd.DataFrame:
    """25 stable days around 100, then 7 days of exponential growth (rate 0.2)."""
    rng = np.random.default_rng(1)
    stable = rng.poisson(100, 25)
    growth = rng.poisson(100 * np.exp(0.2 * np.arange(1, 8)))
    return make_series(np.concatenate([stable, growth]))


@pytest.fixture
def overdispersed_series() -> pd.DataFrame:
    """Three weeks of counts whose variance far exceeds their mean."""
    counts = [10, 40, 5, 60, 20, 80, 15, 50, 12, 70, 25, 45, 8, 65, 30, 55, 18, 75, 22, 35, 9]
    return make_series(counts)
