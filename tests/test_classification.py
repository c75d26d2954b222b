"""Tests for prediction-interval classification."""

import pandas as pd
import pytest

from asmodee.classification import classify
from asmodee.models import get_candidate
from asmodee.types import CLASSIFICATION_LEVELS

from conftest import make_series


@pytest.fixture
def flat_model():
    """Constant Poisson model fitted on 20 days of exactly 50 counts."""
    return get_candidate("constant_poisson").fit(make_series([50] * 20))


def test_classify_flags_increase_and_decrease(flat_model) -> None:
    """Test the increase / normal / decrease rule."""
    rows = make_series([50, 100, 10, 55])

    out = classify(flat_model, rows)

    assert out["classification"].astype(str).tolist() == ["normal", "increase", "decrease", "normal"]
    assert out["outlier"].tolist() == [False, True, True, False]
    assert (out["lower"] < 50).all() and (out["upper"] > 50).all()


def test_classification_is_total_and_exclusive(overdispersed_series: pd.DataFrame) -> None:
    """Test that every row gets exactly one label and outlier matches it."""
    fitted = get_candidate("linear_poisson").fit(overdispersed_series)

    out = classify(fitted, overdispersed_series)

    assert out["classification"].notna().all()
    assert set(out["classification"].astype(str)) <= set(CLASSIFICATION_LEVELS)
    assert (out["outlier"] == (out["classification"] != "normal")).all()
    assert out["classification"].cat.ordered
    assert list(out["classification"].cat.categories) == ["increase", "normal", "decrease"]


def test_classify_keeps_input_columns_and_rows(flat_model) -> None:
    """Test that classification adds columns without dropping or mutating rows."""
    rows = make_series([45, 60, 52])
    before = rows.copy()

    out = classify(flat_model, rows)

    pd.testing.assert_frame_equal(rows, before)
    assert out["count"].tolist() == [45, 60, 52]
    assert {"date", "day", "weekday", "lower", "upper", "outlier", "classification"} <= set(out.columns)


@pytest.mark.parametrize("name", ["constant_poisson", "constant_quasipoisson", "constant_negbin"])
def test_smaller_alpha_never_narrows_interval(name: str, overdispersed_series: pd.DataFrame) -> None:
    """Test that intervals nest: a smaller alpha gives a wider or equal interval."""
    fitted = get_candidate(name).fit(overdispersed_series)

    previous = None
    for alpha in [0.5, 0.2, 0.05, 0.01, 0.001]:
        interval = fitted.predict_interval(overdispersed_series, alpha)
        assert (interval["lower"] <= interval["upper"]).all()
        if previous is not None:
            assert (interval["lower"] <= previous["lower"]).all()
            assert (interval["upper"] >= previous["upper"]).all()
        previous = interval


def test_classify_respects_alpha(flat_model) -> None:
    """Test that a borderline count is only flagged at a larger alpha."""
    rows = make_series([50, 64, 66])

    strict = classify(flat_model, rows, alpha=0.001)
    loose = classify(flat_model, rows, alpha=0.2)

    assert strict["outlier"].sum() <= loose["outlier"].sum()
    assert loose["outlier"].iloc[2]
