"""Tests for the candidate registry and fitted models."""

import json
import warnings

import numpy as np
import pandas as pd
import pytest

from asmodee.exceptions import ConfigError, DataValidationError, FitFailure
from asmodee.models import (
    ALL_MODELS,
    DEFAULT_MODELS,
    Family,
    NegativeBinomialFit,
    PoissonFit,
    QuasiPoissonFit,
    Trend,
    ZeroCountFit,
    get_candidate,
    resolve_models,
)

from conftest import make_series


def test_registry_covers_every_trend_and_family() -> None:
    """Test the 3 x 3 registry and its naming."""
    names = [candidate.name for candidate in ALL_MODELS]

    assert len(ALL_MODELS) == len(Trend) * len(Family)
    assert len(set(names)) == len(names)
    assert names[:3] == ["constant_poisson", "constant_quasipoisson", "constant_negbin"]
    assert "weekday_negbin" in names


def test_default_models() -> None:
    """Test the default candidate list."""
    assert [c.name for c in DEFAULT_MODELS] == [
        "constant_poisson",
        "linear_poisson",
        "linear_negbin",
    ]


def test_get_candidate_unknown_name() -> None:
    """Test that unknown model names are a configuration error."""
    assert get_candidate("linear_quasipoisson").family is Family.QUASI_POISSON

    with pytest.raises(ConfigError, match="Unknown model"):
        get_candidate("quadratic_poisson")


def test_resolve_models_rejects_duplicates_and_empty() -> None:
    """Test validation of configured model lists."""
    candidate = get_candidate("constant_poisson")
    assert resolve_models(["constant_poisson", get_candidate("linear_negbin")])[0] == candidate

    with pytest.raises(ConfigError, match="Duplicate"):
        resolve_models(["constant_poisson", candidate])
    with pytest.raises(ConfigError, match="At least one"):
        resolve_models([])


@pytest.mark.parametrize("name", [c.name for c in ALL_MODELS])
def test_fit_rejects_empty_input(name: str) -> None:
    """Test that every candidate validates before fitting."""
    empty = make_series([1, 2, 3]).iloc[0:0]

    with pytest.raises(DataValidationError):
        get_candidate(name).fit(empty)
    with pytest.raises(DataValidationError):
        get_candidate(name).fit([[1, 2], [3, 4]])


def test_fit_rejects_missing_required_column() -> None:
    """Test that a day-trend candidate needs the day column."""
    series = make_series([3, 4, 5, 6]).drop(columns=["day"])

    # The constant model only needs counts
    get_candidate("constant_poisson").fit(series)

    with pytest.raises(DataValidationError, match="day"):
        get_candidate("linear_poisson").fit(series)
    with pytest.raises(DataValidationError, match="weekday"):
        get_candidate("weekday_poisson").fit(series.drop(columns=["weekday"]))


def test_fit_does_not_modify_input(overdispersed_series: pd.DataFrame) -> None:
    """Test that fitting leaves the input untouched."""
    before = overdispersed_series.copy()

    for candidate in ALL_MODELS:
        candidate.fit(overdispersed_series)

    pd.testing.assert_frame_equal(overdispersed_series, before)


def test_constant_poisson_predicts_the_mean() -> None:
    """Test that the intercept-only Poisson model predicts the sample mean."""
    series = make_series([10, 12, 14, 20])

    fitted = get_candidate("constant_poisson").fit(series)
    mu = fitted.predict(series)

    assert isinstance(fitted, PoissonFit)
    assert mu.shape == (4,)
    assert mu == pytest.approx([14.0] * 4, rel=1e-6)
    assert fitted.dispersion == 1.0
    assert np.isfinite(fitted.aic)


def test_linear_poisson_recovers_trend() -> None:
    """Test that a growing series gets a positive day coefficient."""
    series = make_series([round(20 * np.exp(0.1 * d)) for d in range(15)])

    fitted = get_candidate("linear_poisson").fit(series)

    assert fitted.results.params["day"] == pytest.approx(0.1, abs=0.01)


def test_quasipoisson_estimates_dispersion(overdispersed_series: pd.DataFrame) -> None:
    """Test that quasi-Poisson has the Poisson mean and a dispersion above 1."""
    poisson = get_candidate("constant_poisson").fit(overdispersed_series)
    quasi = get_candidate("constant_quasipoisson").fit(overdispersed_series)

    assert isinstance(quasi, QuasiPoissonFit)
    assert quasi.dispersion > 1.0
    assert np.isnan(quasi.aic)
    assert quasi.predict(overdispersed_series) == pytest.approx(
        poisson.predict(overdispersed_series)
    )
    assert quasi.deviance == pytest.approx(poisson.deviance)


def test_quasipoisson_needs_residual_degrees_of_freedom() -> None:
    """Test that dispersion cannot be estimated from a single row."""
    with pytest.raises(FitFailure, match="degrees of freedom"):
        get_candidate("constant_quasipoisson").fit(make_series([5]))


def test_negative_binomial_estimates_dispersion(overdispersed_series: pd.DataFrame) -> None:
    """Test the jointly estimated negative binomial dispersion."""
    fitted = get_candidate("constant_negbin").fit(overdispersed_series)

    assert isinstance(fitted, NegativeBinomialFit)
    assert fitted.dispersion > 0.1
    assert np.isfinite(fitted.aic)
    assert fitted.deviance >= 0


def test_overdispersed_families_have_wider_intervals(overdispersed_series: pd.DataFrame) -> None:
    """Test that quasi-Poisson and negative binomial widen the Poisson interval."""
    widths = {}
    for name in ["constant_poisson", "constant_quasipoisson", "constant_negbin"]:
        interval = get_candidate(name).fit(overdispersed_series).predict_interval(overdispersed_series)
        widths[name] = (interval["upper"] - interval["lower"]).iloc[0]

    assert widths["constant_quasipoisson"] > widths["constant_poisson"]
    assert widths["constant_negbin"] > widths["constant_poisson"]


def test_weekday_model_predicts_unseen_rows() -> None:
    """Test that the weekday model predicts rows outside its training window."""
    counts = [30 if d % 7 in (5, 6) else 50 for d in range(21)]
    series = make_series(counts)  # starts on a Monday

    fitted = get_candidate("weekday_poisson").fit(series.iloc[:14])
    mu = fitted.predict(series.iloc[14:])

    assert len(mu) == 7
    assert mu[5] < mu[2]  # Saturday below Wednesday


def test_weekday_level_missing_from_training_is_a_fit_failure() -> None:
    """Test that a weekday category unseen in training cannot be predicted."""
    series = make_series([50] * 14)
    weekdays_only = series[series["weekday"] != "weekend"]
    weekend = series[series["weekday"] == "weekend"]

    fitted = get_candidate("weekday_poisson").fit(weekdays_only)

    with pytest.raises(FitFailure, match="weekend"):
        fitted.predict(weekend)


def test_predict_interval_rejects_invalid_alpha() -> None:
    """Test the alpha range check."""
    series = make_series([5, 6, 7])
    fitted = get_candidate("constant_poisson").fit(series)

    with pytest.raises(ConfigError):
        fitted.predict_interval(series, alpha=1.0)


def test_debug_info_is_json_serializable(overdispersed_series: pd.DataFrame) -> None:
    """Test the model debug payload."""
    fitted = get_candidate("linear_negbin").fit(overdispersed_series)

    debug = fitted.debug_info()

    assert debug.model_name == "linear_negbin"
    assert not hasattr(debug, "version")
    assert set(debug.data["params"]) == {"Intercept", "day", "alpha"}
    assert debug.data["n_obs"] == len(overdispersed_series)
    json.dumps(debug.data)


def test_all_zero_window_gives_zero_rate_fit() -> None:
    """Test that a window of zero counts predicts a zero rate for every candidate."""
    zeros = make_series([0] * 10)
    later = make_series([0, 3])

    for candidate in ALL_MODELS:
        fitted = candidate.fit(zeros)
        interval = fitted.predict_interval(later)

        assert isinstance(fitted, ZeroCountFit)
        assert fitted.n_obs == 10
        assert fitted.predict(later).tolist() == [0.0, 0.0]
        assert interval["lower"].tolist() == [0, 0]
        assert interval["upper"].tolist() == [0, 0]
        json.dumps(fitted.debug_info().data)


def test_zero_rate_fit_aic() -> None:
    """Test the AIC of zero-rate fits: twice the parameter count, undefined for quasi-Poisson."""
    zeros = make_series([0] * 10)  # Monday start: all three weekday levels

    assert get_candidate("constant_poisson").fit(zeros).aic == 2.0
    assert get_candidate("linear_negbin").fit(zeros).aic == 6.0
    assert get_candidate("weekday_poisson").fit(zeros).aic == 8.0
    assert np.isnan(get_candidate("constant_quasipoisson").fit(zeros).aic)


def test_numpy_runtime_warnings_stay_visible() -> None:
    """Test that importing the models only silences RuntimeWarnings raised in statsmodels."""
    numeric = {".*overflow.*", ".*divide by zero.*", ".*invalid value.*"}
    modules = {
        getattr(message, "pattern", message): getattr(module, "pattern", module)
        for action, message, category, module, _ in warnings.filters
        if action == "ignore"
        and category is RuntimeWarning
        and getattr(message, "pattern", message) in numeric
    }

    assert set(modules) == numeric
    assert set(modules.values()) == {"statsmodels"}
