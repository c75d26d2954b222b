"""Base interfaces for count regression candidates.

A candidate is a (trend, family) pair: the linear predictor it fits and the
distribution it assumes for the counts. Candidates hold no state, so the same
instance can be fitted many times, concurrently, on different windows.
Fitting returns a FittedModel, which predicts mean counts and predictive
intervals for any rows, including rows not used in fitting.
"""

from __future__ import annotations

import warnings
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning,
    HessianInversionWarning,
    PerfectSeparationWarning,
)

from asmodee.config import DEFAULT_ALPHA
from asmodee.data.preparation import validate_series
from asmodee.exceptions import ConfigError, FitFailure
from asmodee.types import ModelDebugInfo

# Suppress frivolous warnings from statsmodels fitting
# Jackknife refits on short windows trigger these routinely
warnings.filterwarnings("ignore", category=ConvergenceWarning)
warnings.filterwarnings("ignore", category=HessianInversionWarning)
warnings.filterwarnings("ignore", category=PerfectSeparationWarning)
warnings.filterwarnings("ignore", message=".*overflow.*", category=RuntimeWarning, module="statsmodels")
warnings.filterwarnings("ignore", message=".*divide by zero.*", category=RuntimeWarning, module="statsmodels")
warnings.filterwarnings("ignore", message=".*invalid value.*", category=RuntimeWarning, module="statsmodels")


class Trend(Enum):
    """Linear predictor of a candidate."""

    CONSTANT = ("constant", "count ~ 1", ("count",))
    LINEAR_DAY = ("linear", "count ~ day", ("count", "day"))
    LINEAR_DAY_WEEKDAY = ("weekday", "count ~ day + weekday", ("count", "day", "weekday"))

    def __init__(self, label: str, formula: str, required_columns: tuple[str, ...]) -> None:
        self.label = label
        self.formula = formula
        self.required_columns = required_columns


class Family(Enum):
    """Distributional family of a candidate."""

    POISSON = "poisson"
    QUASI_POISSON = "quasipoisson"
    NEGATIVE_BINOMIAL = "negbin"


class FittedModel(ABC):
    """A candidate fitted on one training window.

    Subclasses provide the goodness-of-fit statistics and the count quantiles
    of their family; prediction of the mean response is shared.
    """

    def __init__(self, candidate: ModelCandidate, results: Any, weekday_levels: frozenset[str]) -> None:
        self.candidate = candidate
        self.results = results
        self.weekday_levels = weekday_levels

    @property
    def name(self) -> str:
        return self.candidate.name

    @property
    def n_obs(self) -> int:
        return int(self.results.nobs)

    @property
    def params(self) -> dict[str, float]:
        return {str(k): float(v) for k, v in pd.Series(self.results.params).items()}

    @property
    @abstractmethod
    def deviance(self) -> float:
        """Deviance of the fit on its training rows."""

    @property
    @abstractmethod
    def aic(self) -> float:
        """Akaike Information Criterion; NaN when the likelihood is undefined."""

    @property
    @abstractmethod
    def dispersion(self) -> float:
        """Dispersion parameter (1.0 for Poisson)."""

    @abstractmethod
    def _quantiles(self, mu: np.ndarray, q: float) -> np.ndarray:
        """Count quantile at probability ``q`` for each mean in ``mu``."""

    def predict(self, data: pd.DataFrame) -> np.ndarray:
        """Predict the mean count for each row of ``data``.

        Raises:
            DataValidationError: If ``data`` lacks a column of the formula.
            FitFailure: If prediction fails or gives non-finite values, e.g.
                for a weekday category absent from the training rows.
        """
        frame = self.candidate.model_frame(data)
        if "weekday" in frame.columns:
            unseen = sorted(set(frame["weekday"]) - self.weekday_levels)
            if unseen:
                raise FitFailure(self.name, f"weekday levels {unseen} were not in the training rows")

        try:
            mu = np.asarray(self.results.predict(frame), dtype=float)
        except Exception as e:
            raise FitFailure(self.name, f"prediction failed: {e}") from e

        if not np.all(np.isfinite(mu)):
            raise FitFailure(self.name, "prediction produced non-finite values")
        return mu

    def predict_interval(self, data: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> pd.DataFrame:
        """Predictive interval at level ``1 - alpha`` for each row of ``data``.

        Returns:
            DataFrame indexed like ``data`` with integer ``lower`` and ``upper``
            columns (``alpha / 2`` and ``1 - alpha / 2`` count quantiles).
        """
        if not 0 < alpha < 1:
            raise ConfigError(f"alpha must be in (0, 1), got {alpha}")

        mu = self.predict(data)
        lower = self._quantiles(mu, alpha / 2)
        upper = self._quantiles(mu, 1 - alpha / 2)
        if not (np.all(np.isfinite(lower)) and np.all(np.isfinite(upper))):
            raise FitFailure(self.name, "predictive interval is not finite")

        return pd.DataFrame(
            {"lower": lower.astype("int64"), "upper": upper.astype("int64")},
            index=data.index,
        )

    def debug_info(self) -> ModelDebugInfo:
        """Coefficients and fit statistics, JSON-friendly."""
        aic = self.aic
        return ModelDebugInfo(
            model_name=self.name,
            data={
                "family": self.candidate.family.value,
                "formula": self.candidate.formula,
                "params": self.params,
                "n_obs": self.n_obs,
                "deviance": float(self.deviance),
                "aic": float(aic) if np.isfinite(aic) else None,
                "dispersion": float(self.dispersion),
            },
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, n_obs={self.n_obs})"


class ZeroCountFit(FittedModel):
    """Degenerate fit for a training window in which every count is zero.

    The estimated rate is zero everywhere, so the predictive interval is
    ``[0, 0]`` and any positive count is an increase. The log-likelihood is
    zero, which makes the AIC twice the number of parameters (undefined for
    quasi-Poisson, as for a regular quasi-Poisson fit).
    """

    def __init__(self, candidate: ModelCandidate, n_obs: int, weekday_levels: frozenset[str]) -> None:
        super().__init__(candidate, None, weekday_levels)
        self._n_obs = n_obs

    @property
    def n_obs(self) -> int:
        return self._n_obs

    @property
    def params(self) -> dict[str, float]:
        return {}

    @property
    def deviance(self) -> float:
        return 0.0

    @property
    def aic(self) -> float:
        if self.candidate.family is Family.QUASI_POISSON:
            return float("nan")
        return float(2 * self.candidate.n_params(self.weekday_levels))

    @property
    def dispersion(self) -> float:
        return 0.0 if self.candidate.family is Family.NEGATIVE_BINOMIAL else 1.0

    def predict(self, data: pd.DataFrame) -> np.ndarray:
        frame = self.candidate.model_frame(data)
        return np.zeros(len(frame))

    def _quantiles(self, mu: np.ndarray, q: float) -> np.ndarray:
        return np.zeros_like(mu)


class ModelCandidate(ABC):
    """Abstract base class for count regression candidates.

    All candidates must implement ``_fit()``; ``fit()`` validates the input
    and turns numerical errors into FitFailure.
    """

    family: Family

    def __init__(self, trend: Trend) -> None:
        self.trend = trend

    @property
    def name(self) -> str:
        return f"{self.trend.label}_{self.family.value}"

    @property
    def formula(self) -> str:
        return self.trend.formula

    @property
    def required_columns(self) -> tuple[str, ...]:
        return self.trend.required_columns

    def model_frame(self, data: pd.DataFrame) -> pd.DataFrame:
        """Copy of the formula columns, ready for patsy.

        Weekday categories are passed as plain strings so that the design
        only contains levels present in the data being fitted.
        """
        validate_series(data, self.required_columns)
        frame = data.loc[:, list(self.required_columns)].copy()
        if "weekday" in frame.columns:
            frame["weekday"] = frame["weekday"].astype(str)
        return frame

    def fit(self, data: pd.DataFrame) -> FittedModel:
        """Fit the candidate on ``data`` without modifying it.

        Args:
            data: Training rows with the columns of the candidate's formula.

        Returns:
            FittedModel for this candidate.

        Raises:
            DataValidationError: If data is empty, not a DataFrame or lacks a
                required column. Raised before any numerical work.
            FitFailure: If the numerical fit fails or gives non-finite estimates.
        """
        frame = self.model_frame(data)
        levels = frozenset(frame["weekday"]) if "weekday" in frame.columns else frozenset()

        if not frame["count"].any():
            # The log-link MLE diverges on an all-zero window
            return ZeroCountFit(self, len(frame), levels)

        try:
            fitted = self._fit(frame, levels)
        except FitFailure:
            raise
        except Exception as e:
            # singular designs, separation, linear algebra errors, ...
            raise FitFailure(self.name, f"fit failed: {e}") from e

        params = np.asarray(fitted.results.params, dtype=float)
        if not np.all(np.isfinite(params)):
            raise FitFailure(self.name, "fit produced non-finite coefficients")
        return fitted

    @abstractmethod
    def _fit(self, frame: pd.DataFrame, weekday_levels: frozenset[str]) -> FittedModel:
        """Fit the statsmodels model on a validated model frame."""

    def n_params(self, weekday_levels: frozenset[str]) -> int:
        """Number of estimated parameters for the given weekday levels."""
        n = 1 + ("day" in self.required_columns)
        if "weekday" in self.required_columns:
            n += max(len(weekday_levels) - 1, 0)
        if self.family is Family.NEGATIVE_BINOMIAL:
            n += 1
        return n

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ModelCandidate) and other.name == self.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.trend.name})"
