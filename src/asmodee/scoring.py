"""Cross-validation scores for candidate models.

Two interchangeable strategies, both "lower is better":

- ``jackknife_rmse``: leave-one-out refits. Each fold's error is the square
  root of the squared residual at the held-out row, i.e. its absolute value,
  and the score is the median over folds. Folds that fail are ignored.
- ``aic``: a single fit on the whole window, scored by its AIC.

Scoring never picks a winner; see ``asmodee.selection``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Union

import numpy as np
import pandas as pd

from asmodee.data.preparation import validate_series
from asmodee.exceptions import ConfigError, DataValidationError, FitFailure
from asmodee.models.base import ModelCandidate

logger = logging.getLogger(__name__)


class ScoringMethod(str, Enum):
    """Cross-validation strategy used to compare candidates."""

    JACKKNIFE_RMSE = "jackknife_rmse"
    AIC = "aic"

    @classmethod
    def parse(cls, value: Union[str, "ScoringMethod"]) -> "ScoringMethod":
        """Convert a string to a ScoringMethod.

        Raises:
            ConfigError: If the value is not a known method.
        """
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(
                f"Unknown scoring method '{value}'. Options: {[m.value for m in cls]}"
            ) from None


def jackknife_rmse(candidate: ModelCandidate, data: pd.DataFrame) -> float:
    """Median absolute leave-one-out residual of a candidate.

    For each row i, the candidate is refitted on every other row and the
    mean count is predicted at row i. The fold error is
    ``sqrt((observed - predicted) ** 2)``.

    Args:
        candidate: Candidate to score.
        data: Training rows.

    Returns:
        Median of the fold errors over the folds that could be fitted.

    Raises:
        DataValidationError: If data is empty or lacks a required column.
        FitFailure: If every fold failed.
    """
    validate_series(data, candidate.required_columns)

    n = len(data)
    positions = np.arange(n)
    errors = []
    n_failed = 0
    for i in range(n):
        held_out = data.iloc[[i]]
        rest = data.iloc[positions != i]
        try:
            fitted = candidate.fit(rest)
            predicted = float(fitted.predict(held_out)[0])
        except (FitFailure, DataValidationError) as e:
            logger.debug(f"{candidate.name}: jackknife fold {i} failed: {e}")
            n_failed += 1
            continue

        observed = float(held_out["count"].iloc[0])
        errors.append(np.sqrt((observed - predicted) ** 2))

    if not errors:
        raise FitFailure(candidate.name, f"all {n} jackknife folds failed")
    if n_failed:
        logger.debug(f"{candidate.name}: ignored {n_failed}/{n} failed jackknife folds")

    return float(np.median(errors))


def aic_score(candidate: ModelCandidate, data: pd.DataFrame) -> float:
    """AIC of the candidate fitted once on ``data``.

    Raises:
        DataValidationError: If data is empty or lacks a required column.
        FitFailure: If the fit fails or the AIC is undefined (quasi-Poisson).
    """
    fitted = candidate.fit(data)
    aic = fitted.aic
    if not np.isfinite(aic):
        raise FitFailure(candidate.name, "AIC is undefined for this model")
    return aic


def score_candidate(
    candidate: ModelCandidate,
    data: pd.DataFrame,
    method: Union[str, ScoringMethod] = ScoringMethod.JACKKNIFE_RMSE,
) -> float:
    """Score a candidate on a training window with the given strategy."""
    method = ScoringMethod.parse(method)
    if method is ScoringMethod.AIC:
        return aic_score(candidate, data)
    return jackknife_rmse(candidate, data)
