"""Trend-change detection for one held-out window size."""

from __future__ import annotations

import logging
from typing import Sequence, Union

import pandas as pd
from scipy import stats

from asmodee.classification import classify
from asmodee.config import DEFAULT_ALPHA, OUTLIER_BASE_RATE
from asmodee.data.preparation import split_train_test, validate_series
from asmodee.models import DEFAULT_MODELS
from asmodee.models.base import ModelCandidate
from asmodee.scoring import ScoringMethod
from asmodee.selection import select_model
from asmodee.types import SEGMENT_LEVELS, EpichangeResult, Segment

logger = logging.getLogger(__name__)


def outlier_p_value(n_outliers: int, n: int, rate: float = OUTLIER_BASE_RATE) -> float:
    """P(X >= n_outliers) for X ~ Binomial(n, rate)."""
    return float(stats.binom.sf(n_outliers - 1, n, rate))


def epichange(
    series: pd.DataFrame,
    k: int,
    models: Sequence[ModelCandidate] = DEFAULT_MODELS,
    method: Union[str, ScoringMethod] = ScoringMethod.JACKKNIFE_RMSE,
    alpha: float = DEFAULT_ALPHA,
) -> EpichangeResult:
    """Fit on all but the last ``k`` days and classify every day.

    The best candidate is selected on the first ``n - k`` rows. That single
    fitted model then classifies all ``n`` rows, so the train and test
    segments share one decision boundary.

    Args:
        series: Daily series with ``day`` and ``count`` columns (plus any
            column the candidates need).
        k: Number of most recent rows held out of fitting, 1 <= k < n.
        models: Candidates to compare, in registry order.
        method: Scoring strategy for model selection.
        alpha: Type-1 error rate of the predictive intervals.

    Returns:
        EpichangeResult for this window size.

    Raises:
        DataValidationError: If the series is empty or lacks a column.
        InsufficientData: If k leaves no training rows.
        AllCandidatesFailed: If no candidate could be fitted on the training rows.
        FitFailure: If the selected model cannot classify the held-out rows.
    """
    validate_series(series, ["day", "count"])
    method = ScoringMethod.parse(method)
    train, test = split_train_test(series, k)

    selection = select_model(train, models, method)

    rows = pd.concat([train, test])
    diagnostics = classify(selection.best_model, rows, alpha)
    diagnostics["segment"] = pd.Categorical(
        [Segment.TRAIN.value] * len(train) + [Segment.TEST.value] * len(test),
        categories=SEGMENT_LEVELS,
    )
    diagnostics = diagnostics.reset_index(drop=True)

    n_outliers = int(diagnostics["outlier"].sum())
    p_value = outlier_p_value(n_outliers, len(diagnostics))

    logger.debug(
        f"k={k}: selected {selection.best_name}, {n_outliers} outliers "
        f"({int(diagnostics['outlier'].iloc[len(train):].sum())} recent), p={p_value:.4g}"
    )

    return EpichangeResult(
        comparison=selection.comparison,
        best_model_name=selection.best_name,
        fitted_model=selection.best_model,
        k=k,
        n_outliers=n_outliers,
        p_value=p_value,
        diagnostics=diagnostics,
        alpha=alpha,
        method=method.value,
        model_failures=dict(selection.failures),
    )
