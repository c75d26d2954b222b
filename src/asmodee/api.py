"""Public API for the ASMODEE trend-change pipeline.

This module provides a clean, configurable API for running automatic model
selection and outlier detection on in-memory DataFrames with no side effects.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, Dict, Hashable, List, Mapping, Optional, Sequence, TypeVar, Union

import pandas as pd

from asmodee.config import (
    DEFAULT_ALPHA,
    DEFAULT_MAX_K,
    DEFAULT_METHOD,
    DEFAULT_MODEL_NAMES,
)
from asmodee.data.preparation import check_series_length, validate_series
from asmodee.detector import epichange
from asmodee.exceptions import (
    AllCandidatesFailed,
    AsmodeeError,
    ConfigError,
    FitFailure,
)
from asmodee.models import resolve_models
from asmodee.models.base import ModelCandidate
from asmodee.scoring import ScoringMethod
from asmodee.types import EpichangeResult, GroupedAsmodeeResult, WindowSearch

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class AsmodeeConfig:
    """Configuration for ASMODEE.

    Attributes:
        models: Candidates to compare, as registry names or ModelCandidate
            instances (default: constant Poisson, linear Poisson, linear
            negative binomial). Order breaks score ties.
        method: Scoring strategy, "jackknife_rmse" (default) or "aic".
        max_k: Largest number of recent days held out (default: 7).
        alpha: Type-1 error rate of the predictive intervals (default: 0.05).
        fixed_k: If set, evaluate only this window size instead of searching 1..max_k.
        n_jobs: Number of worker threads for window sizes and groups (default: 1).
    """

    models: Sequence[Union[str, ModelCandidate]] = DEFAULT_MODEL_NAMES
    method: Union[str, ScoringMethod] = DEFAULT_METHOD
    max_k: int = DEFAULT_MAX_K
    alpha: float = DEFAULT_ALPHA
    fixed_k: Optional[int] = None
    n_jobs: int = 1

    def validate(self) -> None:
        """Check every option.

        Raises:
            ConfigError: If any option is out of range or unknown.
        """
        if not isinstance(self.max_k, int) or self.max_k < 1:
            raise ConfigError(f"max_k must be a positive integer, got {self.max_k!r}")
        if not 0 < self.alpha < 1:
            raise ConfigError(f"alpha must be in (0, 1), got {self.alpha!r}")
        if self.fixed_k is not None and (not isinstance(self.fixed_k, int) or self.fixed_k < 1):
            raise ConfigError(f"fixed_k must be a positive integer, got {self.fixed_k!r}")
        if not isinstance(self.n_jobs, int) or self.n_jobs < 1:
            raise ConfigError(f"n_jobs must be a positive integer, got {self.n_jobs!r}")
        ScoringMethod.parse(self.method)
        resolve_models(self.models)

    def resolve_models(self) -> tuple[ModelCandidate, ...]:
        return resolve_models(self.models)

    @property
    def scoring_method(self) -> ScoringMethod:
        return ScoringMethod.parse(self.method)

    @property
    def window_sizes(self) -> List[int]:
        """Window sizes evaluated by the search."""
        if self.fixed_k is not None:
            return [self.fixed_k]
        return list(range(1, self.max_k + 1))


def _map(fn: Callable[[T], R], items: Sequence[T], n_jobs: int) -> List[R]:
    """Apply ``fn`` to each item, in order, optionally on a thread pool."""
    if n_jobs <= 1 or len(items) <= 1:
        return [fn(item) for item in items]
    with ThreadPoolExecutor(max_workers=n_jobs, thread_name_prefix="asmodee") as executor:
        return list(executor.map(fn, items))


def rank_windows(results: Mapping[int, EpichangeResult]) -> pd.DataFrame:
    """Rank window sizes by their two-term score.

    ``score_1`` counts training rows classified as normal and ``score_2``
    counts held-out rows flagged as outliers. Windows are sorted by
    ``score`` descending, then ``score_2`` descending, then ``k`` ascending.

    Returns:
        DataFrame with columns k, score_1, score_2, score; winner first.
    """
    columns = ["k", "score_1", "score_2", "score"]
    rows = [
        {"k": k, "score_1": r.score_1, "score_2": r.score_2, "score": r.score}
        for k, r in results.items()
    ]
    if not rows:
        return pd.DataFrame(columns=columns)

    return (
        pd.DataFrame(rows, columns=columns)
        .sort_values(["score", "score_2", "k"], ascending=[False, False, True])
        .reset_index(drop=True)
    )


def search_window_size(
    series: pd.DataFrame,
    config: Optional[AsmodeeConfig] = None,
) -> WindowSearch:
    """Run the fixed-window detector for every window size and rank them.

    Args:
        series: Daily series with ``day`` and ``count`` columns, plus any
            column the configured models need (e.g. ``weekday``). Usually
            the output of ``prepare_series``.
        config: AsmodeeConfig. If None, uses defaults.

    Returns:
        WindowSearch with the best result, the ranking and every run.

    Raises:
        ConfigError: If the configuration is invalid.
        DataValidationError: If the series is empty or lacks a column
            required by a configured model.
        InsufficientData: If the series has fewer than max_k + 2 rows.
        AllCandidatesFailed: If no window size could be evaluated.
    """
    if config is None:
        config = AsmodeeConfig()
    config.validate()

    models = config.resolve_models()
    method = config.scoring_method

    validate_series(series, ["day", "count"])
    for candidate in models:
        validate_series(series, candidate.required_columns)
    check_series_length(series, config.fixed_k if config.fixed_k is not None else config.max_k)

    window_sizes = config.window_sizes
    logger.info(
        f"Running ASMODEE on {len(series)} days: k in {window_sizes}, "
        f"{len(models)} models, method={method.value}, alpha={config.alpha}"
    )

    def run_window(k: int) -> Union[EpichangeResult, str]:
        try:
            return epichange(series, k, models=models, method=method, alpha=config.alpha)
        except (AllCandidatesFailed, FitFailure) as e:
            logger.warning(f"Window k={k} excluded: {e}")
            return str(e)

    results: Dict[int, EpichangeResult] = {}
    failures: Dict[int, str] = {}
    for k, outcome in zip(window_sizes, _map(run_window, window_sizes, config.n_jobs)):
        if isinstance(outcome, EpichangeResult):
            results[k] = outcome
        else:
            failures[k] = outcome

    if not results:
        raise AllCandidatesFailed(
            f"No window size in {window_sizes} could be evaluated", failures
        )

    ranking = rank_windows(results)
    best = results[int(ranking["k"].iloc[0])]

    logger.info(
        f"Selected k={best.k} with {best.best_model_name}: score={best.score} "
        f"(score_1={best.score_1}, score_2={best.score_2}), "
        f"{best.n_outliers} outliers, p={best.p_value:.4g}"
    )

    return WindowSearch(best=best, ranking=ranking, results=results, failures=failures)


def asmodee(
    series: pd.DataFrame,
    config: Optional[AsmodeeConfig] = None,
) -> EpichangeResult:
    """Detect recent trend changes in a daily count series.

    This function:
    - does NOT read or write any files,
    - does NOT keep any state between calls,
    - MAY log progress via the logging module.

    Args:
        series: Daily series with ``day`` and ``count`` columns (see
            ``search_window_size``).
        config: AsmodeeConfig for models, method, max_k and alpha. If None,
            uses defaults.

    Returns:
        EpichangeResult of the best window size, unmodified.

    Raises:
        See ``search_window_size``.
    """
    return search_window_size(series, config).best


def run_asmodee_by_group(
    df: pd.DataFrame,
    group_column: str,
    config: Optional[AsmodeeConfig] = None,
) -> GroupedAsmodeeResult:
    """Run ASMODEE independently for each group (e.g. region).

    A failing group is recorded in ``failures`` and never aborts the others.

    Args:
        df: Series for all groups, with ``day`` computed per group (see
            ``prepare_series(..., group_column=...)``).
        group_column: Column holding the group key.
        config: AsmodeeConfig shared by all groups. If None, uses defaults.

    Returns:
        GroupedAsmodeeResult containing:
        - results: EpichangeResult per successful group
        - failures: error message per failed group
        - metadata: groups, counts and settings

    Raises:
        ConfigError: If the configuration is invalid.
        DataValidationError: If df is empty or lacks the group column.
    """
    if config is None:
        config = AsmodeeConfig()
    config.validate()
    validate_series(df, [group_column])

    groups = sorted(df[group_column].dropna().unique().tolist(), key=str)
    logger.info(f"Running ASMODEE for {len(groups)} groups")

    # Parallelize across groups, not inside them
    group_config = replace(config, n_jobs=1) if config.n_jobs > 1 else config

    def run_group(group: Hashable) -> Union[EpichangeResult, str]:
        subset = df[df[group_column] == group].reset_index(drop=True)
        try:
            return asmodee(subset, group_config)
        except AsmodeeError as e:
            logger.warning(f"Group '{group}' failed: {e}")
            return str(e)

    grouped = GroupedAsmodeeResult()
    for group, outcome in zip(groups, _map(run_group, groups, config.n_jobs)):
        if isinstance(outcome, EpichangeResult):
            grouped.results[group] = outcome
        else:
            grouped.failures[group] = outcome

    logger.info(
        f"Group summary: {len(grouped.results)} successful, {len(grouped.failures)} failed"
    )

    grouped.metadata = {
        "groups": groups,
        "successful_groups": len(grouped.results),
        "failed_groups": len(grouped.failures),
        "models": [candidate.name for candidate in config.resolve_models()],
        "method": config.scoring_method.value,
        "max_k": config.max_k,
        "fixed_k": config.fixed_k,
        "alpha": config.alpha,
    }
    return grouped
