"""Shared result types for ASMODEE.

All results are plain dataclasses holding pandas DataFrames, so they can be
inspected interactively and serialized with ``to_dict()`` for a report layer.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Hashable, Optional

import pandas as pd

if TYPE_CHECKING:
    from asmodee.models.base import FittedModel


class Classification(str, Enum):
    """Outcome of comparing a count with its predictive interval."""

    INCREASE = "increase"
    NORMAL = "normal"
    DECREASE = "decrease"


class Segment(str, Enum):
    """Whether a row was used to fit the model or held out."""

    TRAIN = "train"
    TEST = "test"


# Ordered so legends and sorting are consistent: increase < normal < decrease
CLASSIFICATION_LEVELS = [c.value for c in Classification]
SEGMENT_LEVELS = [s.value for s in Segment]


@dataclass(frozen=True)
class ModelDebugInfo:
    """Generic container for fitted-model introspection.

    Attributes:
        model_name: Candidate name, e.g. "linear_poisson".
        data: Model-specific payload (JSON-like values): coefficients, AIC,
            deviance, dispersion, number of observations.
    """

    model_name: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelSelection:
    """Outcome of cross-validating every candidate on one training window.

    Attributes:
        best_name: Name of the candidate with the lowest score.
        best_model: That candidate fitted on the full training window.
        comparison: DataFrame with columns ``model`` and ``score``, sorted
            ascending by score (registry order on ties).
        failures: Candidates excluded from the comparison, with the reason.
    """

    best_name: str
    best_model: "FittedModel"
    comparison: pd.DataFrame
    failures: Dict[str, str] = field(default_factory=dict)


def _to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    out = df.copy()
    for col in out.columns:
        if pd.api.types.is_datetime64_any_dtype(out[col]):
            out[col] = out[col].dt.strftime("%Y-%m-%d")
        elif isinstance(out[col].dtype, pd.CategoricalDtype):
            out[col] = out[col].astype(str)
    return json.loads(out.to_json(orient="records"))


@dataclass(frozen=True)
class EpichangeResult:
    """Result of one fixed-window run.

    Attributes:
        comparison: Model comparison table (``model``, ``score``).
        best_model_name: Name of the selected candidate.
        fitted_model: Selected candidate fitted on the training rows.
        k: Number of most recent rows held out of fitting.
        n_outliers: Number of rows (train and test) flagged as outliers.
        p_value: P(X >= n_outliers) for X ~ Binomial(n, 0.05).
        diagnostics: One row per observation with ``lower``, ``upper``,
            ``outlier``, ``classification`` and ``segment`` added, ordered by day.
        alpha: Type-1 error rate used for the predictive intervals.
        method: Name of the scoring method used for model selection.
        model_failures: Candidates excluded from the comparison.
    """

    comparison: pd.DataFrame
    best_model_name: str
    fitted_model: "FittedModel"
    k: int
    n_outliers: int
    p_value: float
    diagnostics: pd.DataFrame
    alpha: float
    method: str
    model_failures: Dict[str, str] = field(default_factory=dict)

    @property
    def n_outliers_train(self) -> int:
        """Outliers among the rows used for fitting."""
        train = self.diagnostics["segment"] == Segment.TRAIN.value
        return int((train & self.diagnostics["outlier"]).sum())

    @property
    def n_outliers_recent(self) -> int:
        """Outliers among the k held-out rows."""
        test = self.diagnostics["segment"] == Segment.TEST.value
        return int((test & self.diagnostics["outlier"]).sum())

    @property
    def score_1(self) -> int:
        """Training rows classified as normal."""
        train = self.diagnostics["segment"] == Segment.TRAIN.value
        return int((train & ~self.diagnostics["outlier"]).sum())

    @property
    def score_2(self) -> int:
        """Held-out rows flagged as outliers."""
        return self.n_outliers_recent

    @property
    def score(self) -> int:
        return self.score_1 + self.score_2

    def outliers(self) -> pd.DataFrame:
        """Return the diagnostic rows flagged as outliers."""
        return self.diagnostics[self.diagnostics["outlier"]].reset_index(drop=True)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation of the result."""
        debug = self.fitted_model.debug_info()
        return {
            "k": self.k,
            "alpha": self.alpha,
            "method": self.method,
            "best_model": self.best_model_name,
            "n_outliers": self.n_outliers,
            "n_outliers_train": self.n_outliers_train,
            "n_outliers_recent": self.n_outliers_recent,
            "p_value": self.p_value,
            "comparison": _to_records(self.comparison),
            "model_failures": dict(self.model_failures),
            "fitted_model": {"model_name": debug.model_name, **debug.data},
            "diagnostics": _to_records(self.diagnostics),
        }


@dataclass(frozen=True)
class WindowSearch:
    """Outcome of the window-size search.

    Attributes:
        best: Result for the winning window size, unmodified.
        ranking: DataFrame with columns ``k``, ``score_1``, ``score_2`` and
            ``score``, winner first.
        results: Result for every window size that could be evaluated.
        failures: Window sizes that could not be evaluated, with the reason.
    """

    best: EpichangeResult
    ranking: pd.DataFrame
    results: Dict[int, EpichangeResult] = field(default_factory=dict)
    failures: Dict[int, str] = field(default_factory=dict)


@dataclass
class GroupedAsmodeeResult:
    """Result of running ASMODEE once per group.

    Attributes:
        results: Successful runs, keyed by group.
        failures: Failed groups with the error message. A failed group never
            aborts the other groups.
        metadata: Counts and settings for the batch.
    """

    results: Dict[Hashable, EpichangeResult] = field(default_factory=dict)
    failures: Dict[Hashable, str] = field(default_factory=dict)
    metadata: Dict[str, object] = field(default_factory=dict)

    def summary(self) -> pd.DataFrame:
        """One row per successful group with the headline numbers."""
        columns = [
            "group",
            "k",
            "model",
            "n_outliers",
            "n_increase",
            "n_decrease",
            "p_value",
        ]
        rows = []
        for group, result in self.results.items():
            classification = result.diagnostics["classification"].astype(str)
            rows.append(
                {
                    "group": group,
                    "k": result.k,
                    "model": result.best_model_name,
                    "n_outliers": result.n_outliers,
                    "n_increase": int((classification == Classification.INCREASE.value).sum()),
                    "n_decrease": int((classification == Classification.DECREASE.value).sum()),
                    "p_value": result.p_value,
                }
            )

        if not rows:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(rows, columns=columns)

    def get(self, group: Hashable) -> Optional[EpichangeResult]:
        return self.results.get(group)
