"""ASMODEE - Automatic Selection of Models and Outlier DEtection for Epidemics.

This package detects recent trend changes in short daily count series
without choosing a cut-off date or a model by hand:

- **Candidates**: Poisson, quasi-Poisson and negative binomial regressions
  with a constant, linear or linear-plus-weekday trend
- **Selection**: jackknife or AIC comparison on the fitting window
- **Classification**: predictive intervals flag increases and decreases
- **Window search**: the number of recent days held out is chosen automatically

Module Structure:
    asmodee.api: Public entry points (asmodee, search_window_size, run_asmodee_by_group)
    asmodee.models: Candidate registry
    asmodee.scoring / asmodee.selection: Cross-validation and model selection
    asmodee.classification / asmodee.detector: Fixed-window detection
    asmodee.data: Series preparation and loading

Quick Start:
    >>> import pandas as pd
    >>> from asmodee import AsmodeeConfig, asmodee, prepare_series
    >>>
    >>> raw = pd.read_csv("daily_counts.csv")  # columns: date, count
    >>> series = prepare_series(raw)
    >>> result = asmodee(series, AsmodeeConfig(max_k=7))
    >>> result.k, result.best_model_name, result.p_value
    >>> print(result.outliers())
"""

__version__ = "0.1.0"

from asmodee.api import (
    AsmodeeConfig,
    asmodee,
    rank_windows,
    run_asmodee_by_group,
    search_window_size,
)
from asmodee.classification import classify
from asmodee.data.preparation import WeekdayCalendar, prepare_series, weekday_category
from asmodee.detector import epichange
from asmodee.exceptions import (
    AllCandidatesFailed,
    AsmodeeError,
    ConfigError,
    DataValidationError,
    FitFailure,
    InsufficientData,
)
from asmodee.models import ALL_MODELS, DEFAULT_MODELS, get_candidate
from asmodee.scoring import ScoringMethod, aic_score, jackknife_rmse, score_candidate
from asmodee.selection import select_model
from asmodee.types import (
    Classification,
    EpichangeResult,
    GroupedAsmodeeResult,
    ModelSelection,
    Segment,
    WindowSearch,
)

__all__ = [
    "ALL_MODELS",
    "AllCandidatesFailed",
    "AsmodeeConfig",
    "AsmodeeError",
    "Classification",
    "ConfigError",
    "DEFAULT_MODELS",
    "DataValidationError",
    "EpichangeResult",
    "FitFailure",
    "GroupedAsmodeeResult",
    "InsufficientData",
    "ModelSelection",
    "ScoringMethod",
    "Segment",
    "WeekdayCalendar",
    "WindowSearch",
    "__version__",
    "aic_score",
    "asmodee",
    "classify",
    "epichange",
    "get_candidate",
    "jackknife_rmse",
    "prepare_series",
    "rank_windows",
    "run_asmodee_by_group",
    "score_candidate",
    "search_window_size",
    "select_model",
    "weekday_category",
]
