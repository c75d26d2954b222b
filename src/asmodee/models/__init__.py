"""Count regression candidates and their registry.

The registry is a fixed, ordered list of candidates: every combination of
a trend (constant, linear in day, linear in day plus weekday category) and a
family (Poisson, quasi-Poisson, negative binomial). Order matters: model
selection breaks score ties in favour of the earlier candidate.

Adding a Candidate Checklist
============================

1. Subclass ModelCandidate and set the ``family`` class attribute:
   ```python
   class MyCandidate(ModelCandidate):
       family = Family.MY_FAMILY

       def _fit(self, frame, weekday_levels) -> FittedModel:
           results = ...  # fit with statsmodels on the model frame
           return MyFit(self, results, weekday_levels)
   ```

2. Subclass FittedModel and implement ``deviance``, ``aic``,
   ``dispersion`` and ``_quantiles(mu, q)``. Return NaN from ``aic`` when
   the likelihood is undefined; the AIC scorer then excludes the candidate.

3. Important constraints:
   - ``_fit()`` must not modify ``frame`` (``fit()`` already passes a copy)
   - Numerical errors may propagate from ``_fit()``; ``fit()`` wraps them
     in FitFailure
   - Quantiles must be non-decreasing in ``q`` so intervals nest

4. Register the instances in ALL_MODELS below, keeping existing order.
"""

from __future__ import annotations

from typing import Iterable, Union

from asmodee.config import DEFAULT_MODEL_NAMES
from asmodee.exceptions import ConfigError
from asmodee.models.base import Family, FittedModel, ModelCandidate, Trend, ZeroCountFit
from asmodee.models.negbin import NegativeBinomialCandidate, NegativeBinomialFit
from asmodee.models.poisson import (
    PoissonCandidate,
    PoissonFit,
    QuasiPoissonCandidate,
    QuasiPoissonFit,
)

_CANDIDATE_CLASSES = {
    Family.POISSON: PoissonCandidate,
    Family.QUASI_POISSON: QuasiPoissonCandidate,
    Family.NEGATIVE_BINOMIAL: NegativeBinomialCandidate,
}

ALL_MODELS: tuple[ModelCandidate, ...] = tuple(
    _CANDIDATE_CLASSES[family](trend) for trend in Trend for family in Family
)

_BY_NAME = {candidate.name: candidate for candidate in ALL_MODELS}

DEFAULT_MODELS: tuple[ModelCandidate, ...] = tuple(_BY_NAME[name] for name in DEFAULT_MODEL_NAMES)


def get_candidate(name: str) -> ModelCandidate:
    """Look up a registered candidate by name.

    Raises:
        ConfigError: If no candidate has this name.
    """
    try:
        return _BY_NAME[name]
    except KeyError:
        raise ConfigError(
            f"Unknown model '{name}'. Available models: {sorted(_BY_NAME)}"
        ) from None


def resolve_models(models: Iterable[Union[str, ModelCandidate]]) -> tuple[ModelCandidate, ...]:
    """Turn a sequence of names and/or candidates into candidates.

    Raises:
        ConfigError: If the sequence is empty, holds an unknown name or an
            unsupported object, or names the same candidate twice.
    """
    resolved = []
    for model in models:
        if isinstance(model, ModelCandidate):
            resolved.append(model)
        elif isinstance(model, str):
            resolved.append(get_candidate(model))
        else:
            raise ConfigError(f"Expected a model name or ModelCandidate, got {type(model).__name__}")

    if not resolved:
        raise ConfigError("At least one model is required")

    names = [candidate.name for candidate in resolved]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate models in configuration: {duplicates}")
    return tuple(resolved)


__all__ = [
    "ALL_MODELS",
    "DEFAULT_MODELS",
    "Family",
    "FittedModel",
    "ModelCandidate",
    "NegativeBinomialCandidate",
    "NegativeBinomialFit",
    "PoissonCandidate",
    "PoissonFit",
    "QuasiPoissonCandidate",
    "QuasiPoissonFit",
    "Trend",
    "ZeroCountFit",
    "get_candidate",
    "resolve_models",
]
