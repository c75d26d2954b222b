"""Negative binomial candidates.

Uses the NB2 parameterization (variance ``mu + alpha * mu**2``) from
statsmodels' discrete models, which estimates ``alpha`` jointly with the
coefficients by maximum likelihood.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from scipy import stats

from asmodee.exceptions import FitFailure
from asmodee.models.base import Family, FittedModel, ModelCandidate

# Below this the distribution is numerically Poisson
MIN_ALPHA = 1e-8


class NegativeBinomialFit(FittedModel):
    """Negative binomial fit with jointly estimated dispersion."""

    @property
    def dispersion(self) -> float:
        return float(self.results.params["alpha"])

    @property
    def deviance(self) -> float:
        family = sm.families.NegativeBinomial(alpha=max(self.dispersion, MIN_ALPHA))
        mu = np.asarray(self.results.predict(), dtype=float)
        return float(family.deviance(self.results.model.endog, mu))

    @property
    def aic(self) -> float:
        return float(self.results.aic)

    def _quantiles(self, mu: np.ndarray, q: float) -> np.ndarray:
        alpha = self.dispersion
        if alpha <= MIN_ALPHA:
            return stats.poisson.ppf(q, mu)
        return stats.nbinom.ppf(q, 1.0 / alpha, 1.0 / (1.0 + alpha * mu))


class NegativeBinomialCandidate(ModelCandidate):
    """Negative binomial regression with a log link."""

    family = Family.NEGATIVE_BINOMIAL

    def _fit(self, frame: pd.DataFrame, weekday_levels: frozenset[str]) -> FittedModel:
        results = smf.negativebinomial(self.formula, data=frame).fit(disp=0, maxiter=200)
        alpha = float(results.params["alpha"])
        if not np.isfinite(alpha) or alpha < 0:
            raise FitFailure(self.name, f"invalid dispersion estimate {alpha}")
        return NegativeBinomialFit(self, results, weekday_levels)
