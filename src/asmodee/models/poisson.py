"""Poisson and quasi-Poisson candidates.

Both families share the log-linear mean structure and are fitted as GLMs
with statsmodels. The quasi-Poisson fit additionally estimates a dispersion
scalar from the Pearson statistic, which widens its predictive intervals
when counts are over-dispersed.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from scipy import stats

from asmodee.exceptions import FitFailure
from asmodee.models.base import Family, FittedModel, ModelCandidate


class PoissonFit(FittedModel):
    """Poisson GLM: variance equal to the mean."""

    @property
    def deviance(self) -> float:
        return float(self.results.deviance)

    @property
    def aic(self) -> float:
        return float(self.results.aic)

    @property
    def dispersion(self) -> float:
        return 1.0

    def _quantiles(self, mu: np.ndarray, q: float) -> np.ndarray:
        return stats.poisson.ppf(q, mu)


class QuasiPoissonFit(PoissonFit):
    """Poisson mean structure with variance ``phi * mu``.

    Quantiles come from the negative binomial with the same mean and
    variance (size ``mu / (phi - 1)``, probability ``1 / phi``). When the
    estimated dispersion is not above 1 the Poisson quantiles are used.
    """

    @property
    def aic(self) -> float:
        # No likelihood, so no AIC
        return float("nan")

    @property
    def dispersion(self) -> float:
        return float(self.results.scale)

    def _quantiles(self, mu: np.ndarray, q: float) -> np.ndarray:
        phi = self.dispersion
        if phi <= 1.0:
            return stats.poisson.ppf(q, mu)
        return stats.nbinom.ppf(q, mu / (phi - 1.0), 1.0 / phi)


class PoissonCandidate(ModelCandidate):
    """Poisson regression with a log link."""

    family = Family.POISSON

    def _fit(self, frame: pd.DataFrame, weekday_levels: frozenset[str]) -> FittedModel:
        results = smf.glm(self.formula, data=frame, family=sm.families.Poisson()).fit()
        return PoissonFit(self, results, weekday_levels)


class QuasiPoissonCandidate(ModelCandidate):
    """Poisson regression with a Pearson-estimated dispersion."""

    family = Family.QUASI_POISSON

    def _fit(self, frame: pd.DataFrame, weekday_levels: frozenset[str]) -> FittedModel:
        model = smf.glm(self.formula, data=frame, family=sm.families.Poisson())
        if model.df_resid <= 0:
            raise FitFailure(self.name, "no residual degrees of freedom to estimate dispersion")
        results = model.fit(scale="X2")
        if not np.isfinite(results.scale):
            raise FitFailure(self.name, "dispersion estimate is not finite")
        return QuasiPoissonFit(self, results, weekday_levels)
