"""Outlier classification against a fitted model's predictive interval."""

from __future__ import annotations

import numpy as np
import pandas as pd

from asmodee.config import DEFAULT_ALPHA
from asmodee.models.base import FittedModel
from asmodee.types import CLASSIFICATION_LEVELS, Classification


def classify(fitted: FittedModel, data: pd.DataFrame, alpha: float = DEFAULT_ALPHA) -> pd.DataFrame:
    """Tag each row as an increase, a decrease or normal.

    A count below the lower bound of its ``1 - alpha`` predictive interval
    is a decrease, above the upper bound an increase, otherwise normal.
    Rows are evaluated independently and may include rows not used to fit
    the model.

    Args:
        fitted: Fitted model providing the predictive intervals.
        data: Rows to classify, with a ``count`` column.
        alpha: Type-1 error rate (default 0.05).

    Returns:
        Copy of ``data`` with ``lower``, ``upper``, ``classification``
        (ordered categorical) and ``outlier`` columns added.
    """
    interval = fitted.predict_interval(data, alpha)
    out = data.copy()
    out["lower"] = interval["lower"]
    out["upper"] = interval["upper"]

    counts = out["count"].to_numpy()
    labels = np.where(
        counts < out["lower"].to_numpy(),
        Classification.DECREASE.value,
        np.where(
            counts > out["upper"].to_numpy(),
            Classification.INCREASE.value,
            Classification.NORMAL.value,
        ),
    )
    out["classification"] = pd.Categorical(labels, categories=CLASSIFICATION_LEVELS, ordered=True)
    out["outlier"] = labels != Classification.NORMAL.value
    return out
