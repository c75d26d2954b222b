"""Model selection on a training window."""

from __future__ import annotations

import logging
import math
from typing import Sequence, Union

import pandas as pd

from asmodee.exceptions import AllCandidatesFailed, FitFailure
from asmodee.models.base import ModelCandidate
from asmodee.scoring import ScoringMethod, score_candidate
from asmodee.types import ModelSelection

logger = logging.getLogger(__name__)

# Scores this close are ties; quasi-Poisson and Poisson differ only by rounding
SCORE_REL_TOL = 1e-9
SCORE_ABS_TOL = 1e-12


def rank_scores(scores: dict[str, float]) -> list[str]:
    """Candidate names ordered by ascending score.

    Scores equal up to floating-point noise count as ties, and ties keep the
    order of ``scores``.
    """
    tie_rank: dict[str, int] = {}
    anchor = None
    rank = -1
    for name in sorted(scores, key=scores.__getitem__):
        score = scores[name]
        if anchor is None or not math.isclose(
            score, anchor, rel_tol=SCORE_REL_TOL, abs_tol=SCORE_ABS_TOL
        ):
            anchor = score
            rank += 1
        tie_rank[name] = rank
    return sorted(scores, key=tie_rank.__getitem__)


def select_model(
    train: pd.DataFrame,
    models: Sequence[ModelCandidate],
    method: Union[str, ScoringMethod] = ScoringMethod.JACKKNIFE_RMSE,
) -> ModelSelection:
    """Score every candidate on ``train`` and fit the best one.

    A candidate that fails to fit is excluded from the comparison and
    recorded in ``failures``; it never aborts the selection. Ties go to the
    candidate listed first in ``models``.

    Args:
        train: Training rows.
        models: Candidates, in registry order.
        method: Scoring strategy.

    Returns:
        ModelSelection with the winner fitted on the full training window.

    Raises:
        DataValidationError: If ``train`` is empty or lacks a required column.
        AllCandidatesFailed: If no candidate could be scored and fitted.
    """
    method = ScoringMethod.parse(method)
    scores: dict[str, float] = {}
    failures: dict[str, str] = {}
    by_name = {}

    for candidate in models:
        try:
            score = score_candidate(candidate, train, method)
        except FitFailure as e:
            logger.warning(f"Excluding {candidate.name} from comparison: {e}")
            failures[candidate.name] = str(e)
            continue
        logger.debug(f"{candidate.name}: {method.value} = {score:.4f}")
        scores[candidate.name] = score
        by_name[candidate.name] = candidate

    ranked = rank_scores(scores)
    comparison = pd.DataFrame(
        {"model": ranked, "score": [scores[name] for name in ranked]},
        columns=["model", "score"],
    )

    for name in comparison["model"]:
        try:
            best_model = by_name[name].fit(train)
        except FitFailure as e:
            logger.warning(f"Best candidate {name} could not be refitted: {e}")
            failures[name] = str(e)
            continue
        comparison = comparison[~comparison["model"].isin(list(failures))].reset_index(drop=True)
        return ModelSelection(
            best_name=name,
            best_model=best_model,
            comparison=comparison,
            failures=failures,
        )

    raise AllCandidatesFailed(
        f"None of the {len(models)} candidate models could be fitted on {len(train)} rows",
        failures,
    )
