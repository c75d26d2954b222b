"""Domain-specific exceptions for ASMODEE.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from AsmodeeError for easy catching.
"""

from __future__ import annotations

from typing import Mapping


class AsmodeeError(Exception):
    """Base exception for all ASMODEE errors.

    Users can catch this exception to handle any error raised by the
    trend-change detection pipeline.
    """

    pass


class ConfigError(AsmodeeError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid configuration values are provided (alpha, max_k, n_jobs, ...)
    - An unknown model name or scoring method is requested
    - The model list is empty or contains duplicates
    """

    pass


class DataValidationError(AsmodeeError):
    """Raised when the input series cannot be used.

    This exception is raised when:
    - The input is not a DataFrame or has no rows
    - A column required by a model formula is missing
    - Counts are negative, missing or non-integer
    - More than one row exists for the same day (and group)

    It is always raised before any numerical work is attempted.
    """

    pass


class InsufficientData(DataValidationError):
    """Raised when a series is too short for the requested windows.

    This exception is raised when:
    - The series has fewer than max_k + 2 rows
    - A window size k leaves no training rows (k >= number of rows)
    """

    pass


class FitFailure(AsmodeeError):
    """Raised when a single candidate model cannot be fitted or used.

    Covers numerical non-convergence, singular designs and predictions on
    rows the fitted model cannot handle. Selection recovers from it by
    excluding the candidate.
    """

    def __init__(self, model_name: str, message: str) -> None:
        super().__init__(f"{model_name}: {message}")
        self.model_name = model_name


class AllCandidatesFailed(AsmodeeError):
    """Raised when every candidate failed for a window, or every window failed.

    Attributes:
        failures: Mapping of the failed unit (model name or window size k)
            to the reason it failed.
    """

    def __init__(self, message: str, failures: Mapping[object, str] | None = None) -> None:
        self.failures = dict(failures or {})
        if self.failures:
            details = "; ".join(f"{key}: {reason}" for key, reason in self.failures.items())
            message = f"{message} ({details})"
        super().__init__(message)
