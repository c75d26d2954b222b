"""Console output formatting utilities."""

from __future__ import annotations

import pandas as pd

from asmodee.types import EpichangeResult, GroupedAsmodeeResult

CLASSIFICATION_MARKERS = {
    "increase": "+",
    "decrease": "-",
}


def format_result_for_console(result: EpichangeResult, title: str | None = None) -> str:
    """Build a human-readable summary of one ASMODEE result.

    Args:
        result: EpichangeResult to describe
        title: Optional heading (e.g. the group name)

    Returns:
        Human-readable text string for console output
    """
    lines = []
    if title:
        lines.append(title)
        lines.append("=" * 60)

    lines.append(f"Model: {result.best_model_name} ({result.method}, alpha={result.alpha})")
    lines.append(f"Window: last {result.k} days held out")
    lines.append(
        f"Outliers: {result.n_outliers} "
        f"({result.n_outliers_train} in training, {result.n_outliers_recent} recent), "
        f"p-value {result.p_value:.4g}"
    )

    if not result.comparison.empty:
        lines.append("Model comparison:")
        for _, row in result.comparison.iterrows():
            lines.append(f"  {row['model']}: {row['score']:.3f}")
    for name, reason in result.model_failures.items():
        lines.append(f"  {name}: failed ({reason})")

    outliers = result.outliers()
    if outliers.empty:
        lines.append("No outliers flagged.")
    else:
        lines.append("Flagged days:")
        for _, row in outliers.iterrows():
            if "date" in row and isinstance(row["date"], pd.Timestamp):
                when = row["date"].strftime("%Y-%m-%d")
            else:
                when = f"day {row['day']}"
            marker = CLASSIFICATION_MARKERS.get(str(row["classification"]), "?")
            lines.append(
                f"  {marker} {when} [{row['segment']}]: {row['count']} "
                f"outside [{row['lower']}, {row['upper']}] ({row['classification']})"
            )

    return "\n".join(lines)


def format_grouped_for_console(grouped: GroupedAsmodeeResult) -> str:
    """Build a human-readable summary of a per-group run.

    Args:
        grouped: GroupedAsmodeeResult containing results and failures

    Returns:
        Human-readable text string for console output
    """
    if not grouped.results and not grouped.failures:
        return "No groups processed."

    lines = []
    for group, result in grouped.results.items():
        lines.append(format_result_for_console(result, title=str(group)))
        lines.append("")  # Blank line between groups

    if grouped.failures:
        lines.append("Failed groups:")
        lines.append("-" * 60)
        for group, reason in grouped.failures.items():
            lines.append(f"  {group}: {reason}")

    return "\n".join(lines)
