"""Output formatting for ASMODEE results."""

from asmodee.formatters.console import format_grouped_for_console, format_result_for_console

__all__ = ["format_grouped_for_console", "format_result_for_console"]
