"""Reporting exports."""

from .history import generation_stats_to_frame, individuals_to_frame, results_to_frame, write_history

__all__ = ["generation_stats_to_frame", "individuals_to_frame", "results_to_frame", "write_history"]
