"""
Tabular history of a search run.

Random search produces one row per successful trial, genetic search one row
per generation.  Both are exported as CSV next to the run metrics.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence, Union

import pandas as pd

from evonas.core import SearchResult
from evonas.evolution.engine import GenerationStats
from evonas.evolution.population import Individual

RESULT_COLUMNS = ["name", "accuracy", "training_time", "parameter_count", "fitness", "layers", "signature", "timestamp"]
INDIVIDUAL_COLUMNS = ["name", "generation", "fitness", "accuracy", "training_time", "parameter_count", "layers", "failed", "lineage"]


def results_to_frame(results: Iterable[SearchResult]) -> pd.DataFrame:
    """One row per evaluated architecture, ranked by accuracy."""
    frame = pd.DataFrame([result.as_record() for result in results], columns=RESULT_COLUMNS)
    if frame.empty:
        return frame
    frame = frame.sort_values("accuracy", ascending=False, kind="stable").reset_index(drop=True)
    frame.insert(0, "rank", range(1, len(frame) + 1))
    return frame


def individuals_to_frame(individuals: Iterable[Individual]) -> pd.DataFrame:
    rows = [
        {
            "name": ind.architecture.name,
            "generation": ind.generation,
            "fitness": ind.fitness,
            "accuracy": ind.accuracy,
            "training_time": ind.training_time,
            "parameter_count": ind.parameter_count,
            "layers": len(ind.architecture),
            "failed": ind.failed,
            "lineage": " -> ".join(ind.lineage),
        }
        for ind in individuals
    ]
    return pd.DataFrame(rows, columns=INDIVIDUAL_COLUMNS)


def generation_stats_to_frame(stats: Sequence[GenerationStats]) -> pd.DataFrame:
    """Per-generation statistics with the running best fitness."""
    frame = pd.DataFrame([item.as_record() for item in stats])
    if frame.empty:
        return frame
    frame["best_fitness_so_far"] = frame["best_fitness"].cummax()
    return frame


def write_history(path: Union[str, Path], frame: pd.DataFrame) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(target, index=False)
    return target


__all__ = [
    "generation_stats_to_frame",
    "individuals_to_frame",
    "results_to_frame",
    "write_history",
]
