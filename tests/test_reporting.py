"""
Tests for the history tables written next to each run.
"""

from pathlib import Path

import pandas as pd

from evonas.core import ArchitectureModel, EvaluationOutcome, SearchResult
from evonas.evolution import GenerationStats, Individual
from evonas.reporting import generation_stats_to_frame, individuals_to_frame, results_to_frame, write_history


def test_results_frame_is_ranked_by_accuracy(simple_architecture: ArchitectureModel) -> None:
    results = [
        SearchResult.from_outcome(simple_architecture, EvaluationOutcome(acc, 1.0, 10), fitness=acc / 100)
        for acc in (40.0, 90.0, 65.0)
    ]
    frame = results_to_frame(results)
    assert list(frame["accuracy"]) == [90.0, 65.0, 40.0]
    assert list(frame["rank"]) == [1, 2, 3]
    assert results_to_frame([]).empty


def test_generation_frame_tracks_running_best() -> None:
    stats = [
        GenerationStats(0, 0.5, 0.1, 0.3, 60.0, 50.0, 5, 9, 0),
        GenerationStats(1, 0.4, 0.1, 0.3, 55.0, 50.0, 5, 9, 1),
        GenerationStats(2, 0.7, 0.2, 0.4, 80.0, 60.0, 6, 10, 0),
    ]
    frame = generation_stats_to_frame(stats)
    assert list(frame["best_fitness_so_far"]) == [0.5, 0.5, 0.7]
    assert generation_stats_to_frame([]).empty


def test_individuals_frame_and_csv(tmp_path: Path, simple_architecture: ArchitectureModel) -> None:
    individual = Individual(simple_architecture, fitness=0.42, generation=3, lineage=["Initialization", "Elite"])
    frame = individuals_to_frame([individual])
    assert frame.loc[0, "lineage"] == "Initialization -> Elite"
    path = write_history(tmp_path / "nested" / "population.csv", frame)
    loaded = pd.read_csv(path)
    assert loaded.loc[0, "name"] == "simple"
    assert loaded.loc[0, "layers"] == 8
