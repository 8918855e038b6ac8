"""
Tests for fitness aggregation.
"""

import pytest

from evonas.core import EvaluationOutcome
from evonas.evolution import FAILURE_FITNESS, FitnessEvaluator


def test_fitness_increases_with_accuracy() -> None:
    evaluator = FitnessEvaluator()
    scores = [evaluator.score(accuracy, 50_000, 30.0) for accuracy in (0.0, 10.0, 50.0, 90.0, 100.0)]
    assert scores == sorted(scores)
    assert len(set(scores)) == len(scores)


def test_fitness_does_not_increase_with_size_or_time() -> None:
    evaluator = FitnessEvaluator()
    by_size = [evaluator.score(80.0, params, 30.0) for params in (0, 10, 1_000, 1_000_000, 50_000_000)]
    assert by_size == sorted(by_size, reverse=True)
    by_time = [evaluator.score(80.0, 1_000, seconds) for seconds in (0.0, 1.0, 60.0, 3600.0)]
    assert by_time == sorted(by_time, reverse=True)


def test_fitness_bounds_and_weights() -> None:
    evaluator = FitnessEvaluator()
    assert evaluator.score(100.0, 0, 0.0) == pytest.approx(1.0)
    assert 0.0 < evaluator.score(0.0, 10**9, 10**6) < FAILURE_FITNESS * 100
    accuracy_only = FitnessEvaluator(accuracy_weight=1.0, complexity_weight=0.0, speed_weight=0.0)
    assert accuracy_only.score(42.0, 123, 4.0) == pytest.approx(0.42)


def test_score_outcome_matches_score() -> None:
    evaluator = FitnessEvaluator()
    outcome = EvaluationOutcome(accuracy=75.0, training_time=12.0, parameter_count=4096)
    assert evaluator.score_outcome(outcome) == evaluator.score(75.0, 4096, 12.0)
