"""
Fitness aggregation utilities for EvoNAS.

The evaluator turns the raw outcome of a training run into a single scalar
suitable for ranking architectures.  Accuracy dominates the score; model size
is penalised logarithmically and training time hyperbolically, so every term
stays within ``(0, 1]`` and the total never leaves that range.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from evonas.core import EvaluationOutcome

FAILURE_FITNESS = 0.01


@dataclass
class FitnessEvaluator:
    """Compute a scalar fitness value from evaluation metrics."""

    accuracy_weight: float = 0.7
    complexity_weight: float = 0.2
    speed_weight: float = 0.1

    def score(self, accuracy: float, parameter_count: int, training_time: float) -> float:
        """
        Combine metrics into a fitness score.

        ``accuracy`` is a percentage, ``parameter_count`` the number of trainable
        weights and ``training_time`` is measured in seconds.
        """

        accuracy_score = accuracy / 100.0
        complexity_score = 1.0 / (1.0 + math.log(parameter_count + 1) / 10.0)
        speed_score = 1.0 / (1.0 + training_time / 60.0)
        return float(
            self.accuracy_weight * accuracy_score
            + self.complexity_weight * complexity_score
            + self.speed_weight * speed_score
        )

    def score_outcome(self, outcome: EvaluationOutcome) -> float:
        return self.score(outcome.accuracy, outcome.parameter_count, outcome.training_time)


__all__ = ["FAILURE_FITNESS", "FitnessEvaluator"]
