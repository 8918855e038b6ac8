"""Shared fixtures and evaluator stubs for the EvoNAS test-suite."""

from __future__ import annotations

from typing import List

import pytest

from evonas.core import ArchitectureModel, EvaluationOutcome, LayerSpec
from evonas.evaluation import BaseEvaluator
from evonas.exceptions import EvaluationError


class ConstantEvaluator(BaseEvaluator):
    """Return the same outcome for every architecture."""

    def __init__(self, accuracy: float = 80.0, training_time: float = 2.0, parameter_count: int = 1000) -> None:
        self.outcome = EvaluationOutcome(accuracy, training_time, parameter_count)
        self.calls: List[str] = []

    def evaluate(self, architecture: ArchitectureModel, epoch_budget: int) -> EvaluationOutcome:
        self.calls.append(architecture.name)
        return EvaluationOutcome(self.outcome.accuracy, self.outcome.training_time, self.outcome.parameter_count)


class FailingEvaluator(BaseEvaluator):
    """Raise for every architecture."""

    def __init__(self) -> None:
        self.calls = 0

    def evaluate(self, architecture: ArchitectureModel, epoch_budget: int) -> EvaluationOutcome:
        self.calls += 1
        raise EvaluationError("training diverged", context={"architecture": architecture.name})


class LayerCountEvaluator(BaseEvaluator):
    """Deterministic outcome derived from the architecture structure."""

    def evaluate(self, architecture: ArchitectureModel, epoch_budget: int) -> EvaluationOutcome:
        accuracy = min(50.0 + 3.0 * len(architecture), 99.0)
        return EvaluationOutcome(accuracy=accuracy, training_time=1.0, parameter_count=100 * len(architecture))


@pytest.fixture
def simple_architecture() -> ArchitectureModel:
    """conv, pool, conv, pool, flatten, dense, dense, output."""
    return ArchitectureModel(
        "simple",
        [
            LayerSpec.conv("conv_1", 16, 3),
            LayerSpec.pool("pool_1"),
            LayerSpec.conv("conv_2", 32, 5, "leaky_relu"),
            LayerSpec.pool("pool_2", "avg"),
            LayerSpec.flatten(),
            LayerSpec.dense("dense_1", 128, dropout=0.2),
            LayerSpec.dense("dense_2", 64, "none"),
            LayerSpec.output("output", 10),
        ],
    )


@pytest.fixture
def other_architecture() -> ArchitectureModel:
    return ArchitectureModel(
        "other",
        [
            LayerSpec.conv("conv_a", 8, 5),
            LayerSpec.pool("pool_a", "avg"),
            LayerSpec.conv("conv_b", 24, 3),
            LayerSpec.pool("pool_b"),
            LayerSpec.flatten(),
            LayerSpec.dense("dense_a", 256),
            LayerSpec.dense("dense_b", 48, "none"),
            LayerSpec.output("output", 10),
        ],
    )


@pytest.fixture
def constant_evaluator() -> ConstantEvaluator:
    return ConstantEvaluator()


@pytest.fixture
def failing_evaluator() -> FailingEvaluator:
    return FailingEvaluator()


@pytest.fixture
def structural_evaluator() -> LayerCountEvaluator:
    return LayerCountEvaluator()
