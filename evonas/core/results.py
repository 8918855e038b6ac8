"""
Records produced while evaluating architectures.

`EvaluationOutcome` is what an evaluator hands back after training a
candidate; `SearchResult` is the immutable snapshot the search controllers keep
for every successful trial.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from .architecture import ArchitectureModel


@dataclass(frozen=True)
class TrainingEpoch:
    """Metrics captured at the end of one training epoch."""

    epoch: int
    train_loss: float
    val_loss: float
    train_accuracy: float
    val_accuracy: float
    learning_rate: float

    @property
    def loss_gap(self) -> float:
        return self.train_loss - self.val_loss

    @property
    def accuracy_gap(self) -> float:
        return self.val_accuracy - self.train_accuracy

    @property
    def is_overfitting(self) -> bool:
        return self.loss_gap > 0.1 and self.accuracy_gap < -2.0

    def __str__(self) -> str:
        return (
            f"Epoch {self.epoch}: Train={self.train_loss:.4f}({self.train_accuracy:.2f}%), "
            f"Val={self.val_loss:.4f}({self.val_accuracy:.2f}%), LR={self.learning_rate:.2e}"
        )


@dataclass
class EvaluationOutcome:
    """Result of training one architecture, as reported by an evaluator."""

    accuracy: float
    training_time: float
    parameter_count: int
    history: List[TrainingEpoch] = field(default_factory=list)


@dataclass(frozen=True)
class SearchResult:
    """Snapshot of one evaluated trial."""

    architecture: ArchitectureModel
    accuracy: float
    training_time: float
    parameter_count: int
    fitness: float = 0.0
    signature: str = ""
    timestamp: datetime = field(default_factory=datetime.now)
    history: Tuple[TrainingEpoch, ...] = ()

    @classmethod
    def from_outcome(
        cls,
        architecture: ArchitectureModel,
        outcome: EvaluationOutcome,
        *,
        fitness: float = 0.0,
        signature: str = "",
    ) -> "SearchResult":
        """Build a result around a private clone of ``architecture``."""
        snapshot = architecture.clone()
        snapshot.name = architecture.name
        snapshot.accuracy = outcome.accuracy
        snapshot.training_time = outcome.training_time
        return cls(
            architecture=snapshot,
            accuracy=outcome.accuracy,
            training_time=outcome.training_time,
            parameter_count=outcome.parameter_count,
            fitness=fitness,
            signature=signature,
            history=tuple(outcome.history),
        )

    def recent_epochs(self, count: int) -> List[TrainingEpoch]:
        """Return the last ``count`` epochs in chronological order."""
        ordered = sorted(self.history, key=lambda e: e.epoch)
        return ordered[-count:] if count > 0 else []

    def had_plateau(self, window: int = 10, tolerance: float = 0.001) -> bool:
        """True when validation accuracy moved less than ``tolerance`` over the last ``window`` epochs."""
        if len(self.history) < window:
            return False
        recent = self.recent_epochs(window)
        return abs(recent[-1].val_accuracy - recent[0].val_accuracy) <= tolerance

    def best_epoch(self) -> Optional[TrainingEpoch]:
        if not self.history:
            return None
        return min(self.history, key=lambda e: (-e.val_accuracy, e.val_loss))

    def learning_speed(self) -> float:
        """Average validation accuracy gained per epoch."""
        if len(self.history) < 2:
            return 0.0
        ordered = sorted(self.history, key=lambda e: e.epoch)
        first, last = ordered[0], ordered[-1]
        span = last.epoch - first.epoch
        return (last.val_accuracy - first.val_accuracy) / span if span > 0 else 0.0

    def as_record(self) -> dict:
        """Flat dictionary used for history tables."""
        return {
            "name": self.architecture.name,
            "accuracy": self.accuracy,
            "training_time": self.training_time,
            "parameter_count": self.parameter_count,
            "fitness": self.fitness,
            "layers": len(self.architecture),
            "signature": self.signature,
            "timestamp": self.timestamp.isoformat(),
        }


__all__ = ["EvaluationOutcome", "SearchResult", "TrainingEpoch"]
