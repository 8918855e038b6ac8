"""Evaluator and data source interfaces consumed by the search controllers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from evonas.core import ArchitectureModel, EvaluationOutcome


class BaseEvaluator(ABC):
    """
    Train and score one architecture.

    Implementations must raise :class:`evonas.exceptions.EvaluationError` for any
    failure inside training; the controllers catch it per trial and keep going.
    The architecture passed in must not be modified.
    """

    @abstractmethod
    def evaluate(self, architecture: ArchitectureModel, epoch_budget: int) -> EvaluationOutcome:
        """Train ``architecture`` for at most ``epoch_budget`` epochs and report the outcome."""


class DataSource(ABC):
    """Dataset handle; the search engine only reads :attr:`class_count` from it."""

    @property
    @abstractmethod
    def class_count(self) -> int:
        """Number of target classes."""

    @property
    def image_size(self) -> int:
        return 64

    @property
    def input_channels(self) -> int:
        return 1


@dataclass
class StaticDataSource(DataSource):
    """Data source that carries only shape metadata, for evaluators that own their data."""

    num_classes: int
    size: int = 64
    channels: int = 1

    @property
    def class_count(self) -> int:
        return self.num_classes

    @property
    def image_size(self) -> int:
        return self.size

    @property
    def input_channels(self) -> int:
        return self.channels


__all__ = ["BaseEvaluator", "DataSource", "StaticDataSource"]
