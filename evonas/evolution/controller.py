"""
Shared plumbing for the search controllers.

Both controllers evaluate one architecture at a time, report progress through
an optional synchronous callback and honour a cooperative stop signal that is
checked between trials or generations, never in the middle of an evaluation.
"""

from __future__ import annotations

import random
import threading
from enum import Enum
from typing import Any, Callable, Optional, Union

from loguru import logger

from evonas.evaluation.base import BaseEvaluator, DataSource
from evonas.utils.logger import ExperimentLogger

from .fitness import FitnessEvaluator
from .generator import ArchitectureGenerator

ProgressCallback = Callable[[Any], None]


class SearchState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    EVALUATING = "evaluating"
    SELECTING = "selecting"
    REPRODUCING = "reproducing"
    DONE = "done"


class BaseSearchController:
    """Common state for random and genetic search."""

    def __init__(
        self,
        evaluator: BaseEvaluator,
        generator: Optional[ArchitectureGenerator] = None,
        fitness_evaluator: Optional[FitnessEvaluator] = None,
        experiment_logger: Optional[ExperimentLogger] = None,
        progress: Optional[ProgressCallback] = None,
        stop_event: Optional[threading.Event] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.evaluator = evaluator
        self.generator = generator or ArchitectureGenerator(rng=random.Random(seed))
        self.fitness_evaluator = fitness_evaluator or FitnessEvaluator()
        self.logger = experiment_logger or ExperimentLogger()
        self.progress = progress
        self.stop_event = stop_event or threading.Event()
        self.state = SearchState.IDLE

    @property
    def rng(self) -> random.Random:
        return self.generator.rng

    def cancel(self) -> None:
        """Ask the running search to stop after the current trial or generation."""
        self.stop_event.set()

    @property
    def cancelled(self) -> bool:
        return self.stop_event.is_set()

    def _notify(self, payload: Any) -> None:
        if self.progress is None or payload is None:
            return
        try:
            self.progress(payload)
        except Exception:
            logger.exception("Progress callback raised; the search continues.")

    @staticmethod
    def _class_count(source: Union[int, DataSource]) -> int:
        if isinstance(source, DataSource):
            return source.class_count
        return int(source)


__all__ = ["BaseSearchController", "ProgressCallback", "SearchState"]
