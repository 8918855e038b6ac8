"""
Deduplicating random architecture search.

Each trial draws a fresh architecture, skipping structures that were already
evaluated, trains it through the evaluator and keeps the most accurate result.
A failed evaluation only costs its own trial.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from loguru import logger

from evonas.core import ArchitectureModel, SearchResult
from evonas.evaluation.base import DataSource
from evonas.exceptions import EvaluationError, InvalidArchitectureError

from .controller import BaseSearchController, SearchState
from .signature import MAX_ATTEMPTS, Deduplicator


@dataclass
class RandomSearchConfig:
    """Hyperparameters of a random search."""

    num_trials: int = 50
    min_layers: int = 5
    max_layers: int = 12
    epochs_per_trial: int = 5
    max_attempts: int = MAX_ATTEMPTS


@dataclass
class TrialFailure:
    trial: int
    architecture: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


class RandomSearchController(BaseSearchController):
    """Drive ``num_trials`` independent generate, evaluate, record trials."""

    def __init__(self, evaluator, config: Optional[RandomSearchConfig] = None, **kwargs) -> None:
        super().__init__(evaluator, **kwargs)
        self.config = config or RandomSearchConfig()
        self.deduplicator = Deduplicator()
        self.results: List[SearchResult] = []
        self.failures: List[TrialFailure] = []
        self.skipped_trials: List[int] = []
        self.best_result: Optional[SearchResult] = None

    def search(self, data_source: Union[int, DataSource]) -> Optional[SearchResult]:
        """
        Run the configured number of trials.

        Returns the most accurate result, or ``None`` when no trial completed
        successfully.
        """

        cfg = self.config
        class_count = self._class_count(data_source)
        self.state = SearchState.RUNNING
        self.logger.log_message(
            f"Random architecture search: {cfg.num_trials} trials, {cfg.epochs_per_trial} epochs per trial, "
            f"layers {cfg.min_layers}-{cfg.max_layers}"
        )

        for trial in range(cfg.num_trials):
            if self.cancelled:
                self.logger.log_message(f"Search cancelled before trial {trial + 1}.")
                break
            self._run_trial(trial, class_count)
            self._notify(self.best_result)

        self.state = SearchState.DONE
        self._log_final()
        return self.best_result

    def _run_trial(self, trial: int, class_count: int) -> None:
        cfg = self.config
        self.logger.log_message(f"Trial {trial + 1}/{cfg.num_trials}")
        architecture = self._draw_unique(class_count)
        if architecture is None:
            self.skipped_trials.append(trial)
            self.logger.log_message(
                f"No unique architecture after {cfg.max_attempts} attempts; skipping trial {trial + 1}."
            )
            return
        logger.debug("Candidate architecture:\n{}", architecture.summary())

        try:
            outcome = self.evaluator.evaluate(architecture, cfg.epochs_per_trial)
        except EvaluationError as exc:
            self.failures.append(TrialFailure(trial, architecture.name, str(exc)))
            self.logger.log_warning(f"Trial {trial + 1} failed: {exc}")
            return

        architecture.accuracy = outcome.accuracy
        architecture.training_time = outcome.training_time
        sig = self.deduplicator.register(architecture)
        result = SearchResult.from_outcome(
            architecture,
            outcome,
            fitness=self.fitness_evaluator.score_outcome(outcome),
            signature=sig,
        )
        self.results.append(result)
        self.logger.log_metrics(
            {"accuracy": result.accuracy, "training_time": result.training_time, "fitness": result.fitness},
            step=trial,
        )

        if self.best_result is None or result.accuracy > self.best_result.accuracy:
            self.best_result = result
            self.logger.log_message(f"New best result: {result.accuracy:.2f}% ({architecture.name})")
        self.logger.log_message(
            f"Trial {trial + 1} finished: {result.accuracy:.2f}% in {result.training_time:.1f}s"
        )

    def _draw_unique(self, class_count: int) -> Optional[ArchitectureModel]:
        cfg = self.config
        for attempt in range(cfg.max_attempts):
            try:
                candidate = self.generator.generate_random(cfg.min_layers, cfg.max_layers, class_count)
            except InvalidArchitectureError as exc:
                logger.debug("Generation attempt {} rejected: {}", attempt + 1, exc)
                continue
            if not self.deduplicator.is_duplicate(candidate):
                return candidate
            logger.debug("Duplicate architecture drawn: {}", candidate.name)
        return None

    def _log_final(self) -> None:
        self.logger.log_message(
            f"Random search finished: {len(self.results)} evaluated, {len(self.failures)} failed, "
            f"{len(self.skipped_trials)} skipped"
        )
        best = self.best_result
        if best is None:
            self.logger.log_message("No architecture was evaluated successfully.")
            return
        self.logger.log_message(
            f"Best architecture: {best.accuracy:.2f}% accuracy, {best.training_time:.1f}s, "
            f"{best.parameter_count:,} parameters, {len(best.architecture)} layers"
        )
        logger.info("\n{}", best.architecture.summary())


__all__ = ["RandomSearchConfig", "RandomSearchController", "TrialFailure"]
