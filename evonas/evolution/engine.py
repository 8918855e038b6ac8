"""
Genetic architecture search.

The engine evolves a population of architectures generation by generation:
evaluate the unscored individuals, remember the best one seen so far, carry the
elite over unchanged and fill the rest of the next generation with crossover
and mutation offspring picked by tournament selection.  Evaluation failures
are scored with a small floor fitness so a broken candidate never aborts a
generation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Union

import numpy as np
from loguru import logger

from evonas.evaluation.base import DataSource
from evonas.exceptions import EvaluationError

from .controller import BaseSearchController, SearchState
from .fitness import FAILURE_FITNESS
from .operators import GeneticOperators
from .population import Individual, PopulationManager


@dataclass
class GeneticConfig:
    """Hyperparameters guiding the evolutionary search."""

    population_size: int = 20
    generations: int = 50
    crossover_rate: float = 0.8
    mutation_rate: float = 0.3
    elite_ratio: float = 0.2
    tournament_size: int = 3
    min_layers: int = 4
    max_layers: int = 15
    epochs_per_evaluation: int = 10
    early_stopping: bool = True
    early_stopping_start: int = 10
    early_stopping_window: int = 5


@dataclass
class GenerationStats:
    """Summary of one evaluated generation."""

    generation: int
    best_fitness: float
    worst_fitness: float
    mean_fitness: float
    best_accuracy: float
    mean_accuracy: float
    min_layers: int
    max_layers: int
    failures: int

    def as_record(self) -> Dict[str, float]:
        return asdict(self)


class GeneticSearchController(BaseSearchController):
    """Central coordinator for the evolutionary architecture search."""

    def __init__(
        self,
        evaluator,
        config: Optional[GeneticConfig] = None,
        operators: Optional[GeneticOperators] = None,
        **kwargs,
    ) -> None:
        """Create a new genetic search controller.

        Parameters
        ----------
        evaluator : BaseEvaluator
            Component responsible for training candidate architectures.
        config : GeneticConfig, optional
            Population size, rates, layer range and early stopping settings.
        operators : GeneticOperators, optional
            Crossover/mutation/repair implementation; built from the generator when omitted.
        **kwargs
            Forwarded to :class:`BaseSearchController` (generator, fitness
            evaluator, experiment logger, progress callback, stop event, seed).
        """
        super().__init__(evaluator, **kwargs)
        self.config = config or GeneticConfig()
        self.operators = operators or GeneticOperators(self.generator, self.rng)
        self.population = PopulationManager(self.generator, self.config.population_size)
        self.best_individual: Optional[Individual] = None
        self.history: List[GenerationStats] = []
        self.generations_run = 0
        self.stopped_early = False
        self.failure_count = 0

    def evolve(self, data_source: Union[int, DataSource]) -> Optional[Individual]:
        """
        Run the evolutionary loop.

        Returns the best successfully evaluated individual across all
        generations, or ``None`` when every evaluation failed.
        """

        cfg = self.config
        class_count = self._class_count(data_source)
        self.logger.log_message(
            f"Genetic architecture search: population {cfg.population_size}, generations {cfg.generations}, "
            f"crossover {cfg.crossover_rate}, elite {cfg.elite_ratio * 100:.0f}%, tournament {cfg.tournament_size}"
        )

        self.state = SearchState.INITIALIZING
        self.population.seed(class_count, cfg.min_layers, cfg.max_layers)

        for generation in range(cfg.generations):
            if self.cancelled:
                self.logger.log_message(f"Search cancelled before generation {generation + 1}.")
                break
            self.logger.log_message(f"Generation {generation + 1}/{cfg.generations}")

            self.state = SearchState.EVALUATING
            self._evaluate_population(generation)

            self.state = SearchState.SELECTING
            self._update_best()
            stats = self._record_stats(generation)
            self.generations_run = generation + 1
            self.logger.log_metrics(
                {"best_fitness": stats.best_fitness, "mean_fitness": stats.mean_fitness},
                step=generation,
            )
            self._notify(self.best_individual)

            if self._should_stop_early(generation):
                self.stopped_early = True
                self.logger.log_message(f"Early stopping at generation {generation + 1}")
                break

            if generation < cfg.generations - 1:
                self.state = SearchState.REPRODUCING
                self.population.replace(self._create_new_generation(generation))

        self.state = SearchState.DONE
        self._log_final()
        return self.best_individual

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def _evaluate_population(self, generation: int) -> None:
        pending = self.population.unevaluated()
        for idx, individual in enumerate(pending, start=1):
            logger.debug("Evaluating individual {}/{}: {}", idx, len(pending), individual.architecture.name)
            try:
                outcome = self.evaluator.evaluate(individual.architecture, self.config.epochs_per_evaluation)
            except EvaluationError as exc:
                self.failure_count += 1
                individual.fitness = FAILURE_FITNESS
                individual.accuracy = 0.0
                individual.failed = True
                self.logger.log_warning(f"Evaluation failed for {individual.architecture.name}: {exc}")
                continue

            individual.accuracy = outcome.accuracy
            individual.training_time = outcome.training_time
            individual.parameter_count = outcome.parameter_count
            individual.fitness = self.fitness_evaluator.score_outcome(outcome)
            individual.generation = generation
            individual.architecture.accuracy = outcome.accuracy
            individual.architecture.training_time = outcome.training_time
            logger.debug(
                "{}: accuracy {:.2f}%, fitness {:.4f}",
                individual.architecture.name,
                individual.accuracy,
                individual.fitness,
            )

    def _update_best(self) -> None:
        candidates = [ind for ind in self.population.individuals if ind.evaluated and not ind.failed]
        if not candidates:
            return
        current = max(candidates, key=lambda ind: ind.sort_key)
        if self.best_individual is None or current.fitness > self.best_individual.fitness:
            self.best_individual = current.snapshot()
            self.logger.log_message(f"New best individual: {self.best_individual}")

    def _record_stats(self, generation: int) -> GenerationStats:
        individuals = self.population.individuals
        fitness = np.array([ind.sort_key for ind in individuals], dtype=float)
        accuracy = np.array([ind.accuracy for ind in individuals], dtype=float)
        sizes = [len(ind.architecture) for ind in individuals]
        stats = GenerationStats(
            generation=generation,
            best_fitness=float(fitness.max()),
            worst_fitness=float(fitness.min()),
            mean_fitness=float(fitness.mean()),
            best_accuracy=float(accuracy.max()),
            mean_accuracy=float(accuracy.mean()),
            min_layers=min(sizes),
            max_layers=max(sizes),
            failures=sum(1 for ind in individuals if ind.failed),
        )
        self.history.append(stats)
        self.logger.log_message(
            f"Generation {generation + 1} stats: best {stats.best_fitness:.4f}, worst {stats.worst_fitness:.4f}, "
            f"mean {stats.mean_fitness:.4f} fitness; mean accuracy {stats.mean_accuracy:.2f}%; "
            f"{stats.min_layers}-{stats.max_layers} layers"
        )
        return stats

    def _should_stop_early(self, generation: int) -> bool:
        """Stop once the current best no longer beats the best of the previous window."""
        cfg = self.config
        if not cfg.early_stopping or generation < cfg.early_stopping_start:
            return False
        window = self.history[-(cfg.early_stopping_window + 1):-1]
        if not window:
            return False
        return self.history[-1].best_fitness <= max(stats.best_fitness for stats in window)

    # ------------------------------------------------------------------
    # Reproduction
    # ------------------------------------------------------------------
    def _create_new_generation(self, generation: int) -> List[Individual]:
        cfg = self.config
        size = cfg.population_size
        elite_count = int(size * cfg.elite_ratio)
        offspring: List[Individual] = [ind.as_elite() for ind in self.population.top_k(elite_count)]

        while len(offspring) < size:
            if self.rng.random() < cfg.crossover_rate and len(offspring) < size - 1:
                parent_a = self.population.tournament(cfg.tournament_size)
                parent_b = self.population.tournament(cfg.tournament_size)
                child_a, child_b = self.operators.crossover(parent_a.architecture, parent_b.architecture)
                tag = f"Crossover(P1:{parent_a.generation},P2:{parent_b.generation})"
                child_generation = max(parent_a.generation, parent_b.generation) + 1
                for child in (child_a, child_b):
                    if len(offspring) < size:
                        offspring.append(Individual(architecture=child, generation=child_generation, lineage=[tag]))
            else:
                parent = self.population.tournament(cfg.tournament_size)
                kind = self.operators.choose_mutation()
                child = self.operators.mutate(parent.architecture, kind)
                offspring.append(
                    Individual(
                        architecture=child,
                        generation=parent.generation + 1,
                        lineage=[*parent.lineage, f"Mutation({kind.value})"],
                    )
                )

        for idx, individual in enumerate(offspring[elite_count:], start=elite_count):
            individual.architecture.name = f"Gen{generation + 1}_Ind{idx}"
        return offspring

    def _log_final(self) -> None:
        self.logger.log_message(
            f"Genetic search finished after {self.generations_run} generations "
            f"({self.failure_count} failed evaluations)"
        )
        best = self.best_individual
        if best is None:
            self.logger.log_message("No individual was evaluated successfully.")
        else:
            self.logger.log_message(f"Best individual (generation {best.generation}): {best}")
            self.logger.log_message(f"Lineage: {' -> '.join(best.lineage)}")
            logger.info("\n{}", best.architecture.summary())
        for rank, individual in enumerate(self.population.top_k(5), start=1):
            self.logger.log_message(f"  {rank}. {individual}")


__all__ = ["GenerationStats", "GeneticConfig", "GeneticSearchController"]
