"""
Tests for the genetic search controller.
"""

from typing import List

from evonas.evaluation import StaticDataSource
from evonas.evolution import FAILURE_FITNESS, GeneticConfig, GeneticSearchController, Individual


def _config(**changes) -> GeneticConfig:
    base = dict(population_size=6, generations=4, min_layers=4, max_layers=10, epochs_per_evaluation=1)
    base.update(changes)
    return GeneticConfig(**base)


def test_constant_fitness_triggers_early_stopping(constant_evaluator) -> None:
    controller = GeneticSearchController(constant_evaluator, _config(generations=12), seed=0)
    best = controller.evolve(10)
    assert controller.stopped_early
    assert controller.generations_run == 11
    assert controller.history[-1].generation == 10
    assert best is not None


def test_early_stopping_can_be_disabled(constant_evaluator) -> None:
    controller = GeneticSearchController(constant_evaluator, _config(generations=12, early_stopping=False), seed=0)
    controller.evolve(10)
    assert not controller.stopped_early
    assert controller.generations_run == 12


def test_population_size_is_kept_and_lineage_recorded(structural_evaluator) -> None:
    controller = GeneticSearchController(structural_evaluator, _config(generations=3), seed=1)
    controller.evolve(StaticDataSource(num_classes=5))
    population = controller.population.individuals
    assert len(population) == 6
    assert all(ind.evaluated for ind in population)
    tags = [tag for ind in population for tag in ind.lineage]
    assert any(tag == "Elite" for tag in tags)
    assert any(tag.startswith("Crossover(P1:") or tag.startswith("Mutation(") for tag in tags)
    assert all(ind.architecture[-1].params.num_classes == 5 for ind in population if ind.architecture.validate())


def test_elitism_keeps_the_generation_best_non_decreasing(structural_evaluator) -> None:
    controller = GeneticSearchController(
        structural_evaluator, _config(generations=6, early_stopping=False), seed=2
    )
    best = controller.evolve(10)
    series = [stats.best_fitness for stats in controller.history]
    assert series == sorted(series)
    assert best.fitness == max(series)


def test_best_individual_is_an_independent_snapshot(structural_evaluator) -> None:
    controller = GeneticSearchController(structural_evaluator, _config(generations=3), seed=3)
    best = controller.evolve(10)
    assert isinstance(best, Individual)
    assert all(best.architecture is not ind.architecture for ind in controller.population.individuals)
    assert best.accuracy == best.architecture.accuracy


def test_all_failures_yield_no_best(failing_evaluator) -> None:
    controller = GeneticSearchController(failing_evaluator, _config(generations=2), seed=4)
    best = controller.evolve(10)
    assert best is None
    assert controller.failure_count > 0
    assert all(ind.fitness == FAILURE_FITNESS for ind in controller.population.individuals)
    assert controller.history[0].failures == 6


def test_same_seed_gives_the_same_history(structural_evaluator) -> None:
    histories = []
    for _ in range(2):
        controller = GeneticSearchController(structural_evaluator, _config(generations=3), seed=99)
        controller.evolve(10)
        histories.append([stats.as_record() for stats in controller.history])
    assert histories[0] == histories[1]


def test_progress_and_cancellation(constant_evaluator) -> None:
    seen: List[Individual] = []
    controller = GeneticSearchController(constant_evaluator, _config(generations=10, early_stopping=False), seed=5)

    def on_progress(best: Individual) -> None:
        seen.append(best)
        if len(seen) == 2:
            controller.cancel()

    controller.progress = on_progress
    best = controller.evolve(10)
    assert controller.generations_run == 2
    assert len(seen) == 2
    assert best is not None
