"""
Population management utilities for EvoNAS evolution cycles.

An `Individual` wraps an architecture with its genetic bookkeeping (fitness,
generation, lineage).  The `PopulationManager` seeds the initial population and
provides the sorting and selection helpers used by the genetic controller.
"""

from __future__ import annotations

import itertools
import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from evonas.core import ArchitectureModel
from evonas.exceptions import InvalidArchitectureError

from .generator import ArchitectureGenerator
from .signature import MAX_ATTEMPTS

_individual_id = itertools.count()


@dataclass
class Individual:
    """Container representing an architecture candidate."""

    architecture: ArchitectureModel
    fitness: Optional[float] = None
    accuracy: float = 0.0
    training_time: float = 0.0
    parameter_count: int = 0
    generation: int = 0
    lineage: List[str] = field(default_factory=list)
    failed: bool = False
    id: int = field(default_factory=lambda: next(_individual_id))

    @property
    def evaluated(self) -> bool:
        return self.fitness is not None

    @property
    def sort_key(self) -> float:
        return self.fitness if self.fitness is not None else float("-inf")

    def as_elite(self) -> "Individual":
        """Copy carried verbatim into the next generation."""
        architecture = self.architecture.clone()
        architecture.name = self.architecture.name
        return Individual(
            architecture=architecture,
            fitness=self.fitness,
            accuracy=self.accuracy,
            training_time=self.training_time,
            parameter_count=self.parameter_count,
            failed=self.failed,
            generation=self.generation + 1,
            lineage=[*self.lineage, "Elite"],
        )

    def snapshot(self) -> "Individual":
        """Independent copy used to remember the best individual across generations."""
        architecture = self.architecture.clone()
        architecture.name = self.architecture.name
        return Individual(
            architecture=architecture,
            fitness=self.fitness,
            accuracy=self.accuracy,
            training_time=self.training_time,
            parameter_count=self.parameter_count,
            failed=self.failed,
            generation=self.generation,
            lineage=list(self.lineage),
            id=self.id,
        )

    def __str__(self) -> str:
        fitness = f"{self.fitness:.4f}" if self.fitness is not None else "n/a"
        return (
            f"Gen{self.generation}: Fit={fitness}, Acc={self.accuracy:.2f}%, "
            f"Layers={len(self.architecture)}, Params={self.parameter_count:,}"
        )


@dataclass
class PopulationManager:
    """Container around a list of individuals with helper utilities."""

    generator: ArchitectureGenerator
    population_size: int
    individuals: List[Individual] = field(default_factory=list)

    @property
    def rng(self) -> random.Random:
        return self.generator.rng

    def seed(self, class_count: int, min_layers: int, max_layers: int) -> None:
        """Populate the manager with fresh random architectures."""
        self.individuals = []
        for idx in range(self.population_size):
            architecture = self._generate(class_count, min_layers, max_layers, f"Gen0_Ind{idx}")
            self.individuals.append(Individual(architecture=architecture, generation=0, lineage=["Initialization"]))

    def _generate(self, class_count: int, min_layers: int, max_layers: int, name: str) -> ArchitectureModel:
        last_error: Optional[InvalidArchitectureError] = None
        for _ in range(MAX_ATTEMPTS):
            layer_count = self.rng.randint(min_layers, max_layers)
            try:
                return self.generator.generate(layer_count, class_count, name)
            except InvalidArchitectureError as exc:
                last_error = exc
        assert last_error is not None
        raise last_error

    def sorted(self) -> List[Individual]:
        """Individuals ordered from best to worst fitness."""
        return sorted(self.individuals, key=lambda ind: ind.sort_key, reverse=True)

    def top_k(self, k: int) -> Sequence[Individual]:
        """Return the best performing individuals."""
        return self.sorted()[:k]

    def unevaluated(self) -> List[Individual]:
        return [ind for ind in self.individuals if not ind.evaluated]

    def tournament(self, size: int) -> Individual:
        """Pick ``size`` distinct individuals at random and return the fittest."""
        contenders = self.rng.sample(self.individuals, min(size, len(self.individuals)))
        return max(contenders, key=lambda ind: ind.sort_key)

    def replace(self, offspring: Iterable[Individual]) -> None:
        self.individuals = list(offspring)

    def __len__(self) -> int:
        return len(self.individuals)


__all__ = ["Individual", "PopulationManager"]
