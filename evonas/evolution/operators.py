"""
Genetic operators for architecture evolution.

Crossover and mutation always work on freshly cloned architectures: a parent
handed to an operator is never modified, and no layer object ends up shared
between two architectures.  Every offspring goes through :meth:`repair`, which
restores the mandatory layer roles a structural edit may have destroyed.
"""

from __future__ import annotations

import random
from enum import Enum
from typing import Optional, Tuple

from loguru import logger

from evonas.core import ArchitectureModel, LayerRole, LayerSpec

from .generator import ArchitectureGenerator

MIN_CONV_FILTERS = 8
MAX_CONV_FILTERS = 1024
MIN_DENSE_UNITS = 16
MAX_DENSE_UNITS = 8192


class MutationKind(str, Enum):
    INSERT_CONV = "insert_conv"
    REMOVE_LAYER = "remove_layer"
    PERTURB = "perturb"
    REPLACE_LAYER = "replace_layer"


class GeneticOperators:
    """Crossover, mutation and repair over `ArchitectureModel` instances."""

    def __init__(self, generator: ArchitectureGenerator, rng: Optional[random.Random] = None) -> None:
        self.generator = generator
        self.rng = rng if rng is not None else generator.rng

    # ------------------------------------------------------------------
    # Crossover
    # ------------------------------------------------------------------
    def crossover_point(self, parent_a: ArchitectureModel, parent_b: ArchitectureModel) -> int:
        upper = min(len(parent_a), len(parent_b)) - 1
        return self.rng.randrange(1, upper) if upper > 1 else 1

    def crossover(
        self,
        parent_a: ArchitectureModel,
        parent_b: ArchitectureModel,
        point: Optional[int] = None,
    ) -> Tuple[ArchitectureModel, ArchitectureModel]:
        """
        Single point crossover.

        ``child_1 = a[:point] + b[point:]`` and ``child_2 = b[:point] + a[point:]``,
        both repaired before being returned.
        """

        if point is None:
            point = self.crossover_point(parent_a, parent_b)
        clone_a, clone_b = parent_a.clone(), parent_b.clone()

        child_1 = ArchitectureModel(f"{parent_a.name}_x_{parent_b.name}")
        child_1.layers = clone_a.layers[:point] + clone_b.layers[point:]
        child_2 = ArchitectureModel(f"{parent_b.name}_x_{parent_a.name}")
        child_2.layers = clone_b.layers[:point] + clone_a.layers[point:]
        return self.repair(child_1), self.repair(child_2)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def choose_mutation(self) -> MutationKind:
        return self.rng.choice(list(MutationKind))

    def mutate(self, parent: ArchitectureModel, kind: Optional[MutationKind] = None) -> ArchitectureModel:
        """Clone ``parent`` and apply exactly one mutation of ``kind`` (random when omitted)."""

        kind = MutationKind(kind) if kind is not None else self.choose_mutation()
        child = parent.clone()
        child.name = f"{parent.name}_mut"
        child.accuracy = 0.0
        child.training_time = 0.0
        layers = child.layers

        if kind is MutationKind.INSERT_CONV:
            flatten_idx = child.index_of_first(LayerRole.FLATTEN)
            upper = flatten_idx if flatten_idx >= 1 else max(1, len(layers) - 1)
            position = self.rng.randint(1, upper)
            child.insert_layer(position, self.generator.random_layer(LayerRole.CONV))
        elif kind is MutationKind.REMOVE_LAYER:
            if len(layers) > 2:
                child.remove_layer(self.rng.randint(1, len(layers) - 2))
        elif kind is MutationKind.PERTURB:
            if len(layers) > 1:
                position = self.rng.randrange(len(layers) - 1)
                layers[position] = self._perturb(layers[position])
        elif kind is MutationKind.REPLACE_LAYER:
            if len(layers) > 2:
                position = self.rng.randint(1, len(layers) - 2)
                layers[position] = self.generator.random_layer()

        logger.debug("Mutation {} applied to {}", kind.value, parent.name)
        return self.repair(child)

    def _perturb(self, layer: LayerSpec) -> LayerSpec:
        """Return a copy of ``layer`` with one hyperparameter nudged."""
        p = layer.params
        if layer.role is LayerRole.CONV:
            filters = max(MIN_CONV_FILTERS, p.filters + self.rng.randint(-8, 8))
            return layer.with_params(filters=min(filters, MAX_CONV_FILTERS))
        if layer.role is LayerRole.DENSE:
            units = max(MIN_DENSE_UNITS, p.units + self.rng.randint(-16, 16))
            return layer.with_params(units=min(units, MAX_DENSE_UNITS))
        if layer.role is LayerRole.POOL:
            return layer.with_params(pool_size=self.rng.randint(2, 3))
        return layer.clone()

    # ------------------------------------------------------------------
    # Repair
    # ------------------------------------------------------------------
    def repair(self, architecture: ArchitectureModel) -> ArchitectureModel:
        """
        Restore mandatory roles after a structural edit, in place.

        1. No convolution left: insert a random one at index 1.
        2. No output layer: turn the last dense layer into an output layer with
           as many classes as that layer had units.  Without any dense layer the
           architecture stays incomplete and a warning is logged.
        3. Dense layers without a preceding flatten: insert one right before the
           first dense layer.

        Running repair twice is the same as running it once.
        """

        if not architecture.has_role(LayerRole.CONV):
            architecture.insert_layer(1, self.generator.random_layer(LayerRole.CONV))

        if not architecture.has_role(LayerRole.OUTPUT):
            last_dense = architecture.index_of_last(LayerRole.DENSE)
            if last_dense >= 0:
                units = architecture.layers[last_dense].params.units
                architecture.layers[last_dense] = LayerSpec.output("output", units)
            else:
                logger.warning(
                    "Repair could not restore an output layer for {}: no dense layer to convert.",
                    architecture.name,
                )

        first_dense = architecture.index_of_first(LayerRole.DENSE)
        if first_dense >= 0:
            has_flatten = any(layer.role is LayerRole.FLATTEN for layer in architecture.layers[:first_dense])
            if not has_flatten:
                architecture.insert_layer(first_dense, LayerSpec.flatten("flatten"))
        return architecture


__all__ = ["GeneticOperators", "MutationKind"]
