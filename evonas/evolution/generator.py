"""
Random architecture generation for EvoNAS.

The generator enumerates the building blocks of a plain convolutional
classifier: a stack of conv/pool pairs, a flatten layer, a shrinking tower of
fully connected layers and the output layer.  All randomness comes from the
`random.Random` instance handed to the constructor so searches can be
replayed from a seed.
"""

from __future__ import annotations

import random
from typing import Optional

from loguru import logger

from evonas.core import Activation, ArchitectureModel, LayerRole, LayerSpec
from evonas.exceptions import InvalidArchitectureError, InvalidArgumentError

MIN_LAYERS = 3
START_FILTERS = (1, 2, 4, 8, 16)
FILTER_MULTIPLIERS = (1, 2, 4, 8)
MAX_FILTERS = 512
MIN_SPATIAL_SIZE = 4
FIRST_DENSE_CAP = 256
MIN_DENSE_UNITS = 32
BASE_DROPOUT = 0.2
DROPOUT_STEP = 0.15
MAX_DROPOUT = 0.5


class ArchitectureGenerator:
    """Build random, shape-valid architectures."""

    def __init__(self, image_size: int = 64, rng: Optional[random.Random] = None, seed: Optional[int] = None) -> None:
        self.image_size = image_size
        self.rng = rng if rng is not None else random.Random(seed)

    def generate(self, layer_count: int, class_count: int, name: Optional[str] = None) -> ArchitectureModel:
        """
        Generate an architecture with roughly ``layer_count`` layers.

        The count is split into ``d`` dense layers and ``(layer_count - d) // 2``
        conv/pool pairs.  Pair generation stops early once the running spatial
        size drops below four pixels, so the result can be shorter than
        requested.
        """

        if layer_count < MIN_LAYERS:
            raise InvalidArgumentError(
                f"Minimum number of layers is {MIN_LAYERS} (conv + pool + dense), got {layer_count}.",
                context={"layer_count": layer_count},
            )

        upper = layer_count // 3
        dense_count = self.rng.randrange(1, upper) if upper > 1 else 1
        pair_count = (layer_count - dense_count) // 2
        logger.debug("Generating architecture: {} conv-pool pairs, {} dense layers", pair_count, dense_count)

        architecture = ArchitectureModel(name or "")
        self._add_conv_pool_pairs(architecture, pair_count)
        architecture.add_layer(LayerSpec.flatten("flatten"))
        self._add_dense_layers(architecture, dense_count)
        architecture.add_layer(LayerSpec.output("output", class_count))

        if not architecture.validate():
            raise InvalidArchitectureError(
                "Generated architecture is invalid.",
                context={"layer_count": layer_count, "layers": len(architecture)},
            )
        architecture.name = name or f"RandomArch_{len(architecture)}L"
        return architecture

    def generate_random(self, min_layers: int = 4, max_layers: int = 10, class_count: int = 33) -> ArchitectureModel:
        """Sample a layer count uniformly from ``[min_layers, max_layers]`` and generate."""
        layer_count = self.rng.randint(min_layers, max_layers)
        return self.generate(layer_count, class_count)

    def _add_conv_pool_pairs(self, architecture: ArchitectureModel, pair_count: int) -> None:
        size = self.image_size
        filters = self.rng.choice(START_FILTERS)
        for idx in range(pair_count):
            conv = self.conv_layer(f"conv_{idx + 1}", filters)
            pool = self.pool_layer(f"pool_{idx + 1}")
            size = (size - conv.params.kernel_size + 1) // pool.params.pool_size
            if size < MIN_SPATIAL_SIZE:
                return
            architecture.add_layer(conv)
            architecture.add_layer(pool)
            filters = min(filters * self.rng.choice(FILTER_MULTIPLIERS), MAX_FILTERS)

    def _add_dense_layers(self, architecture: ArchitectureModel, dense_count: int) -> None:
        channels, height, width = architecture.calculate_final_size(1, self.image_size, self.image_size)
        units = channels * height * width
        for idx in range(dense_count):
            if idx == 0:
                units = min(units, FIRST_DENSE_CAP)
            else:
                units = max(int(units * (dense_count - idx) / dense_count), MIN_DENSE_UNITS)
            dropout = min(BASE_DROPOUT + idx * DROPOUT_STEP, MAX_DROPOUT)
            activation = Activation.NONE if idx == dense_count - 1 else Activation.RELU
            architecture.add_layer(LayerSpec.dense(f"dense_{idx + 1}", units, activation, dropout))

    # ------------------------------------------------------------------
    # Single layer factories (shared with the genetic operators)
    # ------------------------------------------------------------------
    def conv_layer(self, name: str, filters: int) -> LayerSpec:
        kernel_size = 3 if self.rng.randrange(2) == 0 else 5
        activation = Activation.RELU if self.rng.randrange(2) == 0 else Activation.LEAKY_RELU
        batch_norm = self.rng.randrange(2) == 0
        return LayerSpec.conv(name, filters, kernel_size, activation, batch_norm=batch_norm)

    def pool_layer(self, name: str) -> LayerSpec:
        pool_type = "max" if self.rng.randrange(2) == 0 else "avg"
        return LayerSpec.pool(name, pool_type, pool_size=2, stride=2)

    def random_layer(self, role: Optional[LayerRole] = None) -> LayerSpec:
        """Draw a standalone conv, pool or dense layer for structural edits."""
        if role is None:
            role = self.rng.choice((LayerRole.CONV, LayerRole.POOL, LayerRole.DENSE))
        if role is LayerRole.CONV:
            return LayerSpec.conv("mutated_conv", self.rng.randint(8, 64), self.rng.choice((3, 5)))
        if role is LayerRole.POOL:
            return LayerSpec.pool("mutated_pool", "max" if self.rng.randrange(2) == 0 else "avg")
        if role is LayerRole.DENSE:
            return LayerSpec.dense("mutated_dense", self.rng.randint(32, 256))
        raise InvalidArgumentError(
            f"Cannot draw a random '{role.value}' layer.",
            context={"role": role.value},
        )


__all__ = ["ArchitectureGenerator", "MIN_LAYERS"]
