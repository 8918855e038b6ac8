"""
Architecture representation for EvoNAS.

An `ArchitectureModel` is the ordered list of `LayerSpec` instructions that
describe a classifier, from the input image to the output layer.  It also
carries the bookkeeping fields (accuracy, training time) filled in once the
architecture has been evaluated.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from evonas.exceptions import InvalidLayerError

from .layers import LayerRole, LayerSpec, Shape

SUMMARY_RULE = "=" * 60


class ArchitectureModel:
    """Ordered, constraint-checked sequence of layers."""

    def __init__(self, name: str = "", layers: Optional[List[LayerSpec]] = None) -> None:
        self.name = name
        self.layers: List[LayerSpec] = []
        self.accuracy = 0.0
        self.training_time = 0.0
        for layer in layers or []:
            self.add_layer(layer)

    def __len__(self) -> int:
        return len(self.layers)

    def __iter__(self) -> Iterator[LayerSpec]:
        return iter(self.layers)

    def __getitem__(self, index: int) -> LayerSpec:
        return self.layers[index]

    def __repr__(self) -> str:
        return f"ArchitectureModel(name={self.name!r}, layers={len(self.layers)})"

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def add_layer(self, layer: LayerSpec) -> None:
        """Append a layer after checking its own parameter constraints."""
        self._check_layer(layer)
        self.layers.append(layer)

    def insert_layer(self, index: int, layer: LayerSpec) -> None:
        """Insert a layer at ``index`` after checking its own parameter constraints."""
        self._check_layer(layer)
        self.layers.insert(index, layer)

    def remove_layer(self, index: int) -> None:
        """Remove the layer at ``index``; out-of-range indices are ignored."""
        if 0 <= index < len(self.layers):
            del self.layers[index]

    @staticmethod
    def _check_layer(layer: LayerSpec) -> None:
        if not layer.is_valid():
            raise InvalidLayerError(
                f"Invalid layer parameters: {layer.describe()}",
                context={"layer": layer.name, "role": layer.role.value},
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def has_role(self, role: LayerRole) -> bool:
        return any(layer.role is role for layer in self.layers)

    def index_of_first(self, role: LayerRole) -> int:
        """Index of the first layer with ``role`` or -1."""
        for idx, layer in enumerate(self.layers):
            if layer.role is role:
                return idx
        return -1

    def index_of_last(self, role: LayerRole) -> int:
        """Index of the last layer with ``role`` or -1."""
        for idx in range(len(self.layers) - 1, -1, -1):
            if self.layers[idx].role is role:
                return idx
        return -1

    def layer_counts(self) -> Dict[LayerRole, int]:
        counts = {role: 0 for role in LayerRole}
        for layer in self.layers:
            counts[layer.role] += 1
        return counts

    def validate(self) -> bool:
        """
        Check the structural invariants of the architecture.

        The architecture must be non-empty, contain at least one convolution,
        end with its single output layer, hold only valid layers, and place a
        flatten layer before the first fully connected layer.  Spatial sizes are
        checked separately by :meth:`check_shape_compatibility`.
        """

        if not self.layers:
            return False
        counts = self.layer_counts()
        if counts[LayerRole.CONV] < 1 or counts[LayerRole.OUTPUT] != 1:
            return False
        if self.layers[-1].role is not LayerRole.OUTPUT:
            return False
        if not all(layer.is_valid() for layer in self.layers):
            return False

        first_dense = self.index_of_first(LayerRole.DENSE)
        if first_dense >= 0:
            flatten_idx = self.index_of_first(LayerRole.FLATTEN)
            if flatten_idx < 0 or flatten_idx > first_dense:
                return False
        return True

    def calculate_final_size(self, input_channels: int = 1, input_height: int = 64, input_width: int = 64) -> Shape:
        """Fold the per-layer shape transform over every non-output layer."""
        shape: Shape = (input_channels, input_height, input_width)
        for layer in self.layers:
            if layer.role is not LayerRole.OUTPUT:
                shape = layer.output_size(*shape)
        return shape

    def check_shape_compatibility(self, channels: int = 3, height: int = 64, width: int = 64) -> bool:
        """Return False as soon as a layer would produce an empty spatial map."""
        if len(self.layers) < 2:
            return True
        for layer in self.layers:
            if layer.role is LayerRole.FLATTEN:
                continue
            channels, height, width = layer.output_size(channels, height, width)
            if height <= 0 or width <= 0:
                return False
        return True

    # ------------------------------------------------------------------
    # Copies and reports
    # ------------------------------------------------------------------
    def clone(self) -> "ArchitectureModel":
        """Deep copy the layer list; evaluation fields are carried over."""
        cloned = ArchitectureModel(f"{self.name}_clone")
        cloned.layers = [layer.clone() for layer in self.layers]
        cloned.accuracy = self.accuracy
        cloned.training_time = self.training_time
        return cloned

    def summary(self) -> str:
        counts = self.layer_counts()
        lines = [
            f"ARCHITECTURE: {self.name}",
            f"Accuracy: {self.accuracy:.2f}%, Training time: {self.training_time:.1f}s",
            SUMMARY_RULE,
        ]
        for idx, layer in enumerate(self.layers, start=1):
            lines.append(f"{idx:2d}. {layer.describe()}")
        lines.append(SUMMARY_RULE)
        lines.append(
            f"STATS: {counts[LayerRole.CONV]} CONV, {counts[LayerRole.POOL]} POOL, "
            f"{counts[LayerRole.DENSE]} DENSE, {len(self.layers)} total"
        )
        return "\n".join(lines)


__all__ = ["ArchitectureModel"]
