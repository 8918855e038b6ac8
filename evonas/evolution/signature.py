"""
Structural signatures used to skip architectures that were already tried.
"""

from __future__ import annotations

from typing import Iterable, Set

from evonas.core import ArchitectureModel, LayerRole, LayerSpec

MAX_ATTEMPTS = 50


def _layer_signature(layer: LayerSpec) -> str:
    p = layer.params
    if layer.role is LayerRole.CONV:
        return f"CONV[{p.filters},{p.kernel_size},{layer.activation_name}]"
    if layer.role is LayerRole.POOL:
        return f"POOL[{p.pool_type},{p.pool_size}]"
    if layer.role is LayerRole.DENSE:
        return f"DENSE[{p.units},{layer.activation_name}]"
    if layer.role is LayerRole.OUTPUT:
        return f"OUTPUT[{p.num_classes}]"
    return layer.role.value.upper()


def signature(architecture: ArchitectureModel) -> str:
    """Canonical string describing the layer roles and defining parameters."""
    parts = [f"Layers:{len(architecture)}"]
    parts.extend(_layer_signature(layer) for layer in architecture)
    return "|".join(parts)


class Deduplicator:
    """Remember signatures of evaluated architectures."""

    def __init__(self, seen: Iterable[str] = ()) -> None:
        self._seen: Set[str] = set(seen)

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, architecture: object) -> bool:
        if isinstance(architecture, ArchitectureModel):
            return signature(architecture) in self._seen
        return architecture in self._seen

    def is_duplicate(self, architecture: ArchitectureModel) -> bool:
        return signature(architecture) in self._seen

    def register(self, architecture: ArchitectureModel) -> str:
        """Record the architecture and return its signature."""
        sig = signature(architecture)
        self._seen.add(sig)
        return sig

    def clear(self) -> None:
        self._seen.clear()


__all__ = ["Deduplicator", "MAX_ATTEMPTS", "signature"]
