"""
Layer descriptors used to assemble candidate architectures.

A `LayerSpec` is a small immutable record: a role tag plus a role-specific
parameter payload.  Every behaviour that differs between roles (validation,
shape propagation, descriptions) dispatches on the tag, so adding a role means
touching the tables in this module rather than subclassing.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Tuple, Union


class LayerRole(str, Enum):
    """Functional category of a layer."""

    CONV = "conv"
    POOL = "pool"
    DENSE = "dense"
    OUTPUT = "output"
    FLATTEN = "flatten"


class Activation(str, Enum):
    """Supported activation functions."""

    RELU = "relu"
    LEAKY_RELU = "leaky_relu"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    NONE = "none"


POOL_TYPES = ("max", "avg")


@dataclass(frozen=True)
class ConvParams:
    filters: int
    kernel_size: int = 3
    stride: int = 1
    batch_norm: bool = True
    padding: int = 0


@dataclass(frozen=True)
class PoolParams:
    pool_type: str = "max"
    pool_size: int = 2
    stride: int = 2


@dataclass(frozen=True)
class DenseParams:
    units: int
    dropout: float = 0.0
    batch_norm: bool = False


@dataclass(frozen=True)
class OutputParams:
    num_classes: int


@dataclass(frozen=True)
class FlattenParams:
    pass


LayerParams = Union[ConvParams, PoolParams, DenseParams, OutputParams, FlattenParams]
Shape = Tuple[int, int, int]

_PAYLOADS = {
    LayerRole.CONV: ConvParams,
    LayerRole.POOL: PoolParams,
    LayerRole.DENSE: DenseParams,
    LayerRole.OUTPUT: OutputParams,
    LayerRole.FLATTEN: FlattenParams,
}


def _coerce_activation(value: Union[str, Activation]) -> Union[str, Activation]:
    """Map strings onto `Activation`; unknown names are kept so validation can reject them."""
    if isinstance(value, Activation):
        return value
    try:
        return Activation(str(value).lower())
    except ValueError:
        return str(value)


def _activation_name(value: Union[str, Activation]) -> str:
    return value.value if isinstance(value, Activation) else str(value)


@dataclass(frozen=True)
class LayerSpec:
    """Describe a single layer within an architecture."""

    role: LayerRole
    name: str
    params: LayerParams
    activation: Union[Activation, str] = Activation.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", LayerRole(self.role))
        expected = _PAYLOADS[self.role]
        if not isinstance(self.params, expected):
            raise TypeError(
                f"{self.role.value} layer '{self.name}' expects {expected.__name__}, "
                f"got {type(self.params).__name__}"
            )
        object.__setattr__(self, "activation", _coerce_activation(self.activation))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def conv(
        cls,
        name: str,
        filters: int,
        kernel_size: int = 3,
        activation: Union[str, Activation] = Activation.RELU,
        stride: int = 1,
        batch_norm: bool = True,
    ) -> "LayerSpec":
        return cls(LayerRole.CONV, name, ConvParams(filters, kernel_size, stride, batch_norm), activation)

    @classmethod
    def pool(cls, name: str, pool_type: str = "max", pool_size: int = 2, stride: int = 2) -> "LayerSpec":
        return cls(LayerRole.POOL, name, PoolParams(pool_type, pool_size, stride))

    @classmethod
    def dense(
        cls,
        name: str,
        units: int,
        activation: Union[str, Activation] = Activation.RELU,
        dropout: float = 0.0,
        batch_norm: bool = False,
    ) -> "LayerSpec":
        return cls(LayerRole.DENSE, name, DenseParams(units, dropout, batch_norm), activation)

    @classmethod
    def output(cls, name: str, num_classes: int) -> "LayerSpec":
        return cls(LayerRole.OUTPUT, name, OutputParams(num_classes))

    @classmethod
    def flatten(cls, name: str = "flatten") -> "LayerSpec":
        return cls(LayerRole.FLATTEN, name, FlattenParams())

    # ------------------------------------------------------------------
    # Behaviour
    # ------------------------------------------------------------------
    @property
    def activation_name(self) -> str:
        return _activation_name(self.activation)

    def is_valid(self) -> bool:
        """Check the layer's own parameter constraints."""
        if not isinstance(self.activation, Activation):
            return False
        p = self.params
        if self.role is LayerRole.CONV:
            return (
                1 <= p.filters <= 1024
                and 1 <= p.kernel_size <= 7
                and p.kernel_size % 2 == 1
                and 1 <= p.stride <= 3
            )
        if self.role is LayerRole.POOL:
            return 2 <= p.pool_size <= 4 and 1 <= p.stride <= 4 and p.pool_type in POOL_TYPES
        if self.role is LayerRole.DENSE:
            return 1 <= p.units <= 8192 and 0.0 <= p.dropout < 1.0
        if self.role is LayerRole.OUTPUT:
            return p.num_classes > 0
        return True

    def output_size(self, channels: int, height: int, width: int) -> Shape:
        """Propagate a (channels, height, width) shape through this layer."""
        p = self.params
        if self.role is LayerRole.CONV:
            out_h = (height + 2 * p.padding - p.kernel_size) // p.stride + 1
            out_w = (width + 2 * p.padding - p.kernel_size) // p.stride + 1
            return p.filters, out_h, out_w
        if self.role is LayerRole.POOL:
            # Floor division matches floor() for negative numerators too.
            out_h = (height - p.pool_size) // p.stride + 1
            out_w = (width - p.pool_size) // p.stride + 1
            return channels, out_h, out_w
        if self.role is LayerRole.DENSE:
            return p.units, 1, 1
        if self.role is LayerRole.OUTPUT:
            return p.num_classes, 1, 1
        return channels * height * width, 1, 1

    def describe(self) -> str:
        """Return a one-line human readable description."""
        p = self.params
        if self.role is LayerRole.CONV:
            return (
                f"[CONV] {self.name}: {p.filters} filters, {p.kernel_size}x{p.kernel_size}, "
                f"stride {p.stride}, activation: {self.activation_name}, BN: {p.batch_norm}"
            )
        if self.role is LayerRole.POOL:
            return f"[POOL] {self.name}: {p.pool_type} pooling, {p.pool_size}x{p.pool_size}, stride {p.stride}"
        if self.role is LayerRole.DENSE:
            dropout = f", dropout: {p.dropout:.2f}" if p.dropout > 0 else ""
            batch_norm = ", BN: True" if p.batch_norm else ""
            return f"[DENSE] {self.name}: {p.units} neurons, activation: {self.activation_name}{dropout}{batch_norm}"
        if self.role is LayerRole.OUTPUT:
            return f"[OUTPUT] {self.name}: {p.num_classes} classes (softmax)"
        return f"[FLATTEN] {self.name}"

    def clone(self) -> "LayerSpec":
        """Return an independent copy of this layer."""
        return replace(self, params=replace(self.params))

    def with_params(self, **changes: Any) -> "LayerSpec":
        """Return a copy with updated role-specific parameters."""
        return replace(self, params=replace(self.params, **changes))


__all__ = [
    "Activation",
    "ConvParams",
    "DenseParams",
    "FlattenParams",
    "LayerParams",
    "LayerRole",
    "LayerSpec",
    "OutputParams",
    "POOL_TYPES",
    "PoolParams",
    "Shape",
]
