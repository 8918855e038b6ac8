"""Core exports: layers, architectures and result records."""

from .architecture import ArchitectureModel
from .layers import (
    Activation,
    ConvParams,
    DenseParams,
    FlattenParams,
    LayerRole,
    LayerSpec,
    OutputParams,
    PoolParams,
)
from .results import EvaluationOutcome, SearchResult, TrainingEpoch

__all__ = [
    "Activation",
    "ArchitectureModel",
    "ConvParams",
    "DenseParams",
    "EvaluationOutcome",
    "FlattenParams",
    "LayerRole",
    "LayerSpec",
    "OutputParams",
    "PoolParams",
    "SearchResult",
    "TrainingEpoch",
]
