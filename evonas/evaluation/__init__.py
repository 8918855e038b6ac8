"""Evaluation exports."""

from .base import BaseEvaluator, DataSource, StaticDataSource
from .torch_evaluator import TensorDataSource, TorchEvaluator, TrainerConfig, build_model, count_parameters

__all__ = [
    "BaseEvaluator",
    "DataSource",
    "StaticDataSource",
    "TensorDataSource",
    "TorchEvaluator",
    "TrainerConfig",
    "build_model",
    "count_parameters",
]
