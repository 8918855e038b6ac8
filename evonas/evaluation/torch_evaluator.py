"""
PyTorch reference evaluator.

`TorchEvaluator` turns an `ArchitectureModel` into a `torch.nn.Sequential`,
trains it with Adam and cross entropy on a `TensorDataSource` and reports the
best validation accuracy together with the per-epoch history.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import torch
from loguru import logger
from torch import nn, optim
from torch.utils.data import DataLoader, TensorDataset

from evonas.core import Activation, ArchitectureModel, EvaluationOutcome, LayerRole, TrainingEpoch
from evonas.exceptions import EvaluationError

from .base import BaseEvaluator, DataSource

_ACTIVATIONS = {
    Activation.RELU: nn.ReLU,
    Activation.LEAKY_RELU: lambda: nn.LeakyReLU(0.1),
    Activation.SIGMOID: nn.Sigmoid,
    Activation.TANH: nn.Tanh,
}


class TensorDataSource(DataSource):
    """In-memory image tensors shaped ``(N, C, H, W)`` with integer labels."""

    def __init__(
        self,
        train_images: torch.Tensor,
        train_labels: torch.Tensor,
        val_images: torch.Tensor,
        val_labels: torch.Tensor,
        num_classes: Optional[int] = None,
    ) -> None:
        if train_images.ndim != 4 or val_images.ndim != 4:
            raise ValueError("Image tensors must be shaped (N, C, H, W).")
        self.train_images = train_images.float()
        self.train_labels = train_labels.long()
        self.val_images = val_images.float()
        self.val_labels = val_labels.long()
        if num_classes is None:
            num_classes = int(torch.cat([self.train_labels, self.val_labels]).max().item()) + 1
        self._num_classes = num_classes

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TensorDataSource":
        """Load a ``torch.save``'d mapping with train/val images and labels."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Dataset not found: {path}")
        payload: Dict[str, torch.Tensor] = torch.load(path, map_location="cpu")
        missing = {"train_images", "train_labels", "val_images", "val_labels"} - set(payload)
        if missing:
            raise ValueError(f"Dataset file {path} is missing keys: {sorted(missing)}")
        return cls(
            payload["train_images"],
            payload["train_labels"],
            payload["val_images"],
            payload["val_labels"],
            num_classes=payload.get("num_classes"),
        )

    @property
    def class_count(self) -> int:
        return self._num_classes

    @property
    def image_size(self) -> int:
        return int(self.train_images.shape[-1])

    @property
    def input_channels(self) -> int:
        return int(self.train_images.shape[1])

    def train_loader(self, batch_size: int) -> DataLoader:
        return DataLoader(TensorDataset(self.train_images, self.train_labels), batch_size=batch_size, shuffle=True)

    def val_loader(self, batch_size: int) -> DataLoader:
        return DataLoader(TensorDataset(self.val_images, self.val_labels), batch_size=batch_size)


def build_model(architecture: ArchitectureModel, input_channels: int, image_size: int) -> nn.Sequential:
    """
    Translate an architecture into a sequential torch module.

    Raises `EvaluationError` when the layer order cannot be realised, e.g. a
    convolution placed after the flatten layer or a feature map that shrinks
    to nothing.
    """

    channels, height, width = input_channels, image_size, image_size
    flattened = False
    modules: List[nn.Module] = []
    for layer in architecture:
        p = layer.params
        role = layer.role
        if role in (LayerRole.CONV, LayerRole.POOL) and flattened:
            raise EvaluationError(
                f"{role.value} layer '{layer.name}' follows the flatten layer.",
                context={"architecture": architecture.name},
            )
        if role in (LayerRole.DENSE, LayerRole.OUTPUT) and not flattened:
            raise EvaluationError(
                f"{role.value} layer '{layer.name}' is not preceded by a flatten layer.",
                context={"architecture": architecture.name},
            )

        if role is LayerRole.CONV:
            modules.append(nn.Conv2d(channels, p.filters, p.kernel_size, stride=p.stride, padding=p.padding))
            if p.batch_norm:
                modules.append(nn.BatchNorm2d(p.filters))
            modules.append(_ACTIVATIONS.get(layer.activation, nn.ReLU)())
        elif role is LayerRole.POOL:
            pool_cls = nn.MaxPool2d if p.pool_type == "max" else nn.AvgPool2d
            modules.append(pool_cls(p.pool_size, stride=p.stride))
        elif role is LayerRole.FLATTEN:
            if not flattened:
                modules.append(nn.Flatten())
            flattened = True
        elif role is LayerRole.DENSE:
            modules.append(nn.Linear(channels, p.units))
            if p.batch_norm:
                modules.append(nn.BatchNorm1d(p.units))
            if layer.activation in _ACTIVATIONS:
                modules.append(_ACTIVATIONS[layer.activation]())
            if p.dropout > 0:
                modules.append(nn.Dropout(p.dropout))
        elif role is LayerRole.OUTPUT:
            modules.append(nn.Linear(channels, p.num_classes))

        channels, height, width = layer.output_size(channels, height, width)
        if height <= 0 or width <= 0:
            raise EvaluationError(
                f"Layer '{layer.name}' reduces the feature map to {height}x{width}.",
                context={"architecture": architecture.name},
            )
    return nn.Sequential(*modules)


def count_parameters(model: nn.Module) -> int:
    return int(sum(p.numel() for p in model.parameters()))


@dataclass
class TrainerConfig:
    """Configuration block consumed by the torch evaluator."""

    batch_size: int = 32
    learning_rate: float = 1e-3
    patience: int = 20
    target_accuracy: float = 99.0
    device: str = "cpu"


class TorchEvaluator(BaseEvaluator):
    """Train candidate architectures on a `TensorDataSource`."""

    def __init__(self, data_source: TensorDataSource, config: Optional[TrainerConfig] = None) -> None:
        self.data_source = data_source
        self.config = config or TrainerConfig()

    def evaluate(self, architecture: ArchitectureModel, epoch_budget: int) -> EvaluationOutcome:
        try:
            return self._train(architecture, epoch_budget)
        except EvaluationError:
            raise
        except Exception as exc:
            raise EvaluationError(
                f"Training failed for {architecture.name}: {exc}",
                context={"architecture": architecture.name},
            ) from exc

    def _train(self, architecture: ArchitectureModel, epoch_budget: int) -> EvaluationOutcome:
        device = torch.device(self.config.device)
        model = build_model(architecture, self.data_source.input_channels, self.data_source.image_size).to(device)
        parameter_count = count_parameters(model)
        criterion = nn.CrossEntropyLoss()
        optimizer = optim.Adam(model.parameters(), lr=self.config.learning_rate)
        train_loader = self.data_source.train_loader(self.config.batch_size)
        val_loader = self.data_source.val_loader(self.config.batch_size)

        history: List[TrainingEpoch] = []
        best_accuracy = 0.0
        stale_epochs = 0
        start = time.perf_counter()
        for epoch in range(epoch_budget):
            model.train()
            train_loss, train_accuracy = self._run_epoch(model, train_loader, criterion, device, optimizer)
            model.eval()
            with torch.no_grad():
                val_loss, val_accuracy = self._run_epoch(model, val_loader, criterion, device)

            history.append(
                TrainingEpoch(
                    epoch=epoch + 1,
                    train_loss=train_loss,
                    val_loss=val_loss,
                    train_accuracy=train_accuracy,
                    val_accuracy=val_accuracy,
                    learning_rate=float(optimizer.param_groups[0]["lr"]),
                )
            )
            logger.debug("{} | {}", architecture.name, history[-1])

            if val_accuracy > best_accuracy:
                best_accuracy = val_accuracy
                stale_epochs = 0
            else:
                stale_epochs += 1
            if best_accuracy >= self.config.target_accuracy or stale_epochs >= self.config.patience:
                break

        return EvaluationOutcome(
            accuracy=best_accuracy,
            training_time=time.perf_counter() - start,
            parameter_count=parameter_count,
            history=history,
        )

    @staticmethod
    def _run_epoch(
        model: nn.Module,
        loader: DataLoader,
        criterion: nn.Module,
        device: torch.device,
        optimizer: Optional[optim.Optimizer] = None,
    ) -> Tuple[float, float]:
        total_loss = 0.0
        correct = 0
        seen = 0
        for images, labels in loader:
            images, labels = images.to(device), labels.to(device)
            outputs = model(images)
            loss = criterion(outputs, labels)
            if optimizer is not None:
                optimizer.zero_grad()
                loss.backward()
                optimizer.step()
            total_loss += loss.item() * images.size(0)
            correct += int((outputs.argmax(dim=1) == labels).sum().item())
            seen += images.size(0)
        if seen == 0:
            return 0.0, 0.0
        return total_loss / seen, 100.0 * correct / seen


__all__ = ["TensorDataSource", "TorchEvaluator", "TrainerConfig", "build_model", "count_parameters"]
