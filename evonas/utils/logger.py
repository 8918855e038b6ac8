"""
Unified logging utilities that wrap Loguru and MLflow.

The `ExperimentLogger` offers a small convenience layer that the search
controllers use without worrying about tracking URIs or missing optional
dependencies.  Metrics and parameters are forwarded to MLflow when it is
installed and enabled, while Loguru handles console output.
"""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from loguru import logger

try:
    import mlflow
except ImportError:  # pragma: no cover - fallback path is best effort only.
    mlflow = None  # type: ignore[assignment]


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO", log_file: Optional[Union[str, Path]] = None) -> None:
    """Replace the default Loguru sink with the console format and an optional file sink."""

    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT, colorize=True)
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {name}:{function}:{line} - {message}",
        )


class ExperimentLogger:
    """Thin convenience wrapper around Loguru and MLflow."""

    def __init__(self, experiment_name: str = "EvoNAS", tracking_uri: Optional[str] = None, enabled: bool = False) -> None:
        self.experiment_name = experiment_name
        self.tracking_uri = tracking_uri
        self.enabled = enabled
        if enabled and mlflow is None:
            logger.warning("MLflow is not installed. Tracking will be disabled.")

    @property
    def tracking(self) -> bool:
        return self.enabled and mlflow is not None

    def _ensure_mlflow(self) -> None:
        """Configure the MLflow tracking URI and experiment."""
        if self.tracking_uri:
            mlflow.set_tracking_uri(self.tracking_uri)
        mlflow.set_experiment(self.experiment_name)

    @contextmanager
    def start_run(self, run_name: str, params: Optional[Dict[str, Any]] = None) -> Iterator[None]:
        """
        Context manager that opens and closes an MLflow run while emitting log messages.

        When tracking is off the context still works, so upstream code can rely
        on the same interface without extra guards.
        """

        logger.info("Starting EvoNAS run: {}", run_name)
        if self.tracking:
            self._ensure_mlflow()
            with mlflow.start_run(run_name=run_name):
                if params:
                    mlflow.log_params(params)
                yield
        else:
            yield
        logger.info("Completed EvoNAS run: {}", run_name)

    def log_metrics(self, metrics: Dict[str, float], step: Optional[int] = None) -> None:
        """Emit metrics to both the console and MLflow if available."""
        logger.debug("Metrics@{}: {}", step if step is not None else "-", metrics)
        if self.tracking and mlflow.active_run() is not None:
            mlflow.log_metrics(metrics, step=step)

    def log_artifact(self, path: Path) -> None:
        """Record an artifact with MLflow when available."""
        if self.tracking and path.exists() and mlflow.active_run() is not None:
            mlflow.log_artifact(str(path))

    def log_message(self, message: str) -> None:
        """Log a simple info message."""
        logger.info(message)

    def log_warning(self, message: str) -> None:
        logger.warning(message)
