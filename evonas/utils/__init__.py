"""Utility exports for EvoNAS."""

from .config_loader import ConfigLoader, LoadedConfig, validate_config
from .logger import ExperimentLogger, configure_logging

__all__ = ["ConfigLoader", "LoadedConfig", "ExperimentLogger", "configure_logging", "validate_config"]
