"""
Centralised exception hierarchy for EvoNAS.

The search engine raises typed exceptions instead of generic ``ValueError`` or
``RuntimeError`` instances.  Callers can tell a malformed layer apart from a
malformed architecture or a failed training run, and the ``context`` payload
keeps the offending values available for structured logs.
"""

from __future__ import annotations

from typing import Any


class EvoNASError(Exception):
    """Base class for all EvoNAS specific exceptions."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class InvalidLayerError(EvoNASError):
    """Raised when a single layer's parameters violate its own constraints."""


class InvalidArchitectureError(EvoNASError):
    """Raised when an assembled architecture fails validation."""


class InvalidArgumentError(EvoNASError):
    """Raised when a caller passes an out-of-range argument such as a layer count."""


class EvaluationError(EvoNASError):
    """Raised by evaluators when training or scoring an architecture fails."""


class EvoNASConfigError(EvoNASError):
    """Raised for configuration or profile related issues."""


__all__ = [
    "EvoNASError",
    "InvalidLayerError",
    "InvalidArchitectureError",
    "InvalidArgumentError",
    "EvaluationError",
    "EvoNASConfigError",
]
