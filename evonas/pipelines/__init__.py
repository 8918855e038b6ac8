"""Pipeline exports."""

from .runner import EvoNAS, EvoNASResult

__all__ = ["EvoNAS", "EvoNASResult"]
