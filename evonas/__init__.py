"""Top-level package exposing EvoNAS SDK entrypoints."""

from .pipelines import EvoNAS, EvoNASResult

__all__ = ["EvoNAS", "EvoNASResult"]
