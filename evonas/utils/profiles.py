"""
Predefined configuration profiles for EvoNAS.

Profiles provide convenient shortcuts for common experimentation modes
such as quick smoke tests or exhaustive searches. They are merged on top
of global defaults before user overrides are applied.
"""

from __future__ import annotations

from typing import Dict

from omegaconf import OmegaConf


PROFILES: Dict[str, Dict[str, object]] = {
    "fast": {
        "genetic": {
            "population_size": 6,
            "generations": 3,
            "epochs_per_evaluation": 1,
            "min_layers": 4,
            "max_layers": 8,
            "early_stopping": False,
        },
        "random": {
            "num_trials": 5,
            "epochs_per_trial": 1,
            "max_layers": 8,
        },
        "trainer": {
            "batch_size": 64,
        },
    },
    "balanced": {
        "genetic": {
            "population_size": 12,
            "generations": 15,
            "epochs_per_evaluation": 5,
        },
        "random": {
            "num_trials": 20,
            "epochs_per_trial": 3,
        },
    },
    "exhaustive": {
        "genetic": {
            "population_size": 30,
            "generations": 80,
            "epochs_per_evaluation": 15,
            "early_stopping_window": 10,
        },
        "random": {
            "num_trials": 100,
            "epochs_per_trial": 10,
            "max_attempts": 100,
        },
    },
}


def list_profiles() -> Dict[str, Dict[str, object]]:
    """Return a copy of the registered profiles."""

    return {name: OmegaConf.to_container(OmegaConf.create(conf), resolve=True) for name, conf in PROFILES.items()}


def get_profile(name: str) -> Dict[str, object]:
    """Return a profile configuration by name."""

    if name not in PROFILES:
        raise KeyError(f"Unknown profile '{name}'. Available profiles: {list(PROFILES)}")
    return OmegaConf.to_container(OmegaConf.create(PROFILES[name]), resolve=True)
