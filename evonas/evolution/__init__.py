"""Evolution module exports."""

from .controller import BaseSearchController, ProgressCallback, SearchState
from .engine import GenerationStats, GeneticConfig, GeneticSearchController
from .fitness import FAILURE_FITNESS, FitnessEvaluator
from .generator import ArchitectureGenerator
from .operators import GeneticOperators, MutationKind
from .population import Individual, PopulationManager
from .random_search import RandomSearchConfig, RandomSearchController, TrialFailure
from .signature import Deduplicator, signature

__all__ = [
    "ArchitectureGenerator",
    "BaseSearchController",
    "Deduplicator",
    "FAILURE_FITNESS",
    "FitnessEvaluator",
    "GenerationStats",
    "GeneticConfig",
    "GeneticOperators",
    "GeneticSearchController",
    "Individual",
    "MutationKind",
    "PopulationManager",
    "ProgressCallback",
    "RandomSearchConfig",
    "RandomSearchController",
    "SearchState",
    "TrialFailure",
    "signature",
]
