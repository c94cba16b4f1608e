"""Evolution of expression populations against training data."""

from exprforge.evolution.config import TrainingArgs
from exprforge.evolution.fitness import (
    ERROR_FUNCTIONS,
    StagnationTracker,
    absolute_error,
    relative_error,
    squared_error,
)
from exprforge.evolution.population import GenerationStats, Population, TrainingResult

__all__ = [
    "TrainingArgs",
    "ERROR_FUNCTIONS",
    "StagnationTracker",
    "absolute_error",
    "relative_error",
    "squared_error",
    "GenerationStats",
    "Population",
    "TrainingResult",
]
