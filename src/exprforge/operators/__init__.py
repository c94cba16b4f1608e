"""GP operators for tree manipulation.

This module provides mutation, crossover, and selection operators
for genetic programming on typed expression trees.
"""

from exprforge.operators.mutation import mutate, scaled_probability
from exprforge.operators.crossover import crossover
from exprforge.operators.selection import (
    rank_weights,
    rank_weighted_selection,
    select_parent,
)

__all__ = [
    "mutate",
    "scaled_probability",
    "crossover",
    "rank_weights",
    "rank_weighted_selection",
    "select_parent",
]
