"""Rank-weighted parent selection.

Individuals are drawn from a ranked population (best first) with weight
``len(population) - rank``, so the best has weight n and the worst 1.
"""

from __future__ import annotations

import random
from typing import Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def rank_weights(n: int) -> np.ndarray:
    """Linear rank weights ``n, n-1, ..., 1``."""
    return np.arange(n, 0, -1, dtype=np.int64)


def rank_weighted_selection(
    ranked: Sequence[T],
    n_select: int,
    rng: random.Random | None = None,
) -> list[T]:
    """Select individuals with probability proportional to rank weight.

    Args:
        ranked: Individuals sorted best first
        n_select: Number of individuals to draw (with replacement)
        rng: Random number generator

    Returns:
        List of selected individuals
    """
    rng = rng or random.Random()
    if not ranked:
        raise ValueError("Cannot select from an empty population")
    weights = rank_weights(len(ranked)).tolist()
    return rng.choices(ranked, weights=weights, k=n_select)


def select_parent(ranked: Sequence[T], rng: random.Random | None = None) -> T:
    """Draw a single rank-weighted parent."""
    return rank_weighted_selection(ranked, 1, rng)[0]
