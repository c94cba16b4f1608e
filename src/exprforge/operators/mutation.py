"""Mutation operator for expression trees.

The base probability handed to the tree is scaled by the parent's real
error, so poor individuals are altered more aggressively than good ones.
"""

from __future__ import annotations

from exprforge.expression.builder import BuilderParams, BuilderTable
from exprforge.expression.nodes import Node
from exprforge.expression.tree import Expr


def scaled_probability(base: float, expr: Expr) -> float:
    """``base * real error`` clamped to [0, 1]."""
    if not expr.fitness.is_calculated:
        return min(max(base, 0.0), 1.0)
    return min(max(base * expr.fitness.real, 0.0), 1.0)


def mutate(
    expr: Expr,
    base_probability: float,
    table: BuilderTable,
    params: BuilderParams,
) -> Node | None:
    """Attempt one mutation of ``expr``.

    Args:
        expr: Parent expression (left untouched)
        base_probability: Mutation probability before error scaling
        table: Catalog used for regenerated subtrees
        params: Generation parameters and random source

    Returns:
        Root of the mutated tree, or None if nothing changed
    """
    probability = scaled_probability(base_probability, expr)
    return expr.root.mutant_copy(probability, 0, expr.arg_types, table, params)
