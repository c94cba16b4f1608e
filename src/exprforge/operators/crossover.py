"""Subtree crossover for expression trees.

A fragment is extracted from one parent and spliced into a copy of the
other wherever the return types match and the depth budget allows. Types
are never coerced: a fragment with no compatible slot yields no child.
"""

from __future__ import annotations

from exprforge.expression.builder import BuilderParams
from exprforge.expression.nodes import Node
from exprforge.expression.tree import Expr
from exprforge.operators.mutation import scaled_probability


def crossover(
    donor: Expr,
    host: Expr,
    base_probability: float,
    params: BuilderParams,
) -> Node | None:
    """Attempt one crossover between two parents.

    Extraction and insertion probabilities are each scaled by the real
    error of the parent they act on.

    Args:
        donor: Parent the fragment is copied from
        host: Parent whose copy receives the fragment
        base_probability: Crossover probability before error scaling
        params: Generation parameters and random source

    Returns:
        Root of the child tree, or None if no fragment was placed
    """
    fragment = donor.root.random_subtree(scaled_probability(base_probability, donor), 0, params)
    if fragment is None:
        return None

    return host.root.insert_subtree(
        fragment,
        scaled_probability(base_probability, host),
        0,
        params,
    )
