"""Typed expression tree representation for genetic programming."""

from exprforge.expression.types import TypeTag, Value
from exprforge.expression.nodes import (
    Node,
    NodeShape,
    Constant,
    Variable,
    UnaryOp,
    BinaryOp,
    Conditional,
    build_random_tree,
)
from exprforge.expression.builder import BuilderParams, BuilderTable, GrowthCurve
from exprforge.expression.tree import Expr, Fitness

__all__ = [
    "TypeTag",
    "Value",
    "Node",
    "NodeShape",
    "Constant",
    "Variable",
    "UnaryOp",
    "BinaryOp",
    "Conditional",
    "build_random_tree",
    "BuilderParams",
    "BuilderTable",
    "GrowthCurve",
    "Expr",
    "Fitness",
]
