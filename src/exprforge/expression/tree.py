"""Expression wrapper with cached fitness.

An Expr owns a root node, the argument and return types it was built for,
and the fitness from its last scoring. The fitness is reset whenever the
root is replaced.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Callable, Sequence

import numpy as np

from exprforge.errors import TypeCheckError, UncalculatedFitnessError
from exprforge.expression.builder import BuilderParams, BuilderTable
from exprforge.expression.nodes import Node, build_random_tree
from exprforge.expression.types import TypeTag, Value

ErrorFunction = Callable[[Value, Value], float]


@dataclass(frozen=True, eq=False)
class Fitness:
    """Average finite error and fraction of non-finite errors.

    Both fields are None until the expression has been scored. Calculated
    values order by ``nan`` first, then ``real``; comparing an uncalculated
    value raises UncalculatedFitnessError.
    """

    real: float | None = None
    nan: float | None = None

    def __post_init__(self) -> None:
        if (self.real is None) != (self.nan is None):
            raise ValueError("Fitness needs both real and nan, or neither")

    @property
    def is_calculated(self) -> bool:
        return self.real is not None

    def key(self) -> tuple[float, float]:
        if not self.is_calculated:
            raise UncalculatedFitnessError("Fitness has not been calculated")
        return (self.nan, self.real)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fitness):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash((self.real, self.nan))

    def __lt__(self, other: Fitness) -> bool:
        return self.key() < other.key()

    def __le__(self, other: Fitness) -> bool:
        return self.key() <= other.key()

    def __gt__(self, other: Fitness) -> bool:
        return self.key() > other.key()

    def __ge__(self, other: Fitness) -> bool:
        return self.key() >= other.key()

    def __str__(self) -> str:
        if not self.is_calculated:
            return "uncalculated"
        return f"real={self.real:.6g} nan={self.nan:.3f}"


UNCALCULATED = Fitness()


class Expr:
    """Typed expression tree with cached fitness.

    Attributes:
        root: Root node
        arg_types: Types of the input row the expression reads
        return_type: Type the expression produces
        fitness: Result of the last scoring
    """

    def __init__(self, root: Node, arg_types: Sequence[TypeTag] | None = None):
        self.root = root
        self.arg_types = tuple(arg_types) if arg_types is not None else root.arg_types
        self.return_type = root.return_type
        self.fitness = UNCALCULATED

    @classmethod
    def random(
        cls,
        arg_types: Sequence[TypeTag],
        return_type: TypeTag,
        table: BuilderTable,
        params: BuilderParams,
    ) -> Expr:
        """Build a random expression from the catalog."""
        root = build_random_tree(table, arg_types, return_type, 0, params)
        return cls(root, arg_types)

    def replace_root(self, root: Node) -> None:
        self.root = root
        self.fitness = UNCALCULATED

    def evaluate(self, row: Sequence[Value]) -> Value:
        return self.root.evaluate(row)

    def score_against(
        self,
        train_x: Sequence[Sequence[Value]],
        train_y: Sequence[Value],
        err_fn: ErrorFunction,
    ) -> Fitness:
        """Score the expression against training data.

        Args:
            train_x: Input rows
            train_y: Expected output per row
            err_fn: ``err_fn(actual, predicted)`` error of one row

        Returns:
            The new fitness, also cached on the expression
        """
        if len(train_x) != len(train_y):
            raise ValueError(f"train_x has {len(train_x)} rows but train_y has {len(train_y)}")
        if not train_y:
            raise ValueError("Cannot score against empty training data")

        total = 0.0
        non_finite = 0
        with np.errstate(all="ignore"):
            for row, actual in zip(train_x, train_y):
                predicted = self.root.evaluate(row)
                error = err_fn(actual, predicted)
                if predicted.is_finite() and math.isfinite(error):
                    total += error
                else:
                    non_finite += 1

        n = len(train_y)
        self.fitness = Fitness(real=total / n, nan=non_finite / n)
        return self.fitness

    def prune(self) -> None:
        """Cancel inverse operator pairs in place."""
        pruned = self.root.prune()
        if pruned.size() != self.root.size():
            self.replace_root(pruned)
        else:
            self.root = pruned

    def render(self) -> str:
        return self.root.render()

    def equation(self) -> str:
        return self.root.equation()

    def type_check(self) -> TypeCheckError | None:
        error = self.root.type_check()
        if error is None and self.root.return_type != self.return_type:
            error = TypeCheckError(
                f"Expression returns {self.root.return_type.name}, "
                f"declared {self.return_type.name}"
            )
        return error

    def max_depth(self) -> int:
        return self.root.max_depth()

    def size(self) -> int:
        return self.root.size()

    def clone(self) -> Expr:
        """Deep copy including the cached fitness."""
        copied = Expr(self.root.deep_copy(), self.arg_types)
        copied.fitness = self.fitness
        return copied

    def __str__(self) -> str:
        return self.equation()

    def __repr__(self) -> str:
        return f"Expr({self.equation()!r}, fitness={self.fitness})"
