"""Builder catalog and generation parameters.

BuilderTable holds the node shapes random construction may choose from,
keyed by return type. BuilderParams carries the generation knobs and the
single seedable random source threaded through generation, mutation,
crossover and selection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import random
from typing import Sequence

from exprforge.expression.nodes import NodeShape, build_random_tree
from exprforge.expression.types import TypeTag, Value, random_value, random_value_in

logger = logging.getLogger(__name__)

DEFAULT_STEEPNESS = 5.5
DEFAULT_MIDPOINT = 0.7

# Trees are built and walked recursively
MAX_DEPTH_LIMIT = 256

__all__ = [
    "BuilderParams",
    "BuilderTable",
    "GrowthCurve",
    "build_random_tree",
]


@dataclass(frozen=True)
class GrowthCurve:
    """Depth-dependent probability that a node is the one acted upon.

    ``s = 2**depth * base`` passed through a logistic centred on
    ``midpoint``. Mutation and crossover share this law.
    """

    steepness: float = DEFAULT_STEEPNESS
    midpoint: float = DEFAULT_MIDPOINT

    def probability(self, base: float, depth: int, max_depth: int) -> float:
        if depth >= max_depth:
            return 0.0
        s = (2.0**depth) * base
        exponent = -self.steepness * (s - self.midpoint)
        if exponent > 700.0:
            return 0.0
        return 1.0 / (1.0 + math.exp(exponent))


@dataclass
class BuilderParams:
    """Generation parameters and random source.

    Configure with keyword arguments, with the chaining ``with_*`` helpers
    or by assigning attributes directly.
    """

    max_depth: int = 10
    termination_probability: float = 0.05
    float_range: tuple[float, float] = (0.0, 1.0)
    int_range: tuple[int, int] = (-100, 100)
    uint_range: tuple[int, int] = (0, 100)
    curve: GrowthCurve = field(default_factory=GrowthCurve)
    random_seed: int | None = None
    rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._validate()
        self.rng = random.Random(self.random_seed)

    def _validate(self) -> None:
        if not 0 <= self.max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(f"max_depth must be in [0, {MAX_DEPTH_LIMIT}], got {self.max_depth}")
        if not 0.0 <= self.termination_probability <= 1.0:
            raise ValueError(
                f"termination_probability must be in [0, 1], got {self.termination_probability}"
            )
        for label, (low, high) in [
            ("float_range", self.float_range),
            ("int_range", self.int_range),
            ("uint_range", self.uint_range),
        ]:
            if low > high:
                raise ValueError(f"{label} is reversed: ({low}, {high})")
        if self.uint_range[0] < 0:
            raise ValueError(f"uint_range must be non-negative, got {self.uint_range}")

    def _replace(self, name: str, value) -> BuilderParams:
        previous = getattr(self, name)
        setattr(self, name, value)
        try:
            self._validate()
        except ValueError:
            setattr(self, name, previous)
            raise
        return self

    def with_max_depth(self, max_depth: int) -> BuilderParams:
        return self._replace("max_depth", max_depth)

    def with_termination_probability(self, probability: float) -> BuilderParams:
        return self._replace("termination_probability", probability)

    def with_float_range(self, low: float, high: float) -> BuilderParams:
        return self._replace("float_range", (low, high))

    def with_int_range(self, low: int, high: int) -> BuilderParams:
        return self._replace("int_range", (low, high))

    def with_uint_range(self, low: int, high: int) -> BuilderParams:
        return self._replace("uint_range", (low, high))

    def with_curve(self, steepness: float, midpoint: float) -> BuilderParams:
        self.curve = GrowthCurve(steepness, midpoint)
        return self

    def seed(self, seed: int | None) -> BuilderParams:
        """Reseed the random source."""
        self.random_seed = seed
        self.rng.seed(seed)
        return self

    def growth(self, base: float, depth: int) -> float:
        return self.curve.probability(base, depth, self.max_depth)

    def literal(self, tag: TypeTag) -> Value:
        """Draw a random literal of ``tag`` in its configured range."""
        if tag == TypeTag.FLOAT:
            return random_value_in(tag, *self.float_range, self.rng)
        if tag == TypeTag.INT:
            return random_value_in(tag, *self.int_range, self.rng)
        if tag == TypeTag.UINT:
            return random_value_in(tag, *self.uint_range, self.rng)
        return random_value(tag, self.rng)


class BuilderTable:
    """Catalog of operator shapes keyed by return type.

    The constant and variable leaf shapes are always available. A table is
    assembled with ``push`` and the ``register_*`` helpers and becomes
    read-only after ``freeze``.
    """

    def __init__(self) -> None:
        self._shapes: dict[TypeTag, list[NodeShape]] = {tag: [] for tag in TypeTag}
        self._frozen = False
        self.constant = NodeShape.constant()
        self.variable = NodeShape.variable()

    def push(self, shape: NodeShape) -> BuilderTable:
        """Register an operator shape under its return type."""
        if self._frozen:
            raise RuntimeError("BuilderTable is frozen")
        if shape.is_leaf():
            raise ValueError("Leaf shapes are always available and cannot be registered")
        if shape in self._shapes[shape.return_type]:
            logger.debug(f"Shape {shape.name} -> {shape.return_type.name} already registered")
            return self
        self._shapes[shape.return_type].append(shape)
        return self

    def register_unary(self, *names: str) -> BuilderTable:
        for name in names:
            self.push(NodeShape.unary(name))
        return self

    def register_binary(self, operand_type: TypeTag, *names: str) -> BuilderTable:
        for name in names:
            self.push(NodeShape.binary(name, operand_type))
        return self

    def register_conditional(self, branch_type: TypeTag) -> BuilderTable:
        return self.push(NodeShape.conditional(branch_type))

    def freeze(self) -> BuilderTable:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def shapes(self, return_type: TypeTag) -> tuple[NodeShape, ...]:
        return tuple(self._shapes[return_type])

    def __len__(self) -> int:
        return sum(len(shapes) for shapes in self._shapes.values())

    def __iter__(self):
        for tag in TypeTag:
            yield from self._shapes[tag]

    def pick_leaf(
        self,
        return_type: TypeTag,
        arg_types: Sequence[TypeTag],
        params: BuilderParams,
    ) -> NodeShape:
        """Pick the constant or the variable leaf uniformly.

        Falls back to the constant leaf when no argument has the type.
        """
        if return_type not in arg_types:
            return self.constant
        return self.constant if params.rng.random() < 0.5 else self.variable

    def pick(
        self,
        return_type: TypeTag,
        arg_types: Sequence[TypeTag],
        depth: int,
        params: BuilderParams,
    ) -> NodeShape:
        """Choose the shape of a node built at ``depth``.

        Depth counts edges from the root, so a node at ``depth`` lies on
        level ``depth + 1``. A leaf is forced once no operator could fit
        below ``params.max_depth`` levels, and otherwise taken with the
        termination probability.
        """
        candidates = self._shapes[return_type]
        if (
            not candidates
            or depth + 1 >= params.max_depth
            or params.rng.random() < params.termination_probability
        ):
            return self.pick_leaf(return_type, arg_types, params)
        return params.rng.choice(candidates)

    def describe(self) -> list[dict[str, str]]:
        """Registered shapes as rows, for display."""
        rows = [
            {
                "name": shape.name,
                "family": shape.family.value,
                "returns": shape.return_type.name,
                "args": ", ".join(t.name for t in shape.arg_types),
            }
            for shape in self
        ]
        for leaf in (self.constant, self.variable):
            rows.append({"name": leaf.name, "family": leaf.family.value, "returns": "*", "args": ""})
        return rows


