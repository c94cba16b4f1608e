"""Expression tree nodes for strongly-typed genetic programming.

Implements the node variants of an expression tree:
- Constant: Literal value (e.g., 0.5F, 3I)
- Variable: Reference into the input row (e.g., x[0])
- UnaryOp: One child, dispatched through the unary kind table (e.g., sin)
- BinaryOp: Two children, dispatched through the binary kind table (e.g., add)
- Conditional: Condition, if-true and if-false children

Every structural algorithm (build, copy, mutate, crossover, prune,
type-check) is written once against ``Node.children`` and ``with_children``
so variants only describe their own shape and evaluation.

NodeShape is an unfilled template of a variant. Builder catalogs store
shapes, and random construction fills a shape with freshly built children.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Sequence

from exprforge.errors import EvaluationError, TypeCheckError
from exprforge.expression.functions import (
    IDEMPOTENT,
    INVERSE_PAIRS,
    BinaryKind,
    UnaryKind,
    get_binary,
    get_unary,
)
from exprforge.expression.types import TypeTag, Value

if TYPE_CHECKING:
    from exprforge.expression.builder import BuilderParams, BuilderTable


class NodeFamily(Enum):
    """Node variants."""

    CONSTANT = "const"
    VARIABLE = "var"
    UNARY = "unary"
    BINARY = "binary"
    CONDITIONAL = "if"


def _type_names(types: Sequence[TypeTag | None]) -> str:
    return ", ".join(t.name if t is not None else "?" for t in types)


class Node(ABC):
    """Abstract base class for expression tree nodes."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Kind name used in rendering, messages and prune rules."""

    @property
    @abstractmethod
    def return_type(self) -> TypeTag:
        """Get the return type of this node."""

    @property
    def arg_types(self) -> tuple[TypeTag, ...]:
        """Declared type of each child slot."""
        return ()

    @property
    def children(self) -> tuple[Node, ...]:
        return ()

    @abstractmethod
    def evaluate(self, row: Sequence[Value]) -> Value:
        """Evaluate against one input row."""

    @abstractmethod
    def equation(self) -> str:
        """Infix representation."""

    @abstractmethod
    def zero_template(self) -> NodeShape:
        """Unfilled shape of this variant."""

    @abstractmethod
    def deep_copy(self) -> Node:
        """Create a deep copy of this node."""

    def with_children(self, children: Sequence[Node]) -> Node:
        """Build a node of the same variant around new children.

        The children are used as given, not copied.
        """
        return self.deep_copy()

    def label(self) -> str:
        return self.name

    def render(self, indent: int = 0) -> str:
        """Indented tree dump, one node per line."""
        lines = "." * indent + self.label()
        for child in self.children:
            lines += "\n" + child.render(indent + 1)
        return lines

    def max_depth(self) -> int:
        return 1 + max((c.max_depth() for c in self.children), default=0)

    def size(self) -> int:
        """Number of nodes in this subtree."""
        return 1 + sum(c.size() for c in self.children)

    def walk(self) -> Iterator[Node]:
        """Iterate over this subtree in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def _local_error(self) -> TypeCheckError | None:
        actual = tuple(c.return_type for c in self.children)
        if actual != self.arg_types:
            return TypeCheckError(
                f"{self.name} requires arguments of type ({_type_names(self.arg_types)}), "
                f"got ({_type_names(actual)})"
            )
        return None

    def type_check(self) -> TypeCheckError | None:
        """Return the first type mismatch in this subtree, or None."""
        error = self._local_error()
        if error is not None:
            return error
        for child in self.children:
            error = child.type_check()
            if error is not None:
                return error
        return None

    def check_types(self) -> None:
        """Raise TypeCheckError if the subtree is malformed."""
        error = self.type_check()
        if error is not None:
            raise error

    def prune(self) -> Node:
        """Copy of this subtree with inverse operator pairs cancelled."""
        if not self.children:
            return self.deep_copy()
        return self.with_children([c.prune() for c in self.children])

    def mutant_copy(
        self,
        probability: float,
        depth: int,
        arg_types: Sequence[TypeTag],
        table: BuilderTable,
        params: BuilderParams,
    ) -> Node | None:
        """Randomly altered copy of this subtree.

        Args:
            probability: Base mutation probability fed to the growth curve
            depth: Depth of this node in the whole tree (root is 0)
            arg_types: Argument types of the enclosing expression
            table: Catalog used for regenerated subtrees
            params: Generation parameters and random source

        Returns:
            The replacement subtree, or None if nothing changed
        """
        if params.rng.random() < params.growth(probability, depth):
            return build_random_tree(table, arg_types, self.return_type, depth, params)

        mutated = [
            c.mutant_copy(probability, depth + 1, arg_types, table, params)
            for c in self.children
        ]
        if all(m is None for m in mutated):
            return None

        return self.with_children([
            m if m is not None else c.deep_copy()
            for m, c in zip(mutated, self.children)
        ])

    def random_subtree(
        self,
        probability: float,
        depth: int,
        params: BuilderParams,
    ) -> Node | None:
        """Extract a copy of a randomly chosen subtree for crossover.

        Fragments at least as deep as ``params.max_depth`` are never
        extracted since no slot below the root could take them.
        """
        if (
            params.rng.random() < params.growth(probability, depth)
            and self.max_depth() < params.max_depth
        ):
            return self.deep_copy()

        found = [
            f
            for f in (c.random_subtree(probability, depth + 1, params) for c in self.children)
            if f is not None
        ]
        if not found:
            return None
        if len(found) == 1:
            return found[0]
        return params.rng.choice(found)

    def insert_subtree(
        self,
        fragment: Node,
        probability: float,
        depth: int,
        params: BuilderParams,
    ) -> Node | None:
        """Copy of this subtree with ``fragment`` spliced into it.

        The fragment is taken over by the result, not copied. Returns None
        when the fragment does not fit the depth budget or no compatible
        slot accepted it.
        """
        if depth + fragment.max_depth() > params.max_depth:
            return None

        if (
            fragment.return_type == self.return_type
            and params.rng.random() < params.growth(probability, depth)
        ):
            return fragment

        if not self.children:
            return None

        slot = params.rng.randrange(len(self.children))
        replaced = self.children[slot].insert_subtree(fragment, probability, depth + 1, params)
        if replaced is None:
            return None

        return self.with_children([
            replaced if i == slot else c.deep_copy()
            for i, c in enumerate(self.children)
        ])

    def __str__(self) -> str:
        return self.equation()


@dataclass(eq=True)
class Constant(Node):
    """Literal value leaf."""

    value: Value

    @property
    def name(self) -> str:
        return NodeFamily.CONSTANT.value

    @property
    def return_type(self) -> TypeTag:
        return self.value.tag

    def evaluate(self, row: Sequence[Value]) -> Value:
        return self.value

    def label(self) -> str:
        return str(self.value)

    def equation(self) -> str:
        return str(self.value)

    def zero_template(self) -> NodeShape:
        return NodeShape.constant()

    def deep_copy(self) -> Constant:
        return Constant(self.value)


@dataclass(eq=True)
class Variable(Node):
    """Leaf reading one slot of the input row."""

    index: int
    var_type: TypeTag = TypeTag.FLOAT

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Variable index must be >= 0, got {self.index}")

    @property
    def name(self) -> str:
        return NodeFamily.VARIABLE.value

    @property
    def return_type(self) -> TypeTag:
        return self.var_type

    def evaluate(self, row: Sequence[Value]) -> Value:
        if self.index >= len(row):
            raise EvaluationError(f"x[{self.index}] is out of range for a row of {len(row)}")
        value = row[self.index]
        if value.tag != self.var_type:
            raise EvaluationError(
                f"x[{self.index}] is declared {self.var_type.name}, got {value.tag.name}"
            )
        return value

    def label(self) -> str:
        return self.equation()

    def equation(self) -> str:
        return f"x[{self.index}]"

    def zero_template(self) -> NodeShape:
        return NodeShape.variable()

    def deep_copy(self) -> Variable:
        return Variable(self.index, self.var_type)

    def mutant_copy(
        self,
        probability: float,
        depth: int,
        arg_types: Sequence[TypeTag],
        table: BuilderTable,
        params: BuilderParams,
    ) -> Node | None:
        replacement = super().mutant_copy(probability, depth, arg_types, table, params)
        if replacement == self:
            return None
        return replacement


@dataclass(eq=True)
class UnaryOp(Node):
    """Operator with one child."""

    kind: UnaryKind
    child: Node

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            self.kind = get_unary(self.kind)

    @property
    def name(self) -> str:
        return self.kind.name

    @property
    def return_type(self) -> TypeTag:
        return self.kind.return_type

    @property
    def arg_types(self) -> tuple[TypeTag, ...]:
        return (self.kind.arg_type,)

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.child,)

    def evaluate(self, row: Sequence[Value]) -> Value:
        return self.kind.apply(self.child.evaluate(row))

    def equation(self) -> str:
        return f"{self.name}({self.child.equation()})"

    def zero_template(self) -> NodeShape:
        return NodeShape.unary(self.name)

    def deep_copy(self) -> UnaryOp:
        return UnaryOp(self.kind, self.child.deep_copy())

    def with_children(self, children: Sequence[Node]) -> UnaryOp:
        (child,) = children
        return UnaryOp(self.kind, child)

    def prune(self) -> Node:
        child = self.child.prune()
        if isinstance(child, UnaryOp):
            if (self.name, child.name) in INVERSE_PAIRS:
                return child.child
            if self.name in IDEMPOTENT and child.name == self.name:
                return child
        return UnaryOp(self.kind, child)


@dataclass(eq=True)
class BinaryOp(Node):
    """Operator with a left and a right child of one operand type."""

    kind: BinaryKind
    left: Node
    right: Node
    operand_type: TypeTag | None = None

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            self.kind = get_binary(self.kind)
        if self.operand_type is None:
            self.operand_type = self.left.return_type

    @property
    def name(self) -> str:
        return self.kind.name

    @property
    def return_type(self) -> TypeTag:
        return self.kind.result_type(self.operand_type)

    @property
    def arg_types(self) -> tuple[TypeTag, ...]:
        return (self.operand_type, self.operand_type)

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.left, self.right)

    def evaluate(self, row: Sequence[Value]) -> Value:
        left = self.left.evaluate(row)
        right = self.right.evaluate(row)
        return self.kind.apply(left, right)

    def equation(self) -> str:
        return f"({self.left.equation()} {self.kind.symbol} {self.right.equation()})"

    def zero_template(self) -> NodeShape:
        return NodeShape.binary(self.name, self.operand_type)

    def deep_copy(self) -> BinaryOp:
        return BinaryOp(self.kind, self.left.deep_copy(), self.right.deep_copy(), self.operand_type)

    def with_children(self, children: Sequence[Node]) -> BinaryOp:
        left, right = children
        return BinaryOp(self.kind, left, right, self.operand_type)

    def _local_error(self) -> TypeCheckError | None:
        if self.operand_type not in self.kind.operand_types:
            return TypeCheckError(f"{self.name} is not defined for {self.operand_type.name}")
        return super()._local_error()


@dataclass(eq=True)
class Conditional(Node):
    """Ternary ``condition ? if_true : if_false``."""

    condition: Node
    if_true: Node
    if_false: Node
    branch_type: TypeTag | None = None

    def __post_init__(self) -> None:
        if self.branch_type is None:
            self.branch_type = self.if_true.return_type

    @property
    def name(self) -> str:
        return NodeFamily.CONDITIONAL.value

    @property
    def return_type(self) -> TypeTag:
        return self.branch_type

    @property
    def arg_types(self) -> tuple[TypeTag, ...]:
        return (TypeTag.BOOL, self.branch_type, self.branch_type)

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.condition, self.if_true, self.if_false)

    def evaluate(self, row: Sequence[Value]) -> Value:
        flag = self.condition.evaluate(row)
        if flag.tag != TypeTag.BOOL:
            raise EvaluationError(f"Condition must be BOOL, got {flag.tag.name}")
        when_true = self.if_true.evaluate(row)
        when_false = self.if_false.evaluate(row)
        for branch in (when_true, when_false):
            if branch.tag != self.branch_type:
                raise EvaluationError(
                    f"Conditional branch mismatched: expected {self.branch_type.name}, "
                    f"got {branch.tag.name}"
                )
        return when_true if flag.payload else when_false

    def equation(self) -> str:
        return (
            f"({self.condition.equation()} ? {self.if_true.equation()} "
            f": {self.if_false.equation()})"
        )

    def zero_template(self) -> NodeShape:
        return NodeShape.conditional(self.branch_type)

    def deep_copy(self) -> Conditional:
        return Conditional(
            self.condition.deep_copy(),
            self.if_true.deep_copy(),
            self.if_false.deep_copy(),
            self.branch_type,
        )

    def with_children(self, children: Sequence[Node]) -> Conditional:
        condition, if_true, if_false = children
        return Conditional(condition, if_true, if_false, self.branch_type)


@dataclass(frozen=True)
class NodeShape:
    """Unfilled template of a node variant.

    Leaf shapes (constant, variable) are universal: they have no fixed
    return type and are instantiated for whatever type is requested.

    Attributes:
        family: Which variant the shape builds
        return_type: Type the filled node returns (None for leaf shapes)
        arg_types: Declared type of each child slot
        kind: Operator kind name for unary and binary shapes
    """

    family: NodeFamily
    return_type: TypeTag | None = None
    arg_types: tuple[TypeTag, ...] = ()
    kind: str | None = None

    @classmethod
    def constant(cls) -> NodeShape:
        return cls(NodeFamily.CONSTANT)

    @classmethod
    def variable(cls) -> NodeShape:
        return cls(NodeFamily.VARIABLE)

    @classmethod
    def unary(cls, name: str) -> NodeShape:
        kind = get_unary(name)
        return cls(NodeFamily.UNARY, kind.return_type, (kind.arg_type,), kind.name)

    @classmethod
    def binary(cls, name: str, operand_type: TypeTag) -> NodeShape:
        kind = get_binary(name)
        if operand_type not in kind.operand_types:
            raise ValueError(f"{name} is not defined for {operand_type.name}")
        return cls(
            NodeFamily.BINARY,
            kind.result_type(operand_type),
            (operand_type, operand_type),
            kind.name,
        )

    @classmethod
    def conditional(cls, branch_type: TypeTag) -> NodeShape:
        return cls(
            NodeFamily.CONDITIONAL,
            branch_type,
            (TypeTag.BOOL, branch_type, branch_type),
        )

    @property
    def name(self) -> str:
        return self.kind if self.kind is not None else self.family.value

    @property
    def arity(self) -> int:
        return len(self.arg_types)

    def is_leaf(self) -> bool:
        return self.family in (NodeFamily.CONSTANT, NodeFamily.VARIABLE)

    def type_check(self) -> TypeCheckError:
        """A template is never a complete tree."""
        return TypeCheckError(f"{self.name} is an unfilled placeholder")

    def fill(self, children: Sequence[Node]) -> Node:
        """Instantiate an operator shape around the given children."""
        if self.is_leaf():
            raise ValueError(f"{self.name} shape has no child slots to fill")
        if len(children) != self.arity:
            raise ValueError(f"{self.name} expects {self.arity} children, got {len(children)}")

        if self.family == NodeFamily.UNARY:
            return UnaryOp(get_unary(self.kind), children[0])
        if self.family == NodeFamily.BINARY:
            return BinaryOp(get_binary(self.kind), children[0], children[1], self.arg_types[0])
        return Conditional(children[0], children[1], children[2], self.return_type)

    def build_random(
        self,
        table: BuilderTable,
        arg_types: Sequence[TypeTag],
        return_type: TypeTag,
        depth: int,
        params: BuilderParams,
    ) -> Node:
        """Instantiate this shape with randomly built children.

        Args:
            table: Catalog to draw child shapes from
            arg_types: Argument types of the enclosing expression
            return_type: Requested type (only used by leaf shapes)
            depth: Depth of the node being built
            params: Generation parameters and random source

        Returns:
            A complete subtree
        """
        if self.family == NodeFamily.CONSTANT:
            return Constant(params.literal(return_type))

        if self.family == NodeFamily.VARIABLE:
            indices = [i for i, t in enumerate(arg_types) if t == return_type]
            if not indices:
                raise ValueError(f"No argument of type {return_type.name} to reference")
            return Variable(params.rng.choice(indices), return_type)

        children = [
            build_random_tree(table, arg_types, slot_type, depth + 1, params)
            for slot_type in self.arg_types
        ]
        return self.fill(children)


def build_random_tree(
    table: BuilderTable,
    arg_types: Sequence[TypeTag],
    return_type: TypeTag,
    depth: int,
    params: BuilderParams,
) -> Node:
    """Build a random subtree returning ``return_type`` at ``depth``."""
    shape = table.pick(return_type, arg_types, depth, params)
    return shape.build_random(table, arg_types, return_type, depth, params)
