"""Operator kinds and their evaluation functions.

Each kind is a closed table entry: a name used in rendering and prune
rules, the symbol used in equations, its argument and return tags, and the
function applied to payloads. Unary and binary operator nodes dispatch
through these tables instead of one class per operator.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import numpy as np

from exprforge.errors import EvaluationError
from exprforge.expression.types import TypeTag, Value

NUMERIC_TAGS = frozenset({TypeTag.INT, TypeTag.FLOAT, TypeTag.UINT})
ALL_TAGS = frozenset(TypeTag)
MODULUS = 2**32


class BinaryFamily(Enum):
    """How a binary kind relates operand and result tags."""

    ARITHMETIC = "arithmetic"
    COMPARISON = "comparison"
    LOGIC = "logic"


@dataclass(frozen=True)
class UnaryKind:
    """Single-argument operator."""

    name: str
    arg_type: TypeTag
    return_type: TypeTag
    fn: Callable[[Any], Any]

    def apply(self, value: Value) -> Value:
        if value.tag != self.arg_type:
            raise EvaluationError(
                f"{self.name} cannot take {value.tag.name}, expected {self.arg_type.name}"
            )
        return Value.of(self.return_type, self.fn(value.payload))


@dataclass(frozen=True)
class BinaryKind:
    """Two-argument operator over operands of one shared tag."""

    name: str
    symbol: str
    family: BinaryFamily
    operand_types: frozenset[TypeTag]
    fn: Callable[[TypeTag, Any, Any], Any]

    def result_type(self, operand: TypeTag) -> TypeTag:
        if self.family == BinaryFamily.COMPARISON:
            return TypeTag.BOOL
        return operand

    def apply(self, left: Value, right: Value) -> Value:
        if left.tag != right.tag:
            raise EvaluationError(
                f"{self.name} got mismatched operands {left.tag.name} and {right.tag.name}"
            )
        if left.tag not in self.operand_types:
            raise EvaluationError(f"{self.name} is not defined for {left.tag.name}")
        result = self.fn(left.tag, left.payload, right.payload)
        return Value.of(self.result_type(left.tag), result)


def _float_fn(ufunc: Callable[[np.float64], np.float64]) -> Callable[[float], float]:
    def apply(x: float) -> float:
        return float(ufunc(np.float64(x)))

    return apply


UNARY_KINDS: dict[str, UnaryKind] = {
    kind.name: kind
    for kind in [
        UnaryKind("sin", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.sin)),
        UnaryKind("cos", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.cos)),
        UnaryKind("tan", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.tan)),
        UnaryKind("asin", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.arcsin)),
        UnaryKind("acos", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.arccos)),
        UnaryKind("atan", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.arctan)),
        UnaryKind("sinh", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.sinh)),
        UnaryKind("cosh", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.cosh)),
        UnaryKind("tanh", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.tanh)),
        UnaryKind("asinh", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.arcsinh)),
        UnaryKind("acosh", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.arccosh)),
        UnaryKind("atanh", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.arctanh)),
        UnaryKind("exp", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.exp)),
        UnaryKind("log", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.log)),
        UnaryKind("abs", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.abs)),
        UnaryKind(
            "heaviside",
            TypeTag.FLOAT,
            TypeTag.FLOAT,
            _float_fn(lambda x: np.heaviside(x, 0.0)),
        ),
        UnaryKind(
            "relu",
            TypeTag.FLOAT,
            TypeTag.FLOAT,
            _float_fn(lambda x: np.maximum(x, 0.0)),
        ),
        UnaryKind("sqrt", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.sqrt)),
        UnaryKind("neg", TypeTag.FLOAT, TypeTag.FLOAT, _float_fn(np.negative)),
        UnaryKind("not", TypeTag.BOOL, TypeTag.BOOL, lambda x: not x),
    ]
}

# Pairs that cancel when one is applied directly to the other
INVERSE_PAIRS: frozenset[tuple[str, str]] = frozenset(
    pair
    for a, b in [
        ("sin", "asin"),
        ("cos", "acos"),
        ("tan", "atan"),
        ("sinh", "asinh"),
        ("cosh", "acosh"),
        ("tanh", "atanh"),
        ("log", "exp"),
    ]
    for pair in ((a, b), (b, a))
)

IDEMPOTENT: frozenset[str] = frozenset({"abs"})


def _trunc_div(a: int, b: int) -> int:
    # Integer division rounds toward zero; division by zero is protected
    if b == 0:
        return 0
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _int_pow(base: int, exponent: int) -> int:
    if exponent < 0:
        if base == 0:
            return 0
        if base == 1:
            return 1
        if base == -1:
            return 1 if exponent % 2 == 0 else -1
        return 0
    return pow(base, exponent, MODULUS)


def _add(tag: TypeTag, a: Any, b: Any) -> Any:
    if tag == TypeTag.FLOAT:
        return float(np.float64(a) + np.float64(b))
    return a + b


def _sub(tag: TypeTag, a: Any, b: Any) -> Any:
    if tag == TypeTag.FLOAT:
        return float(np.float64(a) - np.float64(b))
    return a - b


def _mul(tag: TypeTag, a: Any, b: Any) -> Any:
    if tag == TypeTag.FLOAT:
        return float(np.float64(a) * np.float64(b))
    return a * b


def _div(tag: TypeTag, a: Any, b: Any) -> Any:
    if tag == TypeTag.FLOAT:
        return float(np.divide(np.float64(a), np.float64(b)))
    return _trunc_div(a, b)


def _pow(tag: TypeTag, a: Any, b: Any) -> Any:
    if tag == TypeTag.FLOAT:
        return float(np.power(np.float64(a), np.float64(b)))
    return _int_pow(a, b)


def _comparison(op: Callable[[Any, Any], bool]) -> Callable[[TypeTag, Any, Any], bool]:
    def apply(tag: TypeTag, a: Any, b: Any) -> bool:
        return bool(op(a, b))

    return apply


BINARY_KINDS: dict[str, BinaryKind] = {
    kind.name: kind
    for kind in [
        BinaryKind("add", "+", BinaryFamily.ARITHMETIC, NUMERIC_TAGS, _add),
        BinaryKind("sub", "-", BinaryFamily.ARITHMETIC, NUMERIC_TAGS, _sub),
        BinaryKind("mul", "*", BinaryFamily.ARITHMETIC, NUMERIC_TAGS, _mul),
        BinaryKind("div", "/", BinaryFamily.ARITHMETIC, NUMERIC_TAGS, _div),
        BinaryKind("pow", "^", BinaryFamily.ARITHMETIC, NUMERIC_TAGS, _pow),
        BinaryKind("eq", "==", BinaryFamily.COMPARISON, ALL_TAGS, _comparison(lambda a, b: a == b)),
        BinaryKind("ne", "!=", BinaryFamily.COMPARISON, ALL_TAGS, _comparison(lambda a, b: a != b)),
        BinaryKind("gt", ">", BinaryFamily.COMPARISON, ALL_TAGS, _comparison(lambda a, b: a > b)),
        BinaryKind("ge", ">=", BinaryFamily.COMPARISON, ALL_TAGS, _comparison(lambda a, b: a >= b)),
        BinaryKind("lt", "<", BinaryFamily.COMPARISON, ALL_TAGS, _comparison(lambda a, b: a < b)),
        BinaryKind("le", "<=", BinaryFamily.COMPARISON, ALL_TAGS, _comparison(lambda a, b: a <= b)),
        BinaryKind(
            "and",
            "&&",
            BinaryFamily.LOGIC,
            frozenset({TypeTag.BOOL}),
            lambda tag, a, b: a and b,
        ),
        BinaryKind(
            "or",
            "||",
            BinaryFamily.LOGIC,
            frozenset({TypeTag.BOOL}),
            lambda tag, a, b: a or b,
        ),
    ]
}


def get_unary(name: str) -> UnaryKind:
    """Look up a unary kind by name."""
    if name not in UNARY_KINDS:
        raise ValueError(f"Unknown unary operator: {name}")
    return UNARY_KINDS[name]


def get_binary(name: str) -> BinaryKind:
    """Look up a binary kind by name."""
    if name not in BINARY_KINDS:
        raise ValueError(f"Unknown binary operator: {name}")
    return BINARY_KINDS[name]
